"""Orchestrator event journal.

Every fallback decision (a provider failing, the switch to the next one, the
final success or aggregated error) and every credential admin action is
stored as one ``OrchestratorEvent`` row. Only today's and yesterday's rows
are kept; older rows are pruned whenever the journal is written or read.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from sqlalchemy import delete, select

from analysis_orchestrator.logging import get_request_id
from analysis_orchestrator.storage.database import session_scope
from analysis_orchestrator.storage.models import OrchestratorEvent

logger = logging.getLogger("orchestrator.events")

EVENTS_ENABLED = os.getenv("EVENTS_ENABLED", "true").lower() in {"1", "true", "yes"}

_RETAINED_DAYS = 2
_MESSAGE_LIMIT = 512
_LABEL_FIELDS = ("provider_from", "provider_to", "analysis_kind")


def _current_retention_cutoff() -> datetime:
    """Midnight UTC of yesterday; anything earlier is discarded."""
    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return today - timedelta(days=_RETAINED_DAYS - 1)


def _prune(session) -> None:
    session.execute(delete(OrchestratorEvent).where(OrchestratorEvent.ts < _current_retention_cutoff()))


def _label(value: Any) -> str | None:
    # Provider and AnalysisKind members are stored by value.
    if value is None:
        return None
    return str(getattr(value, "value", value))


def _clip(message: str | None) -> str | None:
    if message is None or len(message) <= _MESSAGE_LIMIT:
        return message
    return message[: _MESSAGE_LIMIT - 3] + "..."


def _load_meta(raw: str | None) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _as_dict(row: OrchestratorEvent) -> Dict[str, Any]:
    item: Dict[str, Any] = {
        "id": row.id,
        "timestamp": row.ts.isoformat() if row.ts else None,
        "level": row.level,
        "kind": row.kind,
        "request_id": row.request_id,
    }
    for field in _LABEL_FIELDS:
        item[field] = getattr(row, field)
    item["error_code"] = row.error_code
    item["message"] = row.message
    item["meta"] = _load_meta(row.meta)
    return item


def record_event(
    kind: str,
    level: str,
    *,
    message: str | None = None,
    request_id: str | None = None,
    meta: Dict[str, Any] | None = None,
    **fields: Any,
) -> None:
    """Append an event to the journal.

    ``fields`` may carry ``provider_from``, ``provider_to``,
    ``analysis_kind`` and ``error_code``. A storage failure is logged and
    swallowed so that telemetry never breaks a request.
    """
    if not EVENTS_ENABLED:
        return

    event = OrchestratorEvent(
        ts=datetime.now(timezone.utc),
        level=level.upper(),
        kind=kind,
        request_id=request_id or get_request_id(),
        error_code=fields.get("error_code"),
        message=_clip(message),
        meta=json.dumps(meta, ensure_ascii=True, default=str) if meta else None,
        **{field: _label(fields.get(field)) for field in _LABEL_FIELDS},
    )

    try:
        with session_scope() as session:
            session.add(event)
            _prune(session)
    except Exception:
        logger.exception(
            "Failed to record event", extra={"event": "event_persist_error", "kind": kind}
        )


def list_recent_events(limit: int = 50) -> List[Dict[str, Any]]:
    """Return retained events, newest first."""
    if not EVENTS_ENABLED:
        return []

    with session_scope() as session:
        _prune(session)
        rows = session.scalars(
            select(OrchestratorEvent)
            .where(OrchestratorEvent.ts >= _current_retention_cutoff())
            .order_by(OrchestratorEvent.ts.desc())
            .limit(limit)
        ).all()
        return [_as_dict(row) for row in rows]


__all__ = ["EVENTS_ENABLED", "list_recent_events", "record_event"]
