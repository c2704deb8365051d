"""Per-provider interaction log.

Adapters store the JSON payload they sent and the body (or error summary)
they received. Headers are never stored, so API keys stay out of the log.
Only the current UTC day is retained.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select

from analysis_orchestrator.logging import get_request_id

from .database import session_scope
from .models import ProviderLog

logger = logging.getLogger("orchestrator.provider_logs")


def _day_start() -> datetime:
    return datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


def _dump(body: Any) -> str | None:
    if body is None:
        return None
    try:
        return json.dumps(body, ensure_ascii=True)
    except (TypeError, ValueError):
        return json.dumps(repr(body), ensure_ascii=True)


def _load(stored: str | None) -> Any:
    if not stored:
        return None
    try:
        return json.loads(stored)
    except json.JSONDecodeError:
        return stored


def record_provider_log(
    provider_id: str,
    *,
    request_body: Any,
    response_body: Any,
    request_id: str | None = None,
) -> None:
    """Store one provider exchange and drop entries from earlier days."""
    entry = ProviderLog(
        provider_id=provider_id,
        request_id=request_id or get_request_id(),
        request_body=_dump(request_body),
        response_body=_dump(response_body),
    )
    try:
        with session_scope() as session:
            session.execute(delete(ProviderLog).where(ProviderLog.created_at < _day_start()))
            session.add(entry)
    except Exception:
        logger.exception(
            "Failed to persist provider log",
            extra={"event": "provider_log_error", "provider_id": provider_id},
        )


def list_provider_logs(provider_id: str, limit: int = 100) -> list[dict[str, Any]]:
    """Return today's exchanges with ``provider_id``, newest first."""
    with session_scope() as session:
        rows = session.scalars(
            select(ProviderLog)
            .where(ProviderLog.provider_id == provider_id, ProviderLog.created_at >= _day_start())
            .order_by(ProviderLog.created_at.desc(), ProviderLog.id.desc())
            .limit(limit)
        ).all()
        return [
            {
                "id": row.id,
                "created_at": row.created_at.isoformat() if row.created_at else None,
                "request_id": row.request_id,
                "request_body": _load(row.request_body),
                "response_body": _load(row.response_body),
            }
            for row in rows
        ]


__all__ = ["list_provider_logs", "record_provider_log"]
