"""Process-wide logging.

Records go to the console (``LOG_LEVEL``, default WARNING) and, unless
``LOG_FILE`` is set to an empty string, to a rotating JSON-lines file
(default ``logs/app.jsonl``) at INFO. Each record carries the id of the
HTTP request being served, bound by ``RequestContextMiddleware``.
"""

from __future__ import annotations

import contextvars
import json
import logging
import os
import pathlib
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]

CONSOLE_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s (request_id=%(request_id)s)"
LOG_FILE_MAX_BYTES = 10_000_000
LOG_FILE_BACKUPS = 5
QUIET_LOGGERS = ("uvicorn", "httpx", "httpcore")

_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)
_configured = False

# Anything on a record beyond these came in through ``extra``.
_BUILTIN_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "request_id"}


def set_request_id(request_id: str | None) -> contextvars.Token[str | None]:
    return _request_id.set(request_id)


def reset_request_id(token: contextvars.Token[str | None]) -> None:
    _request_id.reset(token)


def get_request_id() -> str | None:
    """Return the request id bound to the current context, if any."""
    return _request_id.get()


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra`` fields are copied to the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if getattr(record, "request_id", None):
            entry["request_id"] = record.request_id
        entry.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _BUILTIN_RECORD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=True, default=str)


def _log_file_path() -> pathlib.Path | None:
    configured = os.getenv("LOG_FILE", "logs/app.jsonl")
    if not configured:
        return None
    path = pathlib.Path(configured)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _console_handler(context_filter: logging.Filter) -> logging.Handler:
    level_name = os.getenv("LOG_LEVEL", "WARNING").upper()
    handler = logging.StreamHandler()
    handler.setLevel(getattr(logging, level_name, logging.WARNING))
    handler.addFilter(context_filter)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def _file_handler(path: pathlib.Path, context_filter: logging.Filter) -> logging.Handler:
    handler = RotatingFileHandler(path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS)
    handler.setLevel(logging.INFO)
    handler.addFilter(context_filter)
    handler.setFormatter(JsonFormatter())
    return handler


def configure_logging() -> None:
    """Install the console and file handlers on the root logger, once."""
    global _configured
    if _configured:
        return

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    for existing in list(root.handlers):
        root.removeHandler(existing)

    context_filter = RequestContextFilter()
    root.addHandler(_console_handler(context_filter))
    log_path = _log_file_path()
    if log_path is not None:
        root.addHandler(_file_handler(log_path, context_filter))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True


__all__ = [
    "JsonFormatter",
    "configure_logging",
    "get_request_id",
    "reset_request_id",
    "set_request_id",
]
