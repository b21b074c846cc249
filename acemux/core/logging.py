"""
Structured logging for AceMux.

Provides:
- configure_logging / get_logger: one stdout handler on the root logger,
  emitting one JSON object per line (or plain text when LOG_FORMAT=text)
- correlation ids kept in a ContextVar, stamped on every record by a filter,
  so request logs and anything logged while serving the request line up
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from acemux.core.config import get_settings

_cid_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Attributes every LogRecord carries; anything else arrived through `extra=`
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName", "correlation_id"}

_configured = False


class CorrelationIdFilter(logging.Filter):
    """Copy the current correlation id onto the record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _cid_ctx.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record, including `extra=` fields."""

    def __init__(self, service: str, environment: str) -> None:
        super().__init__()
        self.service = service
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "service": self.service,
            "environment": self.environment,
        }

        cid = getattr(record, "correlation_id", None)
        if cid:
            entry["correlation_id"] = cid

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in entry:
                entry[key] = value

        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


# PUBLIC_INTERFACE
def configure_logging(level: Optional[str] = None, force: bool = False) -> None:
    """Install the stdout handler on the root logger.

    Runs once unless ``force`` is set; ``level`` overrides LOG_LEVEL.
    """
    global _configured
    if _configured and not force:
        return

    settings = get_settings()
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    if settings.LOG_FORMAT.lower() == "text":
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s [%(correlation_id)s] %(message)s")
        )
    else:
        handler.setFormatter(JsonFormatter(settings.LOG_SERVICE_NAME, settings.LOG_ENVIRONMENT))

    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())
    root.handlers = [handler]
    _configured = True


# PUBLIC_INTERFACE
def get_logger(name: str = "acemux") -> logging.Logger:
    """Get a logger, configuring the root handler on first use."""
    configure_logging()
    return logging.getLogger(name)


# PUBLIC_INTERFACE
def get_correlation_id() -> Optional[str]:
    return _cid_ctx.get()


# PUBLIC_INTERFACE
@contextmanager
def correlation_scope(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation id for the duration of the block, then restore the previous one."""
    token = _cid_ctx.set(correlation_id or uuid.uuid4().hex)
    try:
        yield _cid_ctx.get()
    finally:
        _cid_ctx.reset(token)
