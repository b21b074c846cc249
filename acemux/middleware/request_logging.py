"""
Request logging middleware.

Every request runs inside a correlation scope taken from X-Request-ID or
X-Correlation-ID (generated when absent), is timed, and produces a
``request.start`` / ``request.end`` pair. The id is echoed as X-Correlation-ID.

Proxied media segments are logged at debug level: a playing stream fetches one
every few seconds.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from acemux.core.logging import correlation_scope, get_logger

logger = get_logger("acemux.request")

CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")


def _log_level(path: str) -> int:
    if path.startswith("/ace/") and not path.endswith(".m3u8"):
        return logging.DEBUG
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        incoming = next((request.headers[h] for h in CORRELATION_HEADERS if request.headers.get(h)), None)
        fields = {"method": request.method, "path": request.url.path}
        level = _log_level(request.url.path)

        with correlation_scope(incoming) as cid:
            logger.log(level, "request.start", extra=fields)
            started = time.perf_counter()
            try:
                response = await call_next(request)
            except Exception:
                logger.exception("request.failed", extra=fields)
                raise
            elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
            logger.log(
                logging.WARNING if response.status_code >= 500 else level,
                "request.end",
                extra={**fields, "status_code": response.status_code, "duration_ms": elapsed_ms},
            )

        response.headers["X-Correlation-ID"] = cid
        return response
