"""
FastAPI dependencies for database and upstream HTTP access.

Provides:
- get_db: database session dependency
- get_http_client: shared httpx client used by the /ace proxy
- get_engine_client: httpx client bound to ACESTREAM_BASE for status probes

The httpx clients are created and closed in the application lifespan and kept
on app.state.
"""

from __future__ import annotations

from typing import Generator

import httpx
from fastapi import Request
from sqlalchemy.orm import Session

from acemux.core.config import Settings, get_settings
from acemux.db.session import get_db as _get_db


# PUBLIC_INTERFACE
def get_db() -> Generator[Session, None, None]:
    """Yield a database session for the request lifecycle."""
    yield from _get_db()


# PUBLIC_INTERFACE
def get_app_settings() -> Settings:
    """Settings as a dependency so tests can override them."""
    return get_settings()


# PUBLIC_INTERFACE
def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared client for proxied requests (absolute target URLs)."""
    return request.app.state.http_client


# PUBLIC_INTERFACE
def get_engine_client(request: Request) -> httpx.AsyncClient:
    """Client whose base_url is the AceStream engine origin."""
    return request.app.state.engine_client


def build_http_clients(settings: Settings) -> tuple[httpx.AsyncClient, httpx.AsyncClient]:
    """Create the proxy client and the engine-bound client."""
    timeout = httpx.Timeout(settings.PROXY_READ_TIMEOUT, connect=settings.PROXY_CONNECT_TIMEOUT)
    proxy_client = httpx.AsyncClient(timeout=timeout, follow_redirects=False)
    engine_client = httpx.AsyncClient(base_url=settings.acestream_base, timeout=timeout)
    return proxy_client, engine_client
