"""
AceStream proxy route.

Exposes:
- ANY /ace/{path}: forwarded to {ACESTREAM_BASE}/ace/{path}{query}

See acemux.services.proxy for the response transformation rules.
"""

from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends, Request
from starlette.responses import Response

from acemux.api.deps import get_app_settings, get_http_client
from acemux.core.config import Settings
from acemux.services.proxy import forward_request

router = APIRouter(tags=["Proxy"])

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route(
    "/ace/{path:path}",
    methods=PROXY_METHODS,
    summary="Proxy to the AceStream engine",
    responses={502: {"description": "AceStream server not accessible"}},
)
async def proxy_ace(
    path: str,
    request: Request,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    """
    Forward the request to the engine, rewriting engine-internal URLs in JSON
    and HLS playlist bodies. Media segments are streamed unchanged.
    """
    return await forward_request(client, request, path, settings)
