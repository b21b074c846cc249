"""
Reverse proxy service for the AceStream engine.

Forwards an inbound request under ``/ace/`` to the configured engine origin and
adapts the response for browsers:
- JSON bodies: engine-internal URLs rewritten, content-type forced to JSON
- HLS playlists (mpegurl content-type or ``.m3u8`` path): same rewrite,
  content-type forced to ``application/vnd.apple.mpegurl``
- everything else (media segments): streamed through byte-for-byte with
  hop-by-hop headers removed

Every branch adds a permissive CORS header. Upstream failures never escape:
they become a 502 JSON response naming the attempted target.
"""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Tuple

import httpx
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse

from acemux.core.config import Settings
from acemux.core.logging import get_logger
from acemux.services.rewrite import rewrite_engine_urls

logger = get_logger("acemux.proxy")

HOP_BY_HOP_HEADERS = frozenset({"connection", "keep-alive", "transfer-encoding"})
# Never forwarded even in permissive mode: httpx derives them from the target/body.
_REQUEST_SKIP_HEADERS = HOP_BY_HOP_HEADERS | {"host", "content-length"}

CORS_HEADER = ("access-control-allow-origin", "*")
JSON_CONTENT_TYPE = "application/json"
HLS_CONTENT_TYPE = "application/vnd.apple.mpegurl"
BODYLESS_METHODS = frozenset({"GET", "HEAD"})


# PUBLIC_INTERFACE
def build_target_url(base: str, path: str, query: str = "") -> str:
    """Compose ``{base}/ace/{path}?{query}`` with trailing slashes stripped from base."""
    target = f"{base.rstrip('/')}/ace/{path}"
    if query:
        target = f"{target}?{query}"
    return target


# PUBLIC_INTERFACE
def select_forward_headers(
    inbound: Mapping[str, str], forward_all: bool = False, default_user_agent: str = "AceMux/1.0"
) -> Dict[str, str]:
    """Pick the request headers sent upstream.

    The constrained set is Accept and User-Agent, with defaults when the client
    sent none. Permissive mode copies every inbound header except host,
    content-length and hop-by-hop headers.
    """
    if forward_all:
        headers = {k: v for k, v in inbound.items() if k.lower() not in _REQUEST_SKIP_HEADERS}
        headers.setdefault("user-agent", default_user_agent)
        return headers
    return {
        "Accept": inbound.get("accept") or "*/*",
        "User-Agent": inbound.get("user-agent") or default_user_agent,
    }


def filter_response_headers(headers: Iterable[Tuple[str, str]]) -> Dict[str, str]:
    """Copy upstream response headers minus hop-by-hop ones, plus the CORS header."""
    out = {k: v for k, v in headers if k.lower() not in HOP_BY_HOP_HEADERS}
    out[CORS_HEADER[0]] = CORS_HEADER[1]
    return out


def is_playlist(content_type: str, path: str) -> bool:
    return "mpegurl" in content_type.lower() or path.endswith(".m3u8")


async def _rewritten_response(upstream: httpx.Response, media_type: str) -> Response:
    try:
        await upstream.aread()
        text = upstream.text
    finally:
        await upstream.aclose()
    return Response(
        content=rewrite_engine_urls(text),
        status_code=upstream.status_code,
        headers={"content-type": media_type, CORS_HEADER[0]: CORS_HEADER[1]},
    )


def _upstream_error(target: str, base: str, exc: Exception) -> JSONResponse:
    logger.error(
        "AceStream engine not accessible",
        extra={"target": target, "base": base, "error": str(exc) or exc.__class__.__name__},
    )
    return JSONResponse(
        status_code=502,
        content={
            "error": "AceStream server not accessible",
            "target": target,
            "base": base,
            "details": str(exc) or exc.__class__.__name__,
        },
    )


# PUBLIC_INTERFACE
async def forward_request(
    client: httpx.AsyncClient,
    request: Request,
    path: str,
    settings: Settings,
    base: Optional[str] = None,
) -> Response:
    """Forward ``request`` to the engine and transform the response.

    Parameters:
    - client: shared httpx client used for the upstream call
    - request: inbound Starlette request
    - path: wildcard remainder after ``/ace/``
    - settings: supplies the engine origin and header forwarding policy
    - base: optional origin override (defaults to settings.ACESTREAM_BASE)

    Returns:
    - a Response per the content-type branching above, or a 502 JSONResponse.
    """
    base = (base or settings.ACESTREAM_BASE).rstrip("/")
    target = build_target_url(base, path, request.url.query)
    method = request.method.upper()
    headers = select_forward_headers(
        request.headers, settings.PROXY_FORWARD_ALL_HEADERS, settings.PROXY_USER_AGENT
    )

    logger.debug("Proxying request", extra={"method": method, "path": path, "target": target})

    try:
        body = None if method in BODYLESS_METHODS else await request.body()
        upstream_request = client.build_request(method, target, headers=headers, content=body)
        upstream = await client.send(upstream_request, stream=True)
    except Exception as exc:
        # non-ASCII header values and client disconnects included
        return _upstream_error(target, base, exc)

    content_type = upstream.headers.get("content-type", "")

    try:
        if JSON_CONTENT_TYPE in content_type.lower():
            return await _rewritten_response(upstream, JSON_CONTENT_TYPE)
        if is_playlist(content_type, path):
            return await _rewritten_response(upstream, HLS_CONTENT_TYPE)
    except httpx.HTTPError as exc:
        return _upstream_error(target, base, exc)

    return StreamingResponse(
        upstream.aiter_raw(),
        status_code=upstream.status_code,
        headers=filter_response_headers(upstream.headers.multi_items()),
        background=BackgroundTask(upstream.aclose),
    )
