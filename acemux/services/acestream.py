"""
AceStream engine API helpers.

Used by the player (through the proxy) and by the status probe (directly
against the engine). All helpers degrade instead of raising: a failed manifest
lookup falls back to the raw HLS URL and a failed stats fetch returns None.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from acemux.core.logging import get_logger
from acemux.services.rewrite import proxy_url

logger = get_logger("acemux.acestream")


@dataclass(frozen=True)
class StreamUrls:
    json_src: str
    hls_src: str


@dataclass(frozen=True)
class StreamInfo:
    """Resolved playback target for a stream."""
    playback_url: str
    stat_url: Optional[str]


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    try:
        return int(float(value.strip()) if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return None


@dataclass
class StreamStats:
    peers: Optional[int] = None
    speed_down: Optional[int] = None
    speed_up: Optional[int] = None
    status: Optional[str] = None
    downloaded: Optional[int] = None
    uploaded: Optional[int] = None
    total_progress: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "StreamStats":
        """Build from an engine stats body.

        Missing keys stay None. Numeric fields may arrive as numbers or numeric
        strings; anything unparseable is treated as missing.
        """
        status = payload.get("status")
        return cls(
            peers=_as_int(payload.get("peers")),
            speed_down=_as_int(payload.get("speed_down")),
            speed_up=_as_int(payload.get("speed_up")),
            status=status if isinstance(status, str) else None,
            downloaded=_as_int(payload.get("downloaded")),
            uploaded=_as_int(payload.get("uploaded")),
            total_progress=_as_int(payload.get("total_progress")),
        )


class EngineError(Exception):
    """The engine answered with an explicit ``error`` field."""


# PUBLIC_INTERFACE
def build_stream_urls(stream_id: str) -> StreamUrls:
    """Build the proxy-relative JSON-info and direct HLS manifest URLs for a stream id."""
    encoded = quote(stream_id, safe="")
    return StreamUrls(
        json_src=f"/ace/manifest.m3u8?id={encoded}&format=json",
        hls_src=f"/ace/manifest.m3u8?id={encoded}",
    )


def unwrap_payload(data: Any) -> Dict[str, Any]:
    """The engine nests most payloads under ``response``."""
    if not isinstance(data, dict):
        raise ValueError("engine payload is not a JSON object")
    inner = data.get("response")
    return inner if isinstance(inner, dict) else data


def _url_field(inner: Dict[str, Any], outer: Dict[str, Any], key: str) -> Optional[str]:
    # non-string values count as absent
    for source in (inner, outer):
        value = source.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def extract_urls(data: Any) -> Dict[str, Optional[str]]:
    """Pull playback/stat URLs out of a JSON manifest body, raising EngineError on ``error``."""
    if not isinstance(data, dict):
        raise ValueError("engine payload is not a JSON object")
    if data.get("error"):
        raise EngineError(str(data["error"]))
    inner = data.get("response") if isinstance(data.get("response"), dict) else {}
    return {
        "playback_url": _url_field(inner, data, "playback_url"),
        "stat_url": _url_field(inner, data, "stat_url"),
    }


# PUBLIC_INTERFACE
async def fetch_stream_info(client: httpx.AsyncClient, json_src: str, hls_src: str) -> StreamInfo:
    """Resolve playback and stats URLs from the JSON manifest, falling back to direct HLS.

    A non-OK status, transport error, malformed body or explicit engine error
    yields ``StreamInfo(hls_src, None)``. A body without a usable playback URL
    keeps its stats URL but plays the direct HLS manifest.
    """
    try:
        response = await client.get(json_src)
        if not response.is_success:
            logger.info(
                "JSON manifest not available, using direct HLS",
                extra={"status_code": response.status_code},
            )
            return StreamInfo(playback_url=hls_src, stat_url=None)

        urls = extract_urls(response.json())
        return StreamInfo(
            playback_url=proxy_url(urls["playback_url"]) or hls_src,
            stat_url=proxy_url(urls["stat_url"]) or None,
        )
    except (httpx.HTTPError, ValueError, TypeError, EngineError) as exc:
        logger.info("JSON manifest lookup failed, using direct HLS", extra={"error": str(exc)})
        return StreamInfo(playback_url=hls_src, stat_url=None)


# PUBLIC_INTERFACE
async def fetch_stats(client: httpx.AsyncClient, stat_url: str) -> Optional[StreamStats]:
    """Fetch engine statistics; returns None on any failure."""
    try:
        response = await client.get(stat_url)
        if not response.is_success:
            return None
        return StreamStats.from_payload(unwrap_payload(response.json()))
    except (httpx.HTTPError, ValueError, TypeError) as exc:
        logger.warning("Stats fetch error", extra={"stat_url": stat_url, "error": str(exc)})
        return None
