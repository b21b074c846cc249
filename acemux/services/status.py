"""
Stream status probe.

Classifies a stream as online / offline / unknown by asking the engine for the
JSON manifest and then the stats endpoint it advertises. The thresholds are
heuristics (the engine documents neither the presence nor the units of these
fields), so they live in a configurable StatusPolicy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import httpx

from acemux.core.config import Settings
from acemux.core.logging import get_logger
from acemux.services.acestream import EngineError, StreamStats, build_stream_urls, extract_urls, unwrap_payload
from acemux.services.rewrite import proxy_url

logger = get_logger("acemux.status")

ONLINE = "online"
OFFLINE = "offline"
CHECKING = "checking"
UNKNOWN = "unknown"


@dataclass(frozen=True)
class StatusPolicy:
    min_active_speed: int = 50
    min_peers_for_online: int = 2
    request_timeout: float = 12.0
    stats_timeout: float = 6.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "StatusPolicy":
        return cls(
            min_active_speed=settings.STATUS_MIN_ACTIVE_SPEED,
            min_peers_for_online=settings.STATUS_MIN_PEERS_FOR_ONLINE,
            request_timeout=settings.STATUS_REQUEST_TIMEOUT,
            stats_timeout=settings.STATUS_STATS_TIMEOUT,
        )


@dataclass(frozen=True)
class StatusResult:
    status: str
    title: str
    detail: str = ""


def _plural_peers(peers: int) -> str:
    return f"{peers} peer{'' if peers == 1 else 's'}"


# PUBLIC_INTERFACE
def classify_stats(stats: StreamStats, policy: StatusPolicy = StatusPolicy()) -> StatusResult:
    """Map engine stats to a status, strictest rule first."""
    peers = stats.peers or 0
    speed_down = stats.speed_down or 0
    engine_status = stats.status or ""

    info: List[str] = []
    if peers > 0:
        info.append(_plural_peers(peers))
    if speed_down > 0:
        info.append(f"{speed_down} KB/s")
    summary = " • ".join(info)

    if engine_status == "dl" and speed_down >= policy.min_active_speed:
        return StatusResult(ONLINE, "Streaming", summary)
    if peers >= policy.min_peers_for_online and speed_down > 0:
        return StatusResult(ONLINE, "Active", summary)
    if engine_status == "prebuf":
        return StatusResult(UNKNOWN, "Prebuffering", summary or "Looking for peers...")
    if peers > 0:
        return StatusResult(UNKNOWN, "Connecting", f"{_plural_peers(peers)}, no data yet")
    return StatusResult(UNKNOWN, "No peers", "May not be available")


async def _check_stats(client: httpx.AsyncClient, stat_url: str, policy: StatusPolicy) -> StatusResult:
    try:
        response = await client.get(stat_url, timeout=policy.stats_timeout)
        if not response.is_success:
            return StatusResult(UNKNOWN, "Stats unavailable", "Click to test")
        return classify_stats(StreamStats.from_payload(unwrap_payload(response.json())), policy)
    except (httpx.HTTPError, ValueError, TypeError) as exc:
        logger.debug("Stats probe failed", extra={"stat_url": stat_url, "error": str(exc)})
        return StatusResult(UNKNOWN, "Stats error", "Click to test")


# PUBLIC_INTERFACE
async def check_stream_status(
    client: httpx.AsyncClient, stream_id: str, policy: Optional[StatusPolicy] = None
) -> StatusResult:
    """Probe a stream's availability.

    ``client`` must resolve ``/ace/...`` paths: either the engine itself (base_url
    set to ACESTREAM_BASE) or the proxy.
    """
    policy = policy or StatusPolicy()
    json_src = build_stream_urls(stream_id).json_src
    try:
        response = await client.get(json_src, timeout=policy.request_timeout)
        if not response.is_success:
            return StatusResult(OFFLINE, "Not available", f"HTTP {response.status_code}")
        urls = extract_urls(response.json())
    except EngineError as exc:
        return StatusResult(OFFLINE, "Error", str(exc))
    except httpx.TimeoutException:
        return StatusResult(UNKNOWN, "Timeout", "Server slow")
    except (httpx.HTTPError, ValueError) as exc:
        logger.info("Status probe failed", extra={"stream_id": stream_id, "error": str(exc)})
        return StatusResult(OFFLINE, "Connection error", "Cannot reach server")

    stat_url = proxy_url(urls["stat_url"])
    if not stat_url:
        return StatusResult(UNKNOWN, "No stats", "Cannot verify status")
    return await _check_stats(client, stat_url, policy)
