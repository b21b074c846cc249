"""
Tests for the AceStream engine helpers used by the player and the status probe.
"""

import httpx
import pytest

from acemux.services.acestream import (
    StreamInfo,
    StreamStats,
    build_stream_urls,
    fetch_stats,
    fetch_stream_info,
)

JSON_SRC = "/ace/manifest.m3u8?id=abc&format=json"
HLS_SRC = "/ace/manifest.m3u8?id=abc"


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://testserver")


def test_build_stream_urls_encodes_id():
    urls = build_stream_urls("a/b c")
    assert urls.json_src == "/ace/manifest.m3u8?id=a%2Fb%20c&format=json"
    assert urls.hls_src == "/ace/manifest.m3u8?id=a%2Fb%20c"


def test_stats_from_payload_tolerates_missing_keys():
    stats = StreamStats.from_payload({"peers": 4, "status": "dl", "unexpected": True})
    assert stats.peers == 4
    assert stats.status == "dl"
    assert stats.speed_down is None


def test_stats_from_payload_coerces_numbers():
    stats = StreamStats.from_payload(
        {"peers": "3", "speed_down": "120", "speed_up": 4.0, "status": "dl", "downloaded": "lots", "uploaded": True}
    )
    assert stats == StreamStats(peers=3, speed_down=120, speed_up=4, status="dl")

    stats = StreamStats.from_payload({"peers": [1], "status": 7, "total_progress": " 42 "})
    assert stats.peers is None
    assert stats.status is None
    assert stats.total_progress == 42


@pytest.mark.asyncio
async def test_stream_info_success_rewrites_urls():
    def handler(request):
        assert request.url.path == "/ace/manifest.m3u8"
        return httpx.Response(
            200,
            json={
                "response": {
                    "playback_url": "http://127.0.0.1:6878/ace/m/abc/123.m3u8",
                    "stat_url": "http://127.0.0.1:6878/ace/stat/abc/123",
                }
            },
        )

    async with make_client(handler) as client:
        info = await fetch_stream_info(client, JSON_SRC, HLS_SRC)

    assert info == StreamInfo(playback_url="/ace/m/abc/123.m3u8", stat_url="/ace/stat/abc/123")


@pytest.mark.asyncio
async def test_stream_info_reads_top_level_fields():
    async with make_client(
        lambda request: httpx.Response(200, json={"playback_url": "/ace/m/x.m3u8", "stat_url": "/ace/stat/x"})
    ) as client:
        info = await fetch_stream_info(client, JSON_SRC, HLS_SRC)
    assert info.playback_url == "/ace/m/x.m3u8"
    assert info.stat_url == "/ace/stat/x"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(404),
        httpx.Response(500, json={"response": {"playback_url": "/ace/m/x.m3u8"}}),
        httpx.Response(200, content=b"not json"),
        httpx.Response(200, json=["unexpected"]),
        httpx.Response(200, json={"error": "stream not found"}),
        httpx.Response(200, json={"response": {"playback_url": 123}}),
        httpx.Response(200, json={"response": {"playback_url": ["/ace/m/x.m3u8"], "stat_url": 5}}),
        httpx.Response(200, json={"playback_url": {"url": "/ace/m/x.m3u8"}}),
    ],
)
async def test_stream_info_falls_back_to_direct_hls(response):
    async with make_client(lambda request: response) as client:
        info = await fetch_stream_info(client, JSON_SRC, HLS_SRC)
    assert info == StreamInfo(playback_url=HLS_SRC, stat_url=None)


@pytest.mark.asyncio
async def test_stream_info_missing_playback_url_keeps_stats():
    payload = {"response": {"stat_url": "http://10.0.0.5:6878/ace/stat/x"}}
    async with make_client(lambda request: httpx.Response(200, json=payload)) as client:
        info = await fetch_stream_info(client, JSON_SRC, HLS_SRC)
    assert info == StreamInfo(playback_url=HLS_SRC, stat_url="/ace/stat/x")


@pytest.mark.asyncio
async def test_stream_info_network_failure_falls_back():
    def handler(request):
        raise httpx.ConnectError("Connection refused")

    async with make_client(handler) as client:
        info = await fetch_stream_info(client, JSON_SRC, HLS_SRC)
    assert info == StreamInfo(playback_url=HLS_SRC, stat_url=None)


@pytest.mark.asyncio
async def test_fetch_stats_unwraps_response():
    payload = {"response": {"peers": 7, "speed_down": 320, "speed_up": 12, "status": "dl"}}
    async with make_client(lambda request: httpx.Response(200, json=payload)) as client:
        stats = await fetch_stats(client, "/ace/stat/abc/123")
    assert stats.peers == 7
    assert stats.speed_down == 320
    assert stats.speed_up == 12
    assert stats.status == "dl"


@pytest.mark.asyncio
async def test_fetch_stats_failures_return_none():
    async with make_client(lambda request: httpx.Response(503)) as client:
        assert await fetch_stats(client, "/ace/stat/abc/123") is None

    def boom(request):
        raise httpx.ReadTimeout("timed out")

    async with make_client(boom) as client:
        assert await fetch_stats(client, "/ace/stat/abc/123") is None
