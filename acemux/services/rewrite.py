"""
URL rewriting for AceStream engine responses.

The engine only knows its own internal address (loopback, container name or
LAN IP), and embeds absolute URLs such as ``http://127.0.0.1:6878/ace/...`` in
its JSON and playlist bodies. Browsers outside the engine's network cannot reach
those, so every such URL is turned into a path relative to the proxy origin.

The proxy and the player share this single rule.
"""

from __future__ import annotations

import re
from typing import Optional

ENGINE_PORT = 6878

# `http://<anything but '/'>:6878/ace/`; the host part never spans a path segment
ENGINE_URL_PATTERN = re.compile(r"http://[^/]+:%d/ace/" % ENGINE_PORT)


# PUBLIC_INTERFACE
def rewrite_engine_urls(text: str) -> str:
    """Replace every engine-internal ``http://host:6878/ace/`` prefix with ``/ace/``."""
    return ENGINE_URL_PATTERN.sub("/ace/", text)


# PUBLIC_INTERFACE
def proxy_url(url: Optional[str]) -> Optional[str]:
    """Rewrite a single engine URL to its proxy-relative form.

    Empty values pass through untouched so callers can chain ``or`` fallbacks.
    """
    if not url:
        return url
    return rewrite_engine_urls(url)
