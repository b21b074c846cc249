"""
Player-related type definitions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class PlayerState(str, Enum):
    INITIALIZING = "initializing"
    AWAITING_MANIFEST = "awaiting_manifest"
    PREBUFFERING = "prebuffering"
    PLAYING = "playing"
    BUFFERING = "buffering"
    RETRYING = "retrying"
    TERMINAL = "terminal"


class ErrorType(str, Enum):
    """Decoder fault categories (hls.js naming)."""
    NETWORK_ERROR = "networkError"
    MEDIA_ERROR = "mediaError"
    KEY_SYSTEM_ERROR = "keySystemError"
    MUX_ERROR = "muxError"
    OTHER_ERROR = "otherError"


class DecoderEvent(str, Enum):
    MANIFEST_LOADING = "hlsManifestLoading"
    MANIFEST_PARSED = "hlsManifestParsed"
    FRAG_LOADED = "hlsFragLoaded"
    ERROR = "hlsError"


class MediaEvent(str, Enum):
    LOADED_METADATA = "loadedmetadata"
    PLAYING = "playing"
    WAITING = "waiting"
    STALLED = "stalled"
    ERROR = "error"
    VOLUME_CHANGE = "volumechange"


@dataclass(frozen=True)
class DecoderErrorData:
    type: ErrorType
    details: str = ""
    fatal: bool = False

    def __post_init__(self) -> None:
        # Bindings may pass raw hls.js strings; unknown categories count as "other".
        if not isinstance(self.type, ErrorType):
            try:
                object.__setattr__(self, "type", ErrorType(self.type))
            except ValueError:
                object.__setattr__(self, "type", ErrorType.OTHER_ERROR)


@dataclass(frozen=True)
class ManifestParsedData:
    levels: int = 0


@dataclass(frozen=True)
class StatsDisplay:
    """Stats bar values, already formatted for display."""
    peers: str = "-"
    speed_down: str = "-"
    speed_up: str = "-"
    status: str = "-"


@dataclass
class HlsConfig:
    """Decoder tuning passed through to the concrete decoder binding."""
    live_duration_infinity: bool = True
    live_back_buffer_length: int = 0
    max_buffer_length: int = 30
    max_max_buffer_length: int = 60
    manifest_loading_timeout: int = 10000
    manifest_loading_max_retry: int = 2
    manifest_loading_retry_delay: int = 1000
    level_loading_timeout: int = 10000
    level_loading_max_retry: int = 2
    level_loading_retry_delay: int = 1000
    frag_loading_timeout: int = 10000
    frag_loading_max_retry: int = 2
    frag_loading_retry_delay: int = 1000


@dataclass
class PlayerConfig:
    max_retries: int = 3
    max_non_fatal_errors: int = 3
    # seconds
    stats_polling_interval: float = 3.0
    retry_backoff: float = 2.0
    hls: HlsConfig = field(default_factory=HlsConfig)
