"""
Player UI capability.

The session reports everything it wants shown through PlayerUI, so it can run
without a real page. A concrete UI owns the markup, including the manual retry
action offered alongside every error.
"""

from __future__ import annotations

import abc
from typing import Optional

from acemux.core.logging import get_logger
from acemux.player.types import StatsDisplay
from acemux.services.acestream import StreamStats

STATUS_LABELS = {"dl": "Playing", "prebuf": "Buffering"}


def _display(value: object) -> str:
    return "-" if value is None else str(value)


# PUBLIC_INTERFACE
def format_stats(stats: StreamStats) -> StatsDisplay:
    """Format engine stats for the stats bar."""
    return StatsDisplay(
        peers=_display(stats.peers),
        speed_down=_display(stats.speed_down),
        speed_up=_display(stats.speed_up),
        status=STATUS_LABELS.get(stats.status or "", stats.status or "-"),
    )


class PlayerUI(abc.ABC):
    """UI update callbacks used by PlayerSession."""

    @abc.abstractmethod
    def update_status(self, text: str, detail: str, progress: Optional[int] = None) -> None:
        """Loading overlay text and progress bar (0-100)."""

    @abc.abstractmethod
    def show_error(self, title: str, message: str, code: Optional[str] = None) -> None:
        """Replace the overlay with an error box and a manual retry action."""

    @abc.abstractmethod
    def show_retrying(self, error_type: str, detail: str, current_retry: int, max_retries: int) -> None:
        """Overlay with retry progress; current_retry is zero-based."""

    @abc.abstractmethod
    def hide_overlay(self) -> None: ...

    @abc.abstractmethod
    def show_stats_bar(self) -> None: ...

    @abc.abstractmethod
    def show_unmute_banner(self) -> None: ...

    @abc.abstractmethod
    def hide_unmute_banner(self) -> None: ...

    @abc.abstractmethod
    def set_status_text(self, text: str) -> None:
        """Status label of the stats bar."""

    @abc.abstractmethod
    def update_stats(self, display: StatsDisplay) -> None: ...

    @abc.abstractmethod
    def log_error(self, details: str, count: int, max_count: int) -> None:
        """Non-fatal error pill; critical once count reaches max_count - 1."""

    @abc.abstractmethod
    def clear_error_log(self, max_count: int) -> None: ...

    @abc.abstractmethod
    def hide_error_log(self) -> None: ...


class LoggingPlayerUI(PlayerUI):
    """Headless UI that turns every callback into a structured log line.

    Keeps the last values around so callers can inspect what a page would show.
    """

    def __init__(self, name: str = "acemux.player.ui") -> None:
        self.logger = get_logger(name)
        self.overlay_visible = True
        self.stats_bar_visible = False
        self.unmute_banner_visible = False
        self.error_log_visible = False
        self.status_text = "-"
        self.progress = 0
        self.stats = StatsDisplay()
        self.last_error: Optional[tuple] = None

    def update_status(self, text: str, detail: str, progress: Optional[int] = None) -> None:
        if progress is not None:
            self.progress = min(100, progress)
        self.logger.info(text, extra={"detail": detail, "progress": self.progress})

    def show_error(self, title: str, message: str, code: Optional[str] = None) -> None:
        self.unmute_banner_visible = False
        self.overlay_visible = True
        self.last_error = (title, message, code)
        self.logger.error(title, extra={"detail": message, "code": code})

    def show_retrying(self, error_type: str, detail: str, current_retry: int, max_retries: int) -> None:
        self.overlay_visible = True
        self.logger.warning(
            "Retrying...",
            extra={"error_type": error_type, "detail": detail, "retry": f"{current_retry + 1}/{max_retries}"},
        )

    def hide_overlay(self) -> None:
        self.overlay_visible = False

    def show_stats_bar(self) -> None:
        self.stats_bar_visible = True

    def show_unmute_banner(self) -> None:
        self.unmute_banner_visible = True

    def hide_unmute_banner(self) -> None:
        self.unmute_banner_visible = False

    def set_status_text(self, text: str) -> None:
        self.status_text = text

    def update_stats(self, display: StatsDisplay) -> None:
        self.stats = display
        self.status_text = display.status
        self.logger.debug("Stats", extra={"peers": display.peers, "down": display.speed_down, "up": display.speed_up})

    def log_error(self, details: str, count: int, max_count: int) -> None:
        self.error_log_visible = True
        level = "error" if count >= max_count - 1 else "warning"
        getattr(self.logger, level)(details, extra={"count": f"{count}/{max_count}"})

    def clear_error_log(self, max_count: int) -> None:
        self.error_log_visible = False

    def hide_error_log(self) -> None:
        self.error_log_visible = False
