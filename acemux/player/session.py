"""
Player session: drives one video element from manifest lookup to playback,
retrying fatal decoder faults and giving up after too many errors.

Flow:
- init(): resolve playback/stats URLs through the proxy (JSON manifest, falling
  back to direct HLS), then wire decoder and element events and load the source.
- fatal decoder errors: network faults reload after retry_backoff * n seconds,
  media faults use the decoder's own recovery, anything else is terminal. The
  max_retries-th fatal error is terminal regardless of category.
- non-fatal decoder errors: counted separately; max_non_fatal_errors of them
  is terminal even if no fatal error ever happened.
- playing: a recovery clears both counters, then stats polling starts.

Terminal failure tears the session down once; later error events are ignored.
All timers belong to the session and are cancelled by destroy().
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Set, Tuple

import httpx

from acemux.core.logging import get_logger
from acemux.player.decoder import AutoplayRejected, Decoder, MediaElement
from acemux.player.types import (
    DecoderErrorData,
    DecoderEvent,
    ErrorType,
    MediaEvent,
    PlayerConfig,
    PlayerState,
)
from acemux.player.ui import PlayerUI, format_stats
from acemux.services.acestream import build_stream_urls, fetch_stats, fetch_stream_info

logger = get_logger("acemux.player")

# Terminal messages by fatal error category; None is the fallback.
FATAL_MESSAGES: Dict[Optional[ErrorType], Tuple[str, str]] = {
    ErrorType.NETWORK_ERROR: (
        "Network Error",
        "Failed to connect to the stream. The AceStream server may be unavailable "
        "or the stream ID may be invalid.",
    ),
    ErrorType.MEDIA_ERROR: (
        "Media Error",
        "Failed to play the stream. The stream may be corrupted or incompatible.",
    ),
    None: ("Playback Error", "An unexpected error occurred while playing the stream."),
}


class PlayerSession:
    """State machine for one playing stream.

    Collaborators are injected: a Decoder binding, the MediaElement it renders
    into, a PlayerUI, and an httpx client whose base URL is the proxy origin.
    """

    def __init__(
        self,
        stream_id: str,
        decoder: Decoder,
        element: MediaElement,
        ui: PlayerUI,
        http_client: httpx.AsyncClient,
        config: Optional[PlayerConfig] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.stream_id = stream_id
        self.decoder = decoder
        self.element = element
        self.ui = ui
        self.http_client = http_client
        self.config = config or PlayerConfig()
        self._loop = loop

        self.state = PlayerState.INITIALIZING
        self.playback_url = ""
        self.stat_url: Optional[str] = None
        self.retry_count = 0
        self.non_fatal_error_count = 0
        self.terminal = False

        self._retry_handle: Optional[asyncio.TimerHandle] = None
        self._stats_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False
        self._decoder_started = False
        self._decoder_released = False
        self._overlay_visible = True
        self._stats_bar_visible = False

        self.element.on(MediaEvent.VOLUME_CHANGE, self._on_volume_change)

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def _set_state(self, state: PlayerState) -> None:
        if state is not self.state:
            logger.debug(
                "Player state change",
                extra={"stream_id": self.stream_id, "from_state": self.state.value, "to_state": state.value},
            )
        self.state = state

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def init(self) -> None:
        """Resolve URLs and start the decoder. Never raises for network problems."""
        urls = build_stream_urls(self.stream_id)
        self.ui.update_status("Connecting to AceStream...", "Requesting stream manifest", 10)

        self._set_state(PlayerState.AWAITING_MANIFEST)
        self.ui.update_status("Initializing stream...", "Waiting for AceStream engine", 20)
        info = await fetch_stream_info(self.http_client, urls.json_src, urls.hls_src)
        if self._closed:
            return
        self.playback_url = info.playback_url
        self.stat_url = info.stat_url

        self._set_state(PlayerState.PREBUFFERING)
        self.ui.update_status("Prebuffering...", "AceStream is loading the content", 40)

        try:
            self._start_decoder()
        except Exception as exc:
            logger.exception("Stream initialization error", extra={"stream_id": self.stream_id})
            self.ui.show_error(
                "Connection Error",
                "Failed to initialize the stream. Make sure AceStream Engine is running.",
                str(exc),
            )

    def _start_decoder(self) -> None:
        decoder, element = self.decoder, self.element

        decoder.on(DecoderEvent.MANIFEST_LOADING, self._on_manifest_loading)
        decoder.on(DecoderEvent.MANIFEST_PARSED, self._on_manifest_parsed)
        decoder.on(DecoderEvent.FRAG_LOADED, self._on_frag_loaded)
        decoder.on(DecoderEvent.ERROR, self._on_decoder_error)

        element.on(MediaEvent.LOADED_METADATA, self._on_loaded_metadata)
        element.on(MediaEvent.PLAYING, self._on_playing)
        element.on(MediaEvent.WAITING, self._on_waiting)
        element.on(MediaEvent.STALLED, self._on_waiting)
        element.on(MediaEvent.ERROR, self._on_element_error)

        self._decoder_started = True
        decoder.configure(self.config.hls)
        decoder.attach_media(element)
        decoder.load_source(self.playback_url)

    # ------------------------------------------------------------------
    # Decoder events
    # ------------------------------------------------------------------

    def _on_manifest_loading(self, *_: Any) -> None:
        self.ui.update_status("Loading manifest...", "Fetching stream information", 50)

    def _on_manifest_parsed(self, data: Any = None) -> None:
        levels = getattr(data, "levels", 0)
        self.ui.update_status("Starting playback...", f"Found {levels} quality level(s)", 80)

    def _on_frag_loaded(self, *_: Any) -> None:
        if self._overlay_visible:
            self.ui.update_status("Buffering...", "Loading video segments", 90)

    def _on_decoder_error(self, data: DecoderErrorData) -> None:
        logger.warning(
            "Decoder error",
            extra={"stream_id": self.stream_id, "error_type": data.type.value, "details": data.details, "fatal": data.fatal},
        )
        if self.terminal or self._closed:
            return

        if data.fatal:
            self._handle_fatal_error(data)
        else:
            self._handle_non_fatal_error(data)

    def _handle_fatal_error(self, data: DecoderErrorData) -> None:
        max_retries = self.config.max_retries
        self.retry_count += 1

        if self.retry_count >= max_retries:
            title, message = FATAL_MESSAGES.get(data.type, FATAL_MESSAGES[None])
            self.stop_with_error(title, message)
            return

        if data.type is ErrorType.NETWORK_ERROR:
            self._set_state(PlayerState.RETRYING)
            self._show_retrying("Network Error", data.details or "Connection lost")
            self._schedule_reload(self.config.retry_backoff * self.retry_count)
        elif data.type is ErrorType.MEDIA_ERROR:
            self._set_state(PlayerState.RETRYING)
            self._show_retrying("Media Error", data.details or "Playback issue detected")
            self.decoder.recover_media_error()
        else:
            self.stop_with_error(*FATAL_MESSAGES[None])

    def _show_retrying(self, error_type: str, detail: str) -> None:
        self._overlay_visible = True
        self.ui.show_retrying(error_type, detail, self.retry_count - 1, self.config.max_retries)

    def _schedule_reload(self, delay: float) -> None:
        if self._closed:
            return
        if self._retry_handle is not None:
            self._retry_handle.cancel()
        logger.info(
            "Scheduling stream reload",
            extra={"stream_id": self.stream_id, "retry": self.retry_count, "delay_seconds": delay},
        )
        self._retry_handle = self.loop.call_later(delay, self._reload)

    def _reload(self) -> None:
        self._retry_handle = None
        if self.terminal or self._closed:
            return
        self.decoder.load_source(self.playback_url)

    def _handle_non_fatal_error(self, data: DecoderErrorData) -> None:
        max_errors = self.config.max_non_fatal_errors
        self.non_fatal_error_count += 1
        count = self.non_fatal_error_count

        self.ui.log_error(data.details or "Unknown error", count, max_errors)
        if self._stats_bar_visible:
            self.ui.set_status_text(f"Unstable ({count}/{max_errors})")

        if count >= max_errors:
            self.stop_with_error(
                "Stream Unstable",
                "Too many errors occurred. The stream may be unavailable or experiencing issues.",
                f"Last error: {data.details or 'Multiple non-fatal errors'}",
            )

    # ------------------------------------------------------------------
    # Element events
    # ------------------------------------------------------------------

    def _on_loaded_metadata(self, *_: Any) -> None:
        self.ui.update_status("Starting playback...", "Stream loaded", 80)
        self._try_play()

    def _on_playing(self, *_: Any) -> None:
        if self.terminal or self._closed:
            return

        if self.retry_count > 0 or self.non_fatal_error_count > 0:
            logger.info(
                "Playback recovered",
                extra={"stream_id": self.stream_id, "retries": self.retry_count, "non_fatal": self.non_fatal_error_count},
            )
            self.retry_count = 0
            self.non_fatal_error_count = 0
            self.ui.clear_error_log(self.config.max_non_fatal_errors)

        self._set_state(PlayerState.PLAYING)
        self.ui.update_status("Playing", "Stream started", 100)
        self._overlay_visible = False
        self.ui.hide_overlay()
        self._stats_bar_visible = True
        self.ui.show_stats_bar()
        if self.element.muted:
            self.ui.show_unmute_banner()
        self._start_stats_polling()

    def _on_waiting(self, *_: Any) -> None:
        if self.terminal or self._closed:
            return
        if self.state is PlayerState.PLAYING:
            self._set_state(PlayerState.BUFFERING)
        if self._stats_bar_visible:
            self.ui.set_status_text("Buffering...")

    def _on_element_error(self, *_: Any) -> None:
        if self.terminal or self._closed:
            return
        message = self.element.error_message or "Unknown playback error"
        logger.error("Video element error", extra={"stream_id": self.stream_id, "details": message})
        self._overlay_visible = True
        self.ui.show_error("Playback Error", "Failed to load the stream", message)

    def _on_volume_change(self, *_: Any) -> None:
        if not self.element.muted:
            self.ui.hide_unmute_banner()

    def unmute(self) -> None:
        """User asked for sound (banner click)."""
        self.element.muted = False
        self.ui.hide_unmute_banner()

    def _try_play(self) -> None:
        if self._closed:
            return
        task = self.loop.create_task(self._play())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _play(self) -> None:
        try:
            await self.element.play()
        except AutoplayRejected:
            logger.debug("Autoplay prevented; waiting for user gesture", extra={"stream_id": self.stream_id})
        except Exception as exc:
            logger.warning("play() failed", extra={"stream_id": self.stream_id, "error": str(exc)})

    # ------------------------------------------------------------------
    # Stats polling
    # ------------------------------------------------------------------

    def _start_stats_polling(self) -> None:
        if not self.stat_url or self._stats_task is not None or self._closed:
            return
        self._stats_task = self.loop.create_task(self._poll_stats_forever())

    async def _poll_stats_forever(self) -> None:
        while not self._closed:
            await self.poll_stats()
            await asyncio.sleep(self.config.stats_polling_interval)

    async def poll_stats(self) -> None:
        """One stats tick; failures are skipped."""
        if not self.stat_url:
            return
        stats = await fetch_stats(self.http_client, self.stat_url)
        if stats is not None and not self._closed:
            self.ui.update_stats(format_stats(stats))

    # ------------------------------------------------------------------
    # Terminal / teardown
    # ------------------------------------------------------------------

    def stop_with_error(self, title: str, message: str, code: Optional[str] = None) -> None:
        """Enter the terminal state: tear down and show the error."""
        if self.terminal:
            return
        self.terminal = True
        self._set_state(PlayerState.TERMINAL)
        logger.error(title, extra={"stream_id": self.stream_id, "details": message, "code": code})

        self._teardown()

        self.ui.hide_unmute_banner()
        self.ui.hide_error_log()
        self.ui.set_status_text("Error")
        self._overlay_visible = True
        self.ui.show_error(title, message, code)

    def destroy(self) -> None:
        """Release timers and the decoder. Safe to call more than once."""
        self._teardown()

    def _teardown(self) -> None:
        self._closed = True

        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None
        if self._stats_task is not None:
            self._stats_task.cancel()
            self._stats_task = None
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

        if self._decoder_started and not self._decoder_released:
            self._decoder_released = True
            self.decoder.destroy()
