"""
Decoder and media element capabilities the player session drives.

The session never touches a concrete HLS implementation. A binding only has to
implement the small Decoder interface below and emit DecoderEvent events; the
media element emits MediaEvent events. NativeElementDecoder covers elements
that decode HLS themselves (no separate decoder library).
"""

from __future__ import annotations

import abc
from typing import Optional

from acemux.player.events import EventEmitter
from acemux.player.types import HlsConfig


class AutoplayRejected(Exception):
    """play() was refused until a user gesture happens; not a playback fault."""


class MediaElement(EventEmitter, abc.ABC):
    """The video element: mute state, last error, play()."""

    @property
    @abc.abstractmethod
    def muted(self) -> bool: ...

    @muted.setter
    @abc.abstractmethod
    def muted(self, value: bool) -> None: ...

    @property
    def error_message(self) -> Optional[str]:
        return None

    @abc.abstractmethod
    async def play(self) -> None:
        """Start playback; may raise AutoplayRejected."""


class NativeMediaElement(MediaElement):
    """An element that decodes HLS itself and can be pointed at a manifest URL."""

    @abc.abstractmethod
    def set_source(self, url: Optional[str]) -> None:
        """Set (or clear, with None) the element's source URL."""

    @abc.abstractmethod
    def load(self) -> None:
        """Reload the current source."""


class Decoder(EventEmitter, abc.ABC):
    """HLS decoder handle."""

    config: Optional[HlsConfig] = None

    def configure(self, config: HlsConfig) -> None:
        self.config = config

    @abc.abstractmethod
    def load_source(self, url: str) -> None: ...

    @abc.abstractmethod
    def attach_media(self, element: MediaElement) -> None: ...

    @abc.abstractmethod
    def recover_media_error(self) -> None: ...

    @abc.abstractmethod
    def destroy(self) -> None: ...


class NativeElementDecoder(Decoder):
    """Binding for elements with built-in HLS support.

    Loading a source sets it on the element; media recovery reloads it. The
    element reports its own faults, so this binding emits no decoder events.
    """

    def __init__(self) -> None:
        super().__init__()
        self.element: Optional[NativeMediaElement] = None
        self.source: Optional[str] = None

    def attach_media(self, element: MediaElement) -> None:
        if not isinstance(element, NativeMediaElement):
            raise TypeError("NativeElementDecoder needs an element with native HLS support")
        self.element = element
        if self.source:
            element.set_source(self.source)

    def load_source(self, url: str) -> None:
        self.source = url
        if self.element is not None:
            self.element.set_source(url)

    def recover_media_error(self) -> None:
        if self.element is not None:
            self.element.load()

    def destroy(self) -> None:
        if self.element is not None:
            self.element.set_source(None)
        self.element = None
        self.remove_all_listeners()
