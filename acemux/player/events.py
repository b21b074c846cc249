"""
Minimal synchronous event emitter shared by decoder and media element bindings.
"""

from __future__ import annotations

from collections import defaultdict
from enum import Enum
from typing import Any, Callable, DefaultDict, List, Union

from acemux.core.logging import get_logger

logger = get_logger("acemux.player.events")

Handler = Callable[..., Any]
EventName = Union[str, Enum]


def _key(event: EventName) -> str:
    return event.value if isinstance(event, Enum) else event


class EventEmitter:
    """Handlers run in registration order; one failing handler does not stop the others."""

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)

    def on(self, event: EventName, handler: Handler) -> None:
        self._handlers[_key(event)].append(handler)

    def off(self, event: EventName, handler: Handler) -> None:
        handlers = self._handlers.get(_key(event), [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: EventName, *args: Any) -> None:
        for handler in list(self._handlers.get(_key(event), [])):
            try:
                handler(*args)
            except Exception:
                logger.exception("Event handler failed", extra={"event": _key(event)})

    def remove_all_listeners(self) -> None:
        self._handlers.clear()
