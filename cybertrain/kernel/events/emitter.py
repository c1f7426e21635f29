"""
Synchronous observer list for catalog events.

Listeners run in registration order. A raising listener is logged and skipped;
it never breaks the emitter or the other listeners.
"""

from collections import defaultdict
from typing import Callable, DefaultDict, List, Union

from cybertrain.kernel.events.event_types import BaseEvent, CatalogEventType
from cybertrain.logging_config import get_logger

logger = get_logger(__name__)

Listener = Callable[[BaseEvent], None]
EventName = Union[CatalogEventType, str]


def _key(event: EventName) -> str:
    return event.value if isinstance(event, CatalogEventType) else event


class EventEmitter:
    """Named events with any number of listeners each."""

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)

    def on(self, event: EventName, listener: Listener) -> None:
        self._listeners[_key(event)].append(listener)

    def off(self, event: EventName, listener: Listener) -> None:
        listeners = self._listeners.get(_key(event))
        if listeners and listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: EventName) -> int:
        return len(self._listeners.get(_key(event), []))

    def emit(self, event: EventName, payload: BaseEvent) -> int:
        """Deliver payload to every listener; returns how many ran without raising."""
        name = _key(event)
        delivered = 0
        # Copy so listeners may unsubscribe while being notified
        for listener in list(self._listeners.get(name, [])):
            try:
                listener(payload)
                delivered += 1
            except Exception:
                logger.exception("Error in event listener", extra={"event": name})
        return delivered
