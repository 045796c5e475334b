from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, ClassVar, TypeVar

E = TypeVar("E", bound="Event")

Handler = Callable[[Any], None]


class Event:
    """Base for every payload delivered through an :class:`EventChannel`.

    Subclasses are frozen dataclasses and set ``kind`` to a stable,
    human-readable event name.
    """

    kind: ClassVar[str] = "event"


class EventChannel:
    """Synchronous publish/subscribe registry keyed by event type.

    Handlers run in subscription order on the emitting call stack. Emitting a
    type nobody listens to is a no-op. A handler that raises is logged and
    skipped so one broken consumer cannot break the producer or the other
    consumers.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger("studentbackup.events")
        self._handlers: dict[type[Event], list[Handler]] = defaultdict(list)
        self._catch_all: list[Handler] = []

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def subscribe_all(self, handler: Callable[[Event], None]) -> Callable[[], None]:
        self._catch_all.append(handler)

        def unsubscribe() -> None:
            if handler in self._catch_all:
                self._catch_all.remove(handler)

        return unsubscribe

    def handler_count(self, event_type: type[Event] | None = None) -> int:
        if event_type is None:
            return len(self._catch_all) + sum(len(items) for items in self._handlers.values())
        return len(self._handlers.get(event_type, []))

    def emit(self, event: Event) -> None:
        handlers = [*self._handlers.get(type(event), []), *self._catch_all]
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                self._logger.exception("Event handler failed for %s", event.kind)
