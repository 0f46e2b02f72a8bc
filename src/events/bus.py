"""In-process event bus for the host application.

Every fired event is journaled first, whether or not anyone listens yet, so
sinks attached later can replay what happened during startup.

- Named handlers (`on`) receive only events fired under that name.
- Wildcard handlers (`on_any`) receive every event, in firing order.

Handlers run synchronously in the firing thread; their errors propagate to
whoever called `fire`.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from system_events.models import Event
from system_events.recorder import EventRecorder

EventHandler = Callable[[Event], None]


class EventBus:
    """Fan-out bus for named events with a journal of everything fired."""

    def __init__(self, *, recorder: EventRecorder | None = None) -> None:
        """Create a bus journaling into `recorder` (a fresh one by default)."""
        self._recorder = recorder if recorder is not None else EventRecorder()
        self._lock = threading.Lock()
        self._handlers: dict[str, list[EventHandler]] = {}
        self._wildcard: list[EventHandler] = []

    @property
    def recorder(self) -> EventRecorder:
        return self._recorder

    def on(self, name: str, handler: EventHandler) -> None:
        """Subscribe `handler` to events fired under `name`."""
        with self._lock:
            self._handlers.setdefault(name, []).append(handler)

    def on_any(self, handler: EventHandler, *, replace: EventHandler | None = None) -> int:
        """Subscribe `handler` to every future event.

        If `replace` is subscribed, it is removed in the same step, so no
        event reaches both handlers and none falls between them.

        Returns the last sequence number issued before the subscription took
        effect: events up to it are only in the journal, events after it are
        delivered to `handler`.
        """
        with self._lock:
            if replace is not None and replace in self._wildcard:
                self._wildcard.remove(replace)
            self._wildcard.append(handler)
            return self._recorder.last_sequence

    def off_any(self, handler: EventHandler) -> None:
        """Remove a wildcard subscription (no-op if not subscribed)."""
        with self._lock:
            if handler in self._wildcard:
                self._wildcard.remove(handler)

    def fire(self, name: str, *args: object) -> Event:
        """Journal an event and deliver it to wildcard, then named, handlers."""
        with self._lock:
            event = self._recorder.record(name, args)
            handlers = [*self._wildcard, *self._handlers.get(name, ())]
        for handler in handlers:
            handler(event)
        return event

    def events(self) -> dict[str, list[Event]]:
        """Return a point-in-time copy of the journal, keyed by event name."""
        return self._recorder.snapshot()
