"""Replay journaled history into a sink, then keep it fed with live events.

Attaching is a two-phase handoff: the sink subscribes first (live events are
held back by a gate), journaled history up to the subscription point is
replayed in sequence order, and only then are the held-back events drained
and the gate opened. Each event therefore reaches the sink exactly once and
in firing order, even if producers keep firing while history is replayed.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

from .models import Event
from .recorder import EventRecorder, flatten_journal
from .sinks import EventSink, FileEventSink

if TYPE_CHECKING:
    from config import SystemEventsConfig

logger = logging.getLogger(__name__)

EventHandler = Callable[[Event], None]


class EventSource(Protocol):
    """The slice of a host event bus the coordinator relies on."""

    @property
    def recorder(self) -> EventRecorder: ...

    def on_any(self, handler: EventHandler, *, replace: EventHandler | None = None) -> int:
        """Subscribe to every future event, optionally swapping out `replace` in the same step.

        Returns the last sequence issued so far.
        """

    def off_any(self, handler: EventHandler) -> None:
        """Remove a wildcard subscription."""


class _LiveGate:
    """Wildcard handler that buffers live events until history has been replayed."""

    def __init__(self, sink: EventSink) -> None:
        self.sink = sink
        self._lock = threading.Lock()
        self._pending: deque[Event] = deque()
        self._live = False
        self._forwarded_through = 0

    @property
    def forwarded_through(self) -> int:
        """Highest sequence handed to the sink by this gate (0 before any)."""
        with self._lock:
            return self._forwarded_through

    def __call__(self, event: Event) -> None:
        with self._lock:
            if not self._live:
                self._pending.append(event)
                return
            # Claimed before forwarding, so a concurrent re-attach never replays it.
            self._forwarded_through = max(self._forwarded_through, event.sequence)
        self.sink.process(event)

    def open(self) -> int:
        """Forward everything held back so far, then switch to direct forwarding."""
        drained = 0
        while True:
            with self._lock:
                if not self._pending:
                    self._live = True
                    return drained
                event = self._pending.popleft()
                self._forwarded_through = max(self._forwarded_through, event.sequence)
            self.sink.process(event)
            drained += 1


class ReplayCoordinator:
    """Attaches sinks to an event source with a one-time replay of its journal."""

    def __init__(self, source: EventSource) -> None:
        self._source = source
        self._gate: _LiveGate | None = None
        self._replayed_through = 0

    @property
    def replayed_through(self) -> int:
        """Sequence boundary of the last successful replay (0 before any)."""
        return self._replayed_through

    def attach_and_replay(self, sink: EventSink) -> int:
        """Replay journaled events into `sink` and subscribe it to live events.

        Only events recorded after the previous successful replay are
        replayed, and when `sink` is the one already attached, events it
        already received live are skipped as well. The previously attached
        handler is swapped out in the same step the new one is subscribed.

        Returns:
            Number of journaled events replayed.

        Raises:
            Whatever `sink.process` raises. The previous handler (if any) is
            restored and the journal is untouched, so the whole attach may be
            retried.
        """
        previous = self._gate
        gate = _LiveGate(sink)
        boundary = self._source.on_any(gate, replace=previous)

        after = self._replayed_through
        if previous is not None and previous.sink is sink:
            after = max(after, previous.forwarded_through)
        try:
            journal = self._source.recorder.snapshot(after=after, through=boundary)
            history = flatten_journal(journal)
            logger.info("Replaying %d journaled event(s) into %s", len(history), type(sink).__name__)
            for event in history:
                sink.process(event)
            drained = gate.open()
        except Exception:
            if previous is not None:
                self._source.on_any(previous, replace=gate)
            else:
                self._source.off_any(gate)
            raise

        if drained:
            logger.debug("Forwarded %d event(s) fired during replay", drained)
        self._gate = gate
        self._replayed_through = max(after, boundary)
        return len(history)


def attach_file_sink(source: EventSource, config: SystemEventsConfig | None = None) -> FileEventSink:
    """Build a file sink from `config` (or the environment) and attach it with replay.

    Raises:
        DirectoryCreateFailure: The log directory could not be created.
        WriteFailure: A replayed event could not be written; boot should abort.
    """
    if config is None:
        from config import load_config

        config = load_config().system_events

    sink = FileEventSink(config)
    ReplayCoordinator(source).attach_and_replay(sink)
    logger.info("System events are logged to %s", sink.path)
    return sink
