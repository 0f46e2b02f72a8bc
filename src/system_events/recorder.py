"""In-memory journal of fired events.

Every event is journaled under its name with a globally unique sequence
number, so history can later be replayed in true firing order even though it
is stored grouped by name.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from .models import Event, utc_now


def flatten_journal(journal: Mapping[str, Sequence[Event]]) -> list[Event]:
    """Merge per-name event lists into one list ordered by `sequence`.

    Per-name lists interleave with each other, so they must be reconciled
    globally rather than replayed name by name.
    """
    merged = [event for events in journal.values() for event in events]
    merged.sort(key=lambda e: e.sequence)
    return merged


class EventRecorder:
    """Append-only, thread-safe journal keyed by event name.

    There is no eviction: the journal lives for the lifetime of the process.
    """

    def __init__(self) -> None:
        """Create an empty journal; the first recorded event gets sequence 1."""
        self._lock = threading.Lock()
        self._journal: dict[str, list[Event]] = {}
        self._last_sequence = 0
        self._count = 0

    def record(self, name: str, args: Iterable[Any] = ()) -> Event:
        """Journal a new event, assigning the next sequence number and the current time."""
        if not name:
            raise ValueError("event name must be a non-empty string")
        args = tuple(args)
        with self._lock:
            self._last_sequence += 1
            event = Event(name=name, args=args, sequence=self._last_sequence, timestamp=utc_now())
            self._store(event)
        return event

    def append(self, event: Event) -> None:
        """Journal an already-built event as-is (its sequence is trusted)."""
        with self._lock:
            self._last_sequence = max(self._last_sequence, event.sequence)
            self._store(event)

    def _store(self, event: Event) -> None:
        self._journal.setdefault(event.name, []).append(event)
        self._count += 1

    @property
    def last_sequence(self) -> int:
        """Highest sequence number issued or appended so far (0 when empty)."""
        with self._lock:
            return self._last_sequence

    def snapshot(self, *, after: int | None = None, through: int | None = None) -> dict[str, list[Event]]:
        """Return a point-in-time copy of the journal.

        Args:
            after: Only include events with a sequence strictly greater than this.
            through: Only include events with a sequence less than or equal to this.
        """
        with self._lock:
            copy: dict[str, list[Event]] = {}
            for name, events in self._journal.items():
                selected = [
                    e
                    for e in events
                    if (after is None or e.sequence > after) and (through is None or e.sequence <= through)
                ]
                if selected:
                    copy[name] = selected
            return copy

    def __len__(self) -> int:
        with self._lock:
            return self._count
