from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import timezone

import pytest
from pydantic import ValidationError

from system_events import Event, EventRecorder, flatten_journal


def test_record_assigns_increasing_sequence_and_utc_timestamp() -> None:
    recorder = EventRecorder()

    first = recorder.record("a", ["x"])
    second = recorder.record("b")
    third = recorder.record("a", (1, 2))

    assert [first.sequence, second.sequence, third.sequence] == [1, 2, 3]
    assert first.args == ("x",)
    assert second.args == ()
    assert first.timestamp.tzinfo == timezone.utc
    assert recorder.last_sequence == 3
    assert len(recorder) == 3

    journal = recorder.snapshot()
    assert [e.sequence for e in journal["a"]] == [1, 3]
    assert [e.sequence for e in journal["b"]] == [2]


def test_record_rejects_empty_name() -> None:
    with pytest.raises(ValueError):
        EventRecorder().record("")


def test_events_are_immutable() -> None:
    event = EventRecorder().record("a")
    with pytest.raises(ValidationError):
        event.name = "b"  # type: ignore[misc]


def test_snapshot_is_a_copy_and_can_be_bounded() -> None:
    recorder = EventRecorder()
    for name in ["a", "b", "a", "c", "b"]:
        recorder.record(name)

    snap = recorder.snapshot()
    snap["a"].clear()
    assert len(recorder.snapshot()["a"]) == 2

    window = recorder.snapshot(after=1, through=4)
    assert sorted(e.sequence for events in window.values() for e in events) == [2, 3, 4]
    assert "a" in window and "c" in window


def test_flatten_orders_by_sequence_across_names() -> None:
    recorder = EventRecorder()
    recorder.append(Event(name="a", args=("second",), sequence=2))
    recorder.append(Event(name="a", args=("first",), sequence=1))
    recorder.append(Event(name="b", args=("third",), sequence=3))

    flattened = flatten_journal(recorder.snapshot())

    assert [e.sequence for e in flattened] == [1, 2, 3]
    assert [e.args[0] for e in flattened] == ["first", "second", "third"]
    assert recorder.last_sequence == 3


def test_concurrent_record_never_reuses_a_sequence() -> None:
    recorder = EventRecorder()

    def produce(worker: int) -> None:
        for i in range(200):
            recorder.record(f"worker.{worker}", [i])

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(produce, range(8)))

    sequences = [e.sequence for e in flatten_journal(recorder.snapshot())]
    assert sequences == list(range(1, 1601))

    # Per-name arrival order matches sequence order.
    for events in recorder.snapshot().values():
        assert [e.args[0] for e in events] == list(range(200))
