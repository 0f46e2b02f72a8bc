"""Demo entrypoint wiring the event bus to the system events log.

This module intentionally contains a small, end-to-end "smoke test" that:

- Loads configuration from environment.
- Fires a few events before any sink exists (they are only journaled).
- Attaches the file sink, which replays that history in firing order.
- Fires a few more events that are written live.

It is **not** intended to be production boot logic; it is a convenient
manual harness for checking templates and log destinations.
"""

from __future__ import annotations

import logging
import os

from config import load_config
from events import EventBus
from system_events import attach_file_sink


def run_demo() -> EventBus:
    """Boot a bus, attach the file sink, and fire a handful of events."""
    cfg = load_config()
    logging.basicConfig(level=cfg.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    bus = EventBus()
    bus.fire("app.booting", {"pid": os.getpid()})
    bus.fire("config.loaded", str(cfg.system_events.path or "default"))

    sink = attach_file_sink(bus, cfg.system_events)
    try:
        bus.fire("app.booted")
        bus.fire("demo.event", "value1", 42, {"nested": ["a/b", "ü"]})
        bus.fire("app.terminating")
    finally:
        sink.close()
    return bus


def main() -> None:
    """CLI entrypoint for running the demo with `python src/main.py`."""
    run_demo()


if __name__ == "__main__":
    main()
