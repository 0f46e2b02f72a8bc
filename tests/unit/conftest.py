from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _no_threads_in_unit_tests(monkeypatch: pytest.MonkeyPatch):
    """Run `asyncio.to_thread` inline for unit tests.

    `FileEventSink.aprocess` offloads the blocking append to a worker thread.
    In unit tests, this can create threadpool workers that keep the Python
    process alive longer than expected under some runtimes.
    """

    async def _to_thread(func, /, *args, **kwargs):  # noqa: ANN001, D401
        return func(*args, **kwargs)

    monkeypatch.setattr("system_events.sinks.asyncio.to_thread", _to_thread)
    yield


@pytest.fixture(autouse=True)
def _clean_system_events_env(monkeypatch: pytest.MonkeyPatch):
    """Keep a developer's shell configuration out of unit tests."""
    for name in ["LOG_FILE_PATH", "CUSTOM_LOG_TEMPLATE", "CUSTOM_LOG_PLACEHOLDERS", "LOG_LEVEL"]:
        monkeypatch.delenv(name, raising=False)
    yield
