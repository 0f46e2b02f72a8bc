"""End-to-end boot flows driven purely by environment configuration."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from events import EventBus
from main import run_demo
from system_events import attach_file_sink


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.chdir(tmp_path)
    for name in ["LOG_FILE_PATH", "CUSTOM_LOG_TEMPLATE", "CUSTOM_LOG_PLACEHOLDERS", "LOG_LEVEL"]:
        monkeypatch.delenv(name, raising=False)
    yield


def _default_log_file(base: Path) -> Path:
    return base / "logs" / f"{date.today():%Y-%m-%d}-system-events.log"


def test_boot_with_custom_template_and_placeholders(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    log_file = tmp_path / "events_test.log"
    monkeypatch.setenv("LOG_FILE_PATH", str(log_file))
    monkeypatch.setenv("CUSTOM_LOG_PLACEHOLDERS", '{"{{appVersion}}":"1.2.3","{{env}}":"testing"}')
    monkeypatch.setenv(
        "CUSTOM_LOG_TEMPLATE",
        "[{{timestamp}}] System Event: {{eventName}} | App Version: {{appVersion}} | Environment: {{env}}\\n",
    )

    bus = EventBus()
    bus.fire("console.service.booted", "ConsoleService booted.")
    sink = attach_file_sink(bus)
    try:
        bus.fire("custom.event1", "value1", 34)
        bus.fire("custom.event2", "value2", 11)
    finally:
        sink.close()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    assert all("System Event:" in line and "App Version: 1.2.3 | Environment: testing" in line for line in lines)
    assert [line.split("System Event: ")[1].split(" |")[0] for line in lines] == [
        "console.service.booted",
        "custom.event1",
        "custom.event2",
    ]


def test_boot_with_defaults_writes_daily_file(tmp_path: Path) -> None:
    bus = run_demo()

    log_file = _default_log_file(tmp_path)
    assert log_file.exists()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert [line.split("Event: ")[1].split(";")[0] for line in lines] == [
        "app.booting",
        "config.loaded",
        "app.booted",
        "demo.event",
        "app.terminating",
    ]
    assert 'Args: ["value1",42,{"nested":["a/b","ü"]}]' in lines[3]
    assert len(bus.recorder) == 5


def test_boot_with_custom_template_only(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CUSTOM_LOG_TEMPLATE", "[CustomTemplate] Event: {{eventName}}\\n")

    bus = EventBus()
    sink = attach_file_sink(bus)
    bus.fire("custom.event")
    sink.close()

    assert _default_log_file(tmp_path).read_text(encoding="utf-8") == "[CustomTemplate] Event: custom.event\n"


def test_boot_with_malformed_placeholders_still_logs(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CUSTOM_LOG_TEMPLATE", "Env: {{env}}, Event: {{eventName}}\\n")
    monkeypatch.setenv("CUSTOM_LOG_PLACEHOLDERS", "{broken")

    bus = EventBus()
    bus.fire("early.event")
    sink = attach_file_sink(bus)
    sink.close()

    assert _default_log_file(tmp_path).read_text(encoding="utf-8") == "Env: {{env}}, Event: early.event\n"
