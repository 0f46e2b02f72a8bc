"""System event sinks (storage backends)."""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from collections.abc import Mapping, Sequence
from contextlib import suppress
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Protocol

import portalocker

from .errors import DirectoryCreateFailure, WriteFailure
from .formatter import format_event
from .models import DEFAULT_TEMPLATE, Event, TemplateConfig

if TYPE_CHECKING:
    from config import SystemEventsConfig

logger = logging.getLogger(__name__)

LOG_DIRNAME = "logs"
LOG_FILE_SUFFIX = "-system-events.log"


class EventSink(Protocol):
    """Anything that can durably persist one event per call."""

    def process(self, event: Event) -> None:
        """Persist a single event, raising if it could not be persisted."""


def default_log_path(*, cwd: str | Path | None = None, today: date | None = None) -> Path:
    """Return `<cwd>/logs/<YYYY-MM-DD>-system-events.log`."""
    base = Path(cwd) if cwd is not None else Path.cwd()
    day = today or date.today()
    return base / LOG_DIRNAME / f"{day:%Y-%m-%d}{LOG_FILE_SUFFIX}"


def ensure_directory(directory: str | Path) -> Path:
    """Create `directory` (and parents) if missing; a no-op when it already exists."""
    directory = Path(directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreateFailure(directory=directory) from exc
    return directory


class InMemoryEventSink:
    """In-memory sink for tests and local debugging."""

    def __init__(self) -> None:
        """Create an empty in-memory sink."""
        self._lock = threading.Lock()
        self._events: list[Event] = []

    def process(self, event: Event) -> None:
        """Append an event to the in-memory list (thread-safe)."""
        with self._lock:
            self._events.append(event)

    def snapshot(self) -> Sequence[Event]:
        """Return a point-in-time copy of all processed events."""
        with self._lock:
            return list(self._events)


class FileEventSink:
    """Append one templated line per event to a log file.

    The file handle is opened lazily on the first append and reused. Each
    append holds both an in-process lock and an exclusive file lock, and is
    fsynced before `process` returns.
    """

    def __init__(
        self,
        config: SystemEventsConfig | None = None,
        *,
        path: str | Path | None = None,
        template: str | None = None,
        placeholders: Mapping[str, object] | None = None,
    ) -> None:
        """Resolve destination and template, and create the log directory.

        Explicit keyword arguments win over `config`; anything left unset falls
        back to the daily file under `./logs` and the default template.

        Raises:
            DirectoryCreateFailure: The log directory could not be created.
        """
        if config is not None:
            path = path or config.path
            template = template or config.template
            if placeholders is None:
                placeholders = config.placeholders

        self._path = Path(path or default_log_path())
        ensure_directory(self._path.parent)

        self._template_config = TemplateConfig(
            template=template or DEFAULT_TEMPLATE,
            placeholders=placeholders or {},
        )
        self._config_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._handle: BinaryIO | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def template(self) -> str:
        return self._template_config.template

    @property
    def placeholders(self) -> dict[str, str]:
        return dict(self._template_config.placeholders)

    @property
    def is_open(self) -> bool:
        """True once the destination has been opened for appending."""
        return self._handle is not None

    def set_template(self, template: str) -> None:
        """Replace the template for all subsequent `process` calls."""
        with self._config_lock:
            self._template_config = TemplateConfig(
                template=template,
                placeholders=self._template_config.placeholders,
            )

    def set_placeholders(self, placeholders: Mapping[str, object]) -> None:
        """Replace the custom placeholders for all subsequent `process` calls."""
        with self._config_lock:
            self._template_config = TemplateConfig(
                template=self._template_config.template,
                placeholders=placeholders,
            )

    def process(self, event: Event) -> None:
        """Format `event` and append it to the log file.

        Raises:
            WriteFailure: The destination could not accept the line.
        """
        # One config instance per call, even if reconfigured concurrently.
        template_config = self._template_config
        line = format_event(event, template_config)
        self._append(line.encode("utf-8"))

    async def aprocess(self, event: Event) -> None:
        """Run `process` in a worker thread so the event loop is not blocked."""
        await asyncio.to_thread(self.process, event)

    def _open(self) -> BinaryIO:
        if self._handle is None:
            # Unbuffered so each append is a single write call.
            self._handle = open(self._path, "ab", buffering=0)
            logger.debug("Opened system events log %s", self._path)
        return self._handle

    def _append(self, data: bytes) -> None:
        with self._write_lock:
            try:
                handle = self._open()
                portalocker.lock(handle, portalocker.LOCK_EX)
                try:
                    offset = os.fstat(handle.fileno()).st_size
                    try:
                        written = handle.write(data)
                        if written != len(data):
                            raise OSError(f"short write: {written} of {len(data)} bytes")
                        os.fsync(handle.fileno())
                    except OSError:
                        self._rollback(handle, offset)
                        raise
                finally:
                    portalocker.unlock(handle)
            except (OSError, portalocker.LockException) as exc:
                raise WriteFailure(path=self._path) from exc

    @staticmethod
    def _rollback(handle: BinaryIO, offset: int) -> None:
        """Drop whatever part of a failed line made it to disk."""
        with suppress(OSError):
            handle.truncate(offset)

    def close(self) -> None:
        """Close the destination handle. Safe to call multiple times."""
        with self._write_lock:
            if self._handle is not None:
                self._handle.close()
                self._handle = None
