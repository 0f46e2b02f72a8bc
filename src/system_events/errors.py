"""Error taxonomy for the system events sink."""

from __future__ import annotations

from pathlib import Path


class SystemEventsError(RuntimeError):
    """Base class for all system events failures."""


class ConfigParseFailure(SystemEventsError, ValueError):
    """Custom placeholder configuration could not be decoded into a token map."""

    def __init__(self, *, raw: str, reason: str):
        """Create an error capturing the offending raw value and why it was rejected."""
        self.raw = raw
        self.reason = reason
        super().__init__(f"Invalid custom log placeholders ({reason}): {raw!r}")


class DirectoryCreateFailure(SystemEventsError):
    """The log directory is missing and could not be created."""

    def __init__(self, *, directory: Path):
        self.directory = directory
        super().__init__(f"Unable to create log directory: {directory}")


class WriteFailure(SystemEventsError):
    """The destination refused an append; the line was not persisted."""

    def __init__(self, *, path: Path):
        """Create an error for a failed append to `path`."""
        self.path = path
        super().__init__(f"Unable to write to log file: {path}")
