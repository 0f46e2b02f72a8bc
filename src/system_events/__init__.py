"""System events capture and logging.

This package provides:
- An in-memory journal that records every fired event with a global sequence number.
- A template-driven formatter turning events into log lines.
- A file sink that appends one line per event, durably and without interleaving.
- A replay coordinator that writes journaled history in firing order, then goes live.
"""

from .errors import ConfigParseFailure, DirectoryCreateFailure, SystemEventsError, WriteFailure
from .formatter import format_event, render_args, render_value
from .models import DEFAULT_TEMPLATE, Event, TemplateConfig
from .recorder import EventRecorder, flatten_journal
from .replay import ReplayCoordinator, attach_file_sink
from .sinks import EventSink, FileEventSink, InMemoryEventSink, default_log_path, ensure_directory

__all__ = [
    "DEFAULT_TEMPLATE",
    "ConfigParseFailure",
    "DirectoryCreateFailure",
    "Event",
    "EventRecorder",
    "EventSink",
    "FileEventSink",
    "InMemoryEventSink",
    "ReplayCoordinator",
    "SystemEventsError",
    "TemplateConfig",
    "WriteFailure",
    "attach_file_sink",
    "default_log_path",
    "ensure_directory",
    "flatten_journal",
    "format_event",
    "render_args",
    "render_value",
]
