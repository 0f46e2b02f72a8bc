"""Host-side event plumbing."""

from .bus import EventBus

__all__ = ["EventBus"]
