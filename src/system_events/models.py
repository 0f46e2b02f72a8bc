"""System event models.

Events are designed to be:
- Immutable once recorded (the journal and sinks share the same instances).
- Globally ordered by a monotonically increasing `sequence`, independent of name.
- Cheap to build; arguments are kept as-is and only rendered at format time.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TEMPLATE = "[{{timestamp}}] Event: {{eventName}}; Args: {{args}}\n"

TIMESTAMP_TOKEN = "{{timestamp}}"
EVENT_NAME_TOKEN = "{{eventName}}"
ARGS_TOKEN = "{{args}}"


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(tz=timezone.utc)


def normalize_token(key: str) -> str:
    """Return `key` as a `{{token}}`, accepting `"env"`, `"{{env}}"` and half-braced forms."""
    key = key.strip()
    key = key.removeprefix("{{").removesuffix("}}")
    return "{{" + key + "}}"


class Event(BaseModel):
    """A named occurrence with its ordered arguments, as journaled at fire time."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    args: tuple[Any, ...] = ()

    # Global firing order; unique per recorder.
    sequence: int

    timestamp: datetime = Field(default_factory=utc_now)


class TemplateConfig(BaseModel):
    """Template string plus user placeholders, fixed for the lifetime of the instance.

    Sinks swap whole instances on reconfiguration, so a `process` call that
    grabbed one never sees a half-updated template/placeholder pair.
    """

    model_config = ConfigDict(frozen=True)

    template: str = DEFAULT_TEMPLATE
    placeholders: dict[str, str] = Field(default_factory=dict)

    @field_validator("template")
    def normalize_newlines(cls, v: str) -> str:
        """Turn the literal two-character `\\n` (as written in .env files) into a line break."""
        return v.replace("\\n", "\n")

    @field_validator("placeholders", mode="before")
    def normalize_placeholders(cls, v: Any) -> dict[str, str]:
        """Wrap bare keys in braces and render non-string values."""
        # Local import: formatter depends on this module.
        from .formatter import render_value

        if v is None:
            return {}
        return {normalize_token(str(k)): render_value(val) for k, val in dict(v).items()}
