"""Configuration loading and validation.

This module is responsible for:

- Loading `.env` into the process environment (without overriding existing vars).
- Converting environment variables into strongly-typed Pydantic models.
- Degrading gracefully on malformed optional settings so logging never blocks boot.

Environment variables are only read here; the rest of the code receives
explicit config objects.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

import dotenv
from pydantic import BaseModel, Field, field_validator

from system_events.errors import ConfigParseFailure

logger = logging.getLogger(__name__)

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _get_optional_env(name: str) -> str | None:
    """Read an optional env var; empty values count as unset."""
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value


def parse_placeholders(raw: str) -> dict[str, Any]:
    """Decode a JSON object of placeholder token -> replacement.

    Raises:
        ConfigParseFailure: `raw` is not valid JSON or not a JSON object.
    """
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigParseFailure(raw=raw, reason=exc.msg) from exc
    if not isinstance(decoded, dict):
        raise ConfigParseFailure(raw=raw, reason=f"expected a JSON object, got {type(decoded).__name__}")
    return decoded


def _get_env_placeholders(name: str) -> dict[str, Any]:
    """Read a placeholder map from the environment; malformed values yield `{}`."""
    raw = _get_optional_env(name)
    if raw is None:
        return {}
    try:
        return parse_placeholders(raw)
    except ConfigParseFailure as exc:
        logger.warning("Ignoring %s: %s", name, exc)
        return {}


class SystemEventsConfig(BaseModel):
    """Where and how system events are written."""

    path: Path | None = Field(default=None, description="Log file path; defaults to ./logs/<date>-system-events.log")
    template: str | None = Field(default=None, description="Line template with {{token}} placeholders")
    placeholders: dict[str, Any] = Field(default_factory=dict, description="Extra token -> replacement map")


class Config(BaseModel):
    """Top-level application configuration."""

    system_events: SystemEventsConfig = Field(default_factory=SystemEventsConfig)
    log_level: str = Field(default="INFO", description="Python logging level for the process")

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        """Validate the log level is one of the standard level names."""
        normalized = v.strip().upper()
        if normalized not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}. Got: {v!r}")
        return normalized


def load_config() -> Config:
    """Load application configuration from environment variables.

    Notes:
    - Calls `dotenv.load_dotenv()` so local `.env` values are visible to the process.
    - `CUSTOM_LOG_PLACEHOLDERS` that is not a JSON object is logged and ignored.
    """
    dotenv.load_dotenv()

    path = _get_optional_env("LOG_FILE_PATH")
    system_events = SystemEventsConfig(
        path=Path(path) if path is not None else None,
        template=_get_optional_env("CUSTOM_LOG_TEMPLATE"),
        placeholders=_get_env_placeholders("CUSTOM_LOG_PLACEHOLDERS"),
    )
    return Config(
        system_events=system_events,
        log_level=_get_optional_env("LOG_LEVEL") or "INFO",
    )
