"""Render events into log lines using a `{{token}}` template.

`{{timestamp}}` is the time the event was recorded, not the time the line is
written, so lines replayed at attach time carry their original firing time.
"""

from __future__ import annotations

import json
import re
from datetime import date, datetime
from functools import lru_cache
from typing import Any

from .models import ARGS_TOKEN, EVENT_NAME_TOKEN, TIMESTAMP_TOKEN, Event, TemplateConfig

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _json_default(value: Any) -> Any:
    """Fallback encoder for values `json` does not know about."""
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    return str(value)


def _dumps(value: Any) -> str:
    # Compact, with slashes and non-ASCII characters left as-is.
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_json_default)


def render_value(value: Any) -> str:
    """Render a single value as text: strings verbatim, everything else as compact JSON."""
    if isinstance(value, str):
        return value
    return _dumps(value)


def render_args(args: tuple[Any, ...] | list[Any]) -> str:
    """Serialize the ordered argument list (empty args render as `[]`)."""
    return _dumps(list(args))


def render_timestamp(ts: datetime) -> str:
    """Render a timestamp in local time, second precision."""
    return ts.astimezone().strftime(TIMESTAMP_FORMAT)


@lru_cache(maxsize=64)
def _token_pattern(tokens: tuple[str, ...]) -> re.Pattern[str]:
    # Longest first so a token that prefixes another never shadows it.
    ordered = sorted(tokens, key=len, reverse=True)
    return re.compile("|".join(re.escape(t) for t in ordered))


def substitute(template: str, replacements: dict[str, str]) -> str:
    """Replace every known token in one left-to-right pass.

    Replacement text is never rescanned, and tokens missing from
    `replacements` are left in place.
    """
    if not replacements:
        return template
    pattern = _token_pattern(tuple(sorted(replacements)))
    return pattern.sub(lambda m: replacements[m.group(0)], template)


def format_event(event: Event, config: TemplateConfig) -> str:
    """Format `event` with the built-in placeholders overlaid by the user's."""
    replacements = {
        TIMESTAMP_TOKEN: render_timestamp(event.timestamp),
        EVENT_NAME_TOKEN: event.name,
        ARGS_TOKEN: render_args(event.args),
    }
    replacements.update(config.placeholders)
    return substitute(config.template, replacements)
