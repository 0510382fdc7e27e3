# src/vstestctl/telemetry/logger/processors.py

"""
Custom structlog processors used by the vstestctl logging pipeline.
"""

import logging
from typing import Any

from structlog.typing import EventDict, WrappedLogger

LEVEL_EMOJIS = {
    "debug": "🐛",
    "info": "ℹ️",
    "warning": "⚠️",
    "error": "❌",
    "critical": "💥",
    "build": "🔨",
    "runner": "🏃",
    "discover": "🔎",
    "timeout": "⏱️",
}

# Bound by callers to pick a glyph; never rendered.
INTERNAL_KEYS = ("emoji_key",)


def add_emoji_processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Prefixes the event with an emoji for its level, or for an explicit emoji_key."""
    emoji_key = event_dict.get("emoji_key")
    level = event_dict.get("level", method_name)
    emoji = LEVEL_EMOJIS.get(str(emoji_key or level).lower(), "➡️")
    event = event_dict.get("event")
    if isinstance(event, str) and not event.startswith(emoji):
        event_dict["event"] = f"{emoji} {event}"
    return event_dict


def remove_extra_keys_processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Drops internal bookkeeping keys before rendering."""
    for key in INTERNAL_KEYS:
        event_dict.pop(key, None)
    return event_dict


def level_name_to_number(name: str) -> int:
    """Maps a level name to its numeric value, falling back to INFO."""
    value: Any = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else logging.INFO
