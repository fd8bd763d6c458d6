"""Plain-text formatting helpers for the terminal UI."""

from __future__ import annotations

import json
from typing import Any


def truncate(text: str, max_len: int) -> str:
    """Cut ``text`` to ``max_len`` characters, marking the cut with '...'."""
    if max_len <= 0:
        return ""
    if len(text) <= max_len:
        return text
    if max_len <= 3:
        return text[:max_len]
    return text[: max_len - 3] + "..."


def format_value(value: Any, max_len: int = 200) -> str:
    """Render a tool input/output value as a short single string.

    Strings are shown as-is, other values as indented JSON, falling back
    to str() for anything json can't encode.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return truncate(value, max_len)
    try:
        return truncate(json.dumps(value, indent=2), max_len)
    except (TypeError, ValueError):
        return truncate(str(value), max_len)


def short_session_id(session_id: str, length: int = 8) -> str:
    if len(session_id) <= length:
        return session_id
    return f"{session_id[:length]}..."
