"""Canonical agent events.

The normalizer turns raw backend messages into these; the conversation
reducer consumes nothing else. Events carry data only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class TextEvent:
    """Cumulative assistant text for the turn so far (not a delta)."""

    content: str
    type: str = "text"


@dataclass(frozen=True)
class ThinkingEvent:
    """Cumulative reasoning text for the turn so far."""

    content: str
    type: str = "thinking"


@dataclass(frozen=True)
class ToolStartEvent:
    name: str
    input: Any = None
    type: str = "tool_start"


@dataclass(frozen=True)
class ToolEndEvent:
    name: str
    output: Any = None
    type: str = "tool_end"


@dataclass(frozen=True)
class ErrorEvent:
    """Backend-reported error. Recorded, does not end the turn."""

    cause: str
    type: str = "error"


@dataclass(frozen=True)
class DoneEvent:
    """Terminal event: the turn is complete."""

    type: str = "done"


CanonicalEvent = TextEvent | ThinkingEvent | ToolStartEvent | ToolEndEvent | ErrorEvent | DoneEvent
