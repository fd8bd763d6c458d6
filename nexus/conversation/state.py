"""Conversation state snapshots.

Every value here is frozen. The reducer produces a new
ConversationState per transition; renderers only ever read them.
"""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"
    SYSTEM = "system"


_message_counter = itertools.count(1)


def new_message_id() -> str:
    """Unique, roughly time-ordered message id."""
    return f"msg_{int(time.time() * 1000)}_{next(_message_counter)}"


@dataclass(frozen=True)
class ConversationMessage:
    """A committed history entry. Never mutated once appended."""

    role: Role
    content: str
    id: str = field(default_factory=new_message_id)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    tool_name: str | None = None
    tool_input: Any = None
    tool_output: Any = None


@dataclass(frozen=True)
class ActiveTool:
    name: str
    input: Any = None
    output: Any = None
    is_running: bool = True


@dataclass(frozen=True)
class TurnState:
    """Transient view state for the turn in flight."""

    current_response_text: str = ""
    current_thinking_text: str = ""
    active_tool: ActiveTool | None = None
    processing: bool = False
    last_error: str | None = None


@dataclass(frozen=True)
class ConversationState:
    """Immutable snapshot handed to the renderer after each transition."""

    history: tuple[ConversationMessage, ...] = ()
    turn: TurnState = field(default_factory=TurnState)
    session_id: str | None = None

    @property
    def processing(self) -> bool:
        return self.turn.processing
