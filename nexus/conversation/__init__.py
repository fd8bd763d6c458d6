"""Conversation module -- reducer, snapshots and turn controller."""

from nexus.conversation.controller import Conversation
from nexus.conversation.state import (
    ActiveTool,
    ConversationMessage,
    ConversationState,
    Role,
    TurnState,
)

__all__ = [
    "ActiveTool",
    "Conversation",
    "ConversationMessage",
    "ConversationState",
    "Role",
    "TurnState",
]
