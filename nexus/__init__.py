"""Nexus -- terminal client for a remote conversational coding agent.

Public API:
    normalize        - raw backend message -> canonical event
    AgentSession     - runs turns against the backend, owns the session token
    Conversation     - turn controller and state owner
    ConversationState, TurnState, ConversationMessage - render snapshots
    Settings         - configuration (re-exported from nexus.config)
"""

__version__ = "0.1.0"

from nexus.agent.normalizer import normalize
from nexus.agent.session import AgentSession
from nexus.config import Settings
from nexus.conversation.controller import Conversation
from nexus.conversation.state import ConversationMessage, ConversationState, TurnState

__all__ = [
    "AgentSession",
    "Conversation",
    "ConversationMessage",
    "ConversationState",
    "Settings",
    "TurnState",
    "normalize",
]
