"""Agent module -- backend transport and message normalization.

Public API:
    normalize           - raw message -> canonical event
    decode              - raw message -> typed variant
    AgentSession        - turn runner with session-token capture
    HttpAgentTransport  - SSE transport for the agent backend
"""

from nexus.agent.events import (
    CanonicalEvent,
    DoneEvent,
    ErrorEvent,
    TextEvent,
    ThinkingEvent,
    ToolEndEvent,
    ToolStartEvent,
)
from nexus.agent.messages import decode, extract_session_id, extract_text
from nexus.agent.normalizer import normalize
from nexus.agent.session import AgentSession
from nexus.agent.transport import AgentTransport, AgentTransportError, HttpAgentTransport

__all__ = [
    "AgentSession",
    "AgentTransport",
    "AgentTransportError",
    "CanonicalEvent",
    "DoneEvent",
    "ErrorEvent",
    "HttpAgentTransport",
    "TextEvent",
    "ThinkingEvent",
    "ToolEndEvent",
    "ToolStartEvent",
    "decode",
    "extract_session_id",
    "extract_text",
    "normalize",
]
