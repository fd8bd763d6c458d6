"""Typed decode of raw backend messages.

The backend protocol is loosely typed: every message is a JSON object
with a ``type`` discriminant and a shape that depends on it. decode()
checks ``type`` against the closed set below and returns one typed
variant, or Unrecognized for anything else. Decoding never raises.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

RawMessage = Mapping[str, Any]

# Recognized raw message types
ASSISTANT = "assistant"
RESULT = "result"
STREAM_EVENT = "stream_event"
TOOL_PROGRESS = "tool_progress"
TOOL_RESULT = "tool_result"
ERROR = "error"
INFORMATIONAL_TYPES = frozenset({"user", "system", "auth_status"})

RECOGNIZED_TYPES = frozenset(
    {ASSISTANT, RESULT, STREAM_EVENT, TOOL_PROGRESS, TOOL_RESULT, ERROR} | INFORMATIONAL_TYPES
)


@dataclass(frozen=True)
class AssistantContent:
    content: Any  # str or list of content blocks, validated at extraction


@dataclass(frozen=True)
class ResultContent:
    content: Any


@dataclass(frozen=True)
class Informational:
    kind: str


@dataclass(frozen=True)
class StreamDelta:
    delta_text: str | None
    content: str | None


@dataclass(frozen=True)
class ToolProgress:
    name: str
    input: Any


@dataclass(frozen=True)
class ToolResult:
    name: str
    output: Any


@dataclass(frozen=True)
class BackendError:
    cause: str


@dataclass(frozen=True)
class Unrecognized:
    type: str | None


DecodedMessage = (
    AssistantContent
    | ResultContent
    | Informational
    | StreamDelta
    | ToolProgress
    | ToolResult
    | BackendError
    | Unrecognized
)


def extract_session_id(raw: Any) -> str | None:
    """Return the session-continuation token carried by ``raw``, if any."""
    if not isinstance(raw, Mapping):
        return None
    session_id = raw.get("session_id")
    if isinstance(session_id, str) and session_id:
        return session_id
    return None


def extract_text(content: Any) -> str:
    """Flatten message content to plain text.

    Strings pass through. Lists of content blocks are concatenated in
    order, keeping only ``{"type": "text", "text": str}`` blocks.
    Anything else yields "".
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            block["text"]
            for block in content
            if isinstance(block, Mapping)
            and block.get("type") == "text"
            and isinstance(block.get("text"), str)
        )
    return ""


def _tool_name(raw: RawMessage) -> str:
    name = raw.get("name")
    return str(name) if name else "tool"


def _error_cause(raw: RawMessage) -> str:
    error = raw.get("error")
    if isinstance(error, Mapping):
        return f"{error.get('type', 'unknown')}: {error.get('message', '')}"
    if isinstance(error, str) and error:
        return error
    message = raw.get("message")
    if isinstance(message, str) and message:
        return message
    return "Unknown error"


def decode(raw: Any) -> DecodedMessage:
    """Decode one raw message into a typed variant."""
    if not isinstance(raw, Mapping):
        return Unrecognized(type=None)

    msg_type = raw.get("type")
    if not isinstance(msg_type, str) or msg_type not in RECOGNIZED_TYPES:
        return Unrecognized(type=msg_type if isinstance(msg_type, str) else None)

    if msg_type == ASSISTANT:
        return AssistantContent(content=raw.get("content"))
    if msg_type == RESULT:
        return ResultContent(content=raw.get("content"))
    if msg_type in INFORMATIONAL_TYPES:
        return Informational(kind=msg_type)
    if msg_type == STREAM_EVENT:
        delta = raw.get("delta")
        delta_text = delta.get("text") if isinstance(delta, Mapping) else None
        content = raw.get("content")
        return StreamDelta(
            delta_text=delta_text if isinstance(delta_text, str) else None,
            content=content if isinstance(content, str) else None,
        )
    if msg_type == TOOL_PROGRESS:
        return ToolProgress(name=_tool_name(raw), input=raw.get("input"))
    if msg_type == TOOL_RESULT:
        return ToolResult(name=_tool_name(raw), output=raw.get("output"))
    return BackendError(cause=_error_cause(raw))
