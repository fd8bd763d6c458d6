"""Message normalizer -- raw backend messages to canonical events.

normalize() is a pure function of the raw message and the text
accumulated so far in the turn. It never raises: an unexpected shape
produces no event rather than an exception.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from nexus.agent.events import CanonicalEvent, ErrorEvent, TextEvent, ToolEndEvent, ToolStartEvent
from nexus.agent.messages import (
    AssistantContent,
    BackendError,
    ResultContent,
    StreamDelta,
    ToolProgress,
    ToolResult,
    Unrecognized,
    decode,
    extract_text,
)

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 300


def _preview(raw: Any) -> str:
    try:
        return json.dumps(raw, default=str)[:_PREVIEW_CHARS]
    except (TypeError, ValueError):
        return repr(raw)[:_PREVIEW_CHARS]


def normalize(raw: Any, accumulated_text: str = "") -> CanonicalEvent | None:
    """Convert one raw backend message into at most one canonical event.

    assistant/result messages carry their own complete text and replace
    the accumulated value. stream_event messages are fragments and are
    appended to ``accumulated_text``.
    """
    try:
        decoded = decode(raw)
    except Exception:
        logger.debug("Undecodable raw message: %s", _preview(raw), exc_info=True)
        return None

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Raw message %s: %s", type(decoded).__name__, _preview(raw))

    if isinstance(decoded, (AssistantContent, ResultContent)):
        text = extract_text(decoded.content)
        return TextEvent(content=text) if text else None

    if isinstance(decoded, StreamDelta):
        if decoded.delta_text:
            return TextEvent(content=accumulated_text + decoded.delta_text)
        if decoded.content is not None:
            return TextEvent(content=accumulated_text + decoded.content)
        return None

    if isinstance(decoded, ToolProgress):
        return ToolStartEvent(name=decoded.name, input=decoded.input)

    if isinstance(decoded, ToolResult):
        return ToolEndEvent(name=decoded.name, output=decoded.output)

    if isinstance(decoded, BackendError):
        return ErrorEvent(cause=decoded.cause)

    if isinstance(decoded, Unrecognized):
        logger.debug("Ignoring unrecognized message type: %r", decoded.type)

    # Informational messages (user echo, system notice, auth status)
    return None
