"""Backend transport -- streams raw agent messages over HTTP/SSE.

The agent backend accepts a prompt plus an optional resume token and
answers with a server-sent event stream. Each ``data:`` line is one raw
message (a JSON object). Messages are passed through untouched; making
sense of them is the normalizer's job.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

import httpx

from nexus.config import Settings

logger = logging.getLogger(__name__)

_STREAM_END = "[DONE]"
_ERROR_PREVIEW_CHARS = 500


class AgentTransportError(RuntimeError):
    """The backend refused the request or the stream broke."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AgentTransport(Protocol):
    """What the core needs from the agent backend."""

    def start_turn(
        self, prompt: str, *, resume_token: str | None = None
    ) -> AsyncIterator[dict[str, Any]]: ...

    async def aclose(self) -> None: ...


def parse_sse_line(line: str) -> dict[str, Any] | None:
    """Decode one SSE line into a raw message.

    Only ``data:`` lines carry messages; ``event:``/``id:`` lines,
    keepalive comments and blank separators return None. Payloads that
    are not JSON objects are logged and dropped.
    """
    if not line.startswith("data:"):
        return None
    payload = line[5:].strip()
    if not payload or payload == _STREAM_END:
        return None
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        logger.warning("Skipping undecodable SSE payload: %s", payload[:200])
        return None
    if not isinstance(data, dict):
        logger.warning("Skipping non-object SSE payload: %s", payload[:200])
        return None
    return data


class HttpAgentTransport:
    """Streams turns from the agent backend via httpx."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._http = client or httpx.AsyncClient(
            base_url=settings.agent_url.rstrip("/"),
            headers={
                "x-api-key": settings.anthropic_api_key,
                "accept": "text/event-stream",
            },
            timeout=httpx.Timeout(
                connect=settings.api_timeout_connect,
                read=settings.api_timeout_read,
                write=10,
                pool=10,
            ),
        )

    def _build_payload(self, prompt: str, resume_token: str | None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "prompt": prompt,
            "model": self._settings.model,
            "cwd": self._settings.cwd,
        }
        if resume_token:
            payload["resume"] = resume_token
        return payload

    async def start_turn(
        self, prompt: str, *, resume_token: str | None = None
    ) -> AsyncIterator[dict[str, Any]]:
        """POST the prompt and yield raw messages until the stream ends.

        Raises AgentTransportError on non-200 responses. httpx errors
        (connect/read timeouts, dropped connections) propagate unchanged.
        """
        payload = self._build_payload(prompt, resume_token)
        logger.info("Starting turn (resume=%s, model=%s)", bool(resume_token), self._settings.model)

        async with self._http.stream("POST", "/query", json=payload) as response:
            if response.status_code != 200:
                error_body = await response.aread()
                raise AgentTransportError(
                    f"Agent backend returned {response.status_code}: "
                    f"{error_body.decode(errors='replace')[:_ERROR_PREVIEW_CHARS]}",
                    status_code=response.status_code,
                )

            async for line in response.aiter_lines():
                if line.startswith("data:") and line[5:].strip() == _STREAM_END:
                    break
                message = parse_sse_line(line)
                if message is not None:
                    yield message

    async def aclose(self) -> None:
        await self._http.aclose()
