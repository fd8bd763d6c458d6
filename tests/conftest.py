"""Shared fixtures: scripted agent transport and settings."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import pytest

from nexus.agent.session import AgentSession
from nexus.config import Settings
from nexus.conversation.controller import Conversation


class ScriptedTransport:
    """Agent transport that replays one scripted list of raw messages per turn.

    A script item may be:
      - a dict: yielded as a raw message
      - an asyncio.Event: the stream blocks until it is set
      - an Exception instance: raised from the stream
    """

    def __init__(self, *turns: list[Any]) -> None:
        self._turns = list(turns)
        self.calls: list[dict[str, Any]] = []
        self.closed = False
        self.streams_closed = 0

    def add_turn(self, script: list[Any]) -> None:
        self._turns.append(script)

    async def start_turn(
        self, prompt: str, *, resume_token: str | None = None
    ) -> AsyncIterator[dict[str, Any]]:
        self.calls.append({"prompt": prompt, "resume_token": resume_token})
        script = self._turns.pop(0) if self._turns else []
        try:
            for item in script:
                if isinstance(item, asyncio.Event):
                    await item.wait()
                elif isinstance(item, BaseException):
                    raise item
                else:
                    yield item
        finally:
            self.streams_closed += 1

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def session(transport: ScriptedTransport) -> AgentSession:
    return AgentSession(transport)


@pytest.fixture
def conversation(session: AgentSession) -> Conversation:
    return Conversation(session)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        ANTHROPIC_API_KEY="sk-ant-test-key",
        CLAUDE_MODEL="claude-test-model",
        NEXUS_CWD="/tmp/project",
    )


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """Yield to the loop until ``predicate()`` is true."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0)
