"""Settings via pydantic-settings with NEXUS_ env prefix.

Credential and model fields use validation_alias to read the same
unprefixed env vars (ANTHROPIC_API_KEY, CLAUDE_MODEL) the agent backend
uses, so a single .env file drives both.
"""

from __future__ import annotations

import os
from typing import Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigError(ValueError):
    """Raised when settings fail validation at startup."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="NEXUS_", env_file=".env", extra="ignore")

    # Credentials -- required, checked before the UI starts
    anthropic_api_key: str = Field(..., min_length=1, validation_alias="ANTHROPIC_API_KEY")

    # Agent
    model: str = Field("claude-sonnet-4-20250514", validation_alias="CLAUDE_MODEL")
    cwd: str = Field(default_factory=os.getcwd, validation_alias="NEXUS_CWD")

    # Backend transport
    agent_url: str = "http://localhost:8000"
    api_timeout_connect: int = 10  # seconds
    api_timeout_read: int = 300  # seconds, tool runs can be slow

    # Logging -- kept quiet by default so records don't interleave with the UI
    log_level: Literal["debug", "info", "warning", "error"] = "warning"
    log_file: str | None = None

    # Rendering
    max_history_display: int = 10


def load_settings(**overrides: str) -> Settings:
    """Build Settings, converting validation failures into ConfigError.

    The error message lists one line per invalid field so the CLI can
    print it as-is.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        lines = []
        for issue in e.errors():
            field_name = ".".join(str(part) for part in issue.get("loc", ())) or "settings"
            lines.append(f"  - {field_name}: {issue.get('msg', 'invalid value')}")
        raise ConfigError("Configuration error:\n" + "\n".join(lines)) from e
