"""Pydantic v2 models for relay.yaml configuration."""

from __future__ import annotations

import shlex
from pathlib import PurePath

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from agent_relay.constants import DEFAULT_AGENT_COMMAND


class AgentSettings(BaseModel):
    """How the agent process is launched and bounded."""

    model_config = ConfigDict(extra="forbid")

    command: str = Field(
        default=DEFAULT_AGENT_COMMAND,
        description="Agent executable, optionally with leading arguments",
    )
    max_turns: int = Field(
        default=30,
        ge=1,
        description="Maximum agent turns per invocation (--max-turns)",
    )
    timeout: float = Field(
        default=600.0,
        gt=0,
        description="Wall-clock limit per invocation in seconds",
    )
    kill_grace: float = Field(
        default=5.0,
        ge=0,
        description="Seconds to wait after SIGTERM before SIGKILL",
    )

    @field_validator("command")
    @classmethod
    def _validate_command(cls, value: str) -> str:
        try:
            parts = shlex.split(value)
        except ValueError as exc:
            msg = f"Invalid agent command {value!r}: {exc}"
            raise ValueError(msg) from exc
        if not parts:
            msg = "Agent command must not be empty"
            raise ValueError(msg)
        return value

    @property
    def argv_prefix(self) -> list[str]:
        return shlex.split(self.command)


class RelayConfig(BaseModel):
    """Top-level relay.yaml configuration."""

    model_config = ConfigDict(extra="forbid")

    version: str = Field(default="1", description="Config schema version")
    agent: AgentSettings = Field(
        default_factory=AgentSettings,
        description="Agent launch settings",
    )
    workspaces: dict[str, str] = Field(
        default_factory=dict,
        description="Workspace name to absolute directory",
    )
    sessions_file: str = Field(
        default=".relay/sessions.json",
        description="Where thread session records are persisted",
    )
    transcripts_dir: str | None = Field(
        default=None,
        description="Directory for JSONL invocation transcripts (off if unset)",
    )

    @model_validator(mode="after")
    def _validate_workspaces(self) -> RelayConfig:
        relative = sorted(
            name
            for name, path in self.workspaces.items()
            if not PurePath(path).is_absolute()
        )
        if relative:
            joined = ", ".join(f"'{n}'" for n in relative)
            msg = f"Workspace paths must be absolute: {joined}"
            raise ValueError(msg)
        return self

    def workspace_path(self, name: str) -> str | None:
        """Return the directory for workspace *name*, or ``None``."""
        return self.workspaces.get(name)
