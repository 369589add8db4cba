"""Shared fixtures for agent-relay tests."""

from __future__ import annotations

import shlex
import sys
from pathlib import Path

import pytest

from agent_relay.config.models import AgentSettings

FAKE_AGENT = Path(__file__).parent / "fixtures" / "fake_agent.py"


def fake_agent_command() -> str:
    """Command line that runs the fake agent with this interpreter."""
    return f"{shlex.quote(sys.executable)} {shlex.quote(str(FAKE_AGENT))}"


@pytest.fixture
def fake_settings() -> AgentSettings:
    return AgentSettings(
        command=fake_agent_command(),
        max_turns=10,
        timeout=10.0,
        kill_grace=1.0,
    )


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    path = tmp_path / "workspace"
    path.mkdir()
    return path
