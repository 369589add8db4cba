"""Smoke tests for the relay CLI."""

from __future__ import annotations

import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from agent_relay import __version__
from agent_relay.cli import cli
from agent_relay.config.models import AgentSettings


def _write_config(tmp_path: Path, workspace: Path, settings: AgentSettings) -> Path:
    path = tmp_path / "relay.yaml"
    data = {
        "version": "1",
        "agent": {"command": settings.command, "timeout": 10, "kill_grace": 1},
        "workspaces": {"proj": str(workspace)},
        "sessions_file": "sessions.json",
    }
    path.write_text(yaml.dump(data), encoding="utf-8")
    return path


def test_help() -> None:
    result = CliRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "agent-relay" in result.output
    for command in ("init", "run", "workspaces", "reset"):
        assert command in result.output


def test_version() -> None:
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert f"relay, version {__version__}" in result.output


def test_init_runs() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 0
        assert "Created relay.yaml" in result.output
        assert yaml.safe_load(Path("relay.yaml").read_text())["agent"]["max_turns"] == 30


def test_init_refuses_overwrite() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        Path("relay.yaml").write_text("keep: me\n")
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 1
        assert "already exists" in result.output
        assert Path("relay.yaml").read_text() == "keep: me\n"

        result = runner.invoke(cli, ["init", "--force"])
        assert result.exit_code == 0


def test_run_no_config_errors() -> None:
    runner = CliRunner()
    with runner.isolated_filesystem():
        result = runner.invoke(cli, ["run", "hello"])
        assert result.exit_code == 1
        assert "relay init" in result.output


def test_run_flags() -> None:
    result = CliRunner().invoke(cli, ["run", "--help"])
    assert result.exit_code == 0
    for flag in ("--workspace", "--thread", "--file", "--show-messages", "--verbose"):
        assert flag in result.output


def test_workspaces_lists(
    tmp_path: Path, workspace: Path, fake_settings: AgentSettings
) -> None:
    config = _write_config(tmp_path, workspace, fake_settings)
    result = CliRunner().invoke(cli, ["workspaces", "-f", str(config)])
    assert result.exit_code == 0
    assert f"proj → {workspace}" in result.output
    assert "(missing)" not in result.output


def test_workspaces_marks_missing(
    tmp_path: Path, fake_settings: AgentSettings
) -> None:
    config = _write_config(tmp_path, tmp_path / "gone", fake_settings)
    result = CliRunner().invoke(cli, ["workspaces", "-f", str(config)])
    assert result.exit_code == 0
    assert "(missing)" in result.output


def test_run_and_resume(
    tmp_path: Path, workspace: Path, fake_settings: AgentSettings
) -> None:
    config = _write_config(tmp_path, workspace, fake_settings)
    runner = CliRunner()

    result = runner.invoke(cli, ["run", "-f", str(config), "-w", "proj", "hello"])
    assert result.exit_code == 0, result.output
    assert "done: hello" in result.output
    assert "[1/30] Read → a.txt" in result.output
    assert "Session: fake-session-1" in result.output

    stored = json.loads((tmp_path / "sessions.json").read_text())
    assert stored["default"]["session_id"] == "fake-session-1"
    assert stored["default"]["workspace_name"] == "proj"

    result = runner.invoke(cli, ["run", "-f", str(config), "echo-argv"])
    assert result.exit_code == 0, result.output
    assert "--resume" in result.output
    assert "fake-session-1" in result.output


def test_run_show_messages(
    tmp_path: Path, workspace: Path, fake_settings: AgentSettings
) -> None:
    config = _write_config(tmp_path, workspace, fake_settings)
    result = CliRunner().invoke(
        cli, ["run", "-f", str(config), "-w", "proj", "--show-messages", "hi"]
    )
    assert result.exit_code == 0, result.output
    assert "working on it" in result.output


def test_run_failure_exits_nonzero(
    tmp_path: Path, workspace: Path, fake_settings: AgentSettings
) -> None:
    config = _write_config(tmp_path, workspace, fake_settings)
    result = CliRunner().invoke(cli, ["run", "-f", str(config), "-w", "proj", "fail"])
    assert result.exit_code == 1
    assert "Error (failed):" in result.output
    assert "boom: something broke" in result.output
    assert not (tmp_path / "sessions.json").exists()


def test_run_unknown_workspace(
    tmp_path: Path, workspace: Path, fake_settings: AgentSettings
) -> None:
    config = _write_config(tmp_path, workspace, fake_settings)
    result = CliRunner().invoke(cli, ["run", "-f", str(config), "-w", "nope", "x"])
    assert result.exit_code == 1
    assert "Workspace 'nope' not found. Available: proj" in result.output


def test_reset(
    tmp_path: Path, workspace: Path, fake_settings: AgentSettings
) -> None:
    config = _write_config(tmp_path, workspace, fake_settings)
    runner = CliRunner()

    result = runner.invoke(cli, ["reset", "-f", str(config), "default"])
    assert result.exit_code == 0
    assert "No session stored for thread 'default'." in result.output

    runner.invoke(cli, ["run", "-f", str(config), "-w", "proj", "hello"])
    result = runner.invoke(cli, ["reset", "-f", str(config), "default"])
    assert result.exit_code == 0
    assert "Thread 'default' reset." in result.output


def test_run_throttles_progress(
    tmp_path: Path, workspace: Path, fake_settings: AgentSettings
) -> None:
    config = _write_config(tmp_path, workspace, fake_settings)
    result = CliRunner().invoke(
        cli, ["run", "-f", str(config), "-w", "proj", "many-tools"]
    )
    assert result.exit_code == 0, result.output
    assert "[1/30] Read → a.txt" in result.output
    assert "[2/30] Read → b.txt" not in result.output
    assert "[3/30] Read → c.txt" in result.output
    assert "read three" in result.output
