"""Load, validate, and resolve relay.yaml configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from agent_relay.config.models import RelayConfig

DEFAULT_CONFIG_NAME = "relay.yaml"

_RELATIVE_PATH_KEYS = ("sessions_file", "transcripts_dir")


class ConfigError(Exception):
    """User-facing configuration error."""


def load_config(path: Path | None = None) -> RelayConfig:
    """Load and validate a relay.yaml file.

    Args:
        path: Explicit config file path. If None, looks for
              relay.yaml in the current directory.

    Returns:
        A validated RelayConfig instance.

    Raises:
        ConfigError: On missing file, bad YAML, or validation failure.
    """
    config_path = _resolve_path(path)
    raw = _read_yaml(config_path)
    _expand_workspace_paths(raw)
    _resolve_relative_paths(raw, config_path.parent)
    _load_env(config_path.parent)
    return _validate(raw)


def _resolve_path(path: Path | None) -> Path:
    if path is not None:
        resolved = Path(path)
        if not resolved.is_file():
            msg = f"Config file not found: {resolved}"
            raise ConfigError(msg)
        return resolved

    default = Path.cwd() / DEFAULT_CONFIG_NAME
    if not default.is_file():
        msg = (
            f"No {DEFAULT_CONFIG_NAME} found in {Path.cwd()}. "
            "Run `relay init` to create one."
        )
        raise ConfigError(msg)
    return default


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read config file: {exc}"
        raise ConfigError(msg) from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        detail = ""
        if hasattr(exc, "problem_mark") and exc.problem_mark is not None:
            mark = exc.problem_mark
            detail = f" (line {mark.line + 1}, column {mark.column + 1})"
        msg = f"Invalid YAML in {path.name}{detail}"
        raise ConfigError(msg) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping in {path.name}, got {type(data).__name__}"
        raise ConfigError(msg)

    return data


def _expand_workspace_paths(raw: dict[str, Any]) -> None:
    workspaces = raw.get("workspaces")
    if not isinstance(workspaces, dict):
        return
    for name, value in workspaces.items():
        if isinstance(value, str):
            workspaces[name] = os.path.expanduser(value)


def _resolve_relative_paths(raw: dict[str, Any], base_dir: Path) -> None:
    # Paths in the file are relative to the file, not to the CWD.  This
    # includes defaults the file leaves out.
    for key in _RELATIVE_PATH_KEYS:
        value = raw.get(key, RelayConfig.model_fields[key].default)
        if isinstance(value, str) and value:
            raw[key] = str((base_dir / Path(value).expanduser()).resolve())


def _load_env(config_dir: Path) -> None:
    env_path = config_dir / ".env"
    if env_path.is_file():
        load_dotenv(env_path)


def _validate(raw: dict[str, Any]) -> RelayConfig:
    try:
        return RelayConfig.model_validate(raw)
    except ValidationError as exc:
        errors = exc.errors()
        parts: list[str] = []
        for err in errors:
            loc = " → ".join(str(s) for s in err["loc"]) or "(root)"
            msg = err["msg"]
            if "field required" in msg.lower():
                msg = "This field is required"
            elif "input should be" in msg.lower():
                msg = f"Invalid value: {msg}"
            parts.append(f"  {loc}: {msg}")
        joined = "\n".join(parts)
        msg = f"Config validation failed:\n{joined}"
        raise ConfigError(msg) from exc
