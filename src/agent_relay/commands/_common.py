"""Option and loading helpers shared by relay commands."""

from __future__ import annotations

from pathlib import Path

import click

from agent_relay.config.models import RelayConfig
from agent_relay.config.parser import ConfigError, load_config

config_option = click.option(
    "-f", "--file", "config_file", type=click.Path(), help="Config file path."
)


def load_or_exit(config_file: str | None) -> RelayConfig:
    """Load the config, or print the error and exit with status 1."""
    try:
        return load_config(Path(config_file) if config_file else None)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
