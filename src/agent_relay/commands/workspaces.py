"""relay workspaces — list configured workspaces."""

from __future__ import annotations

from pathlib import Path

import click

from agent_relay.commands._common import config_option, load_or_exit


@click.command()
@config_option
def workspaces(config_file: str | None) -> None:
    """List the workspaces the agent can run in."""
    config = load_or_exit(config_file)
    if not config.workspaces:
        click.echo("No workspaces configured.")
        return
    for name, path in sorted(config.workspaces.items()):
        marker = "" if Path(path).is_dir() else "  (missing)"
        click.echo(f"  {name} → {path}{marker}")
