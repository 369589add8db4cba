"""relay reset — forget the agent session of a thread."""

from __future__ import annotations

from pathlib import Path

import click

from agent_relay.commands._common import config_option, load_or_exit
from agent_relay.sessions.store import JsonSessionStore


@click.command()
@click.argument("thread")
@config_option
def reset(thread: str, config_file: str | None) -> None:
    """Delete the stored session for THREAD."""
    config = load_or_exit(config_file)
    store = JsonSessionStore(Path(config.sessions_file))
    if store.delete(thread):
        click.echo(f"Thread '{thread}' reset.")
    else:
        click.echo(f"No session stored for thread '{thread}'.")
