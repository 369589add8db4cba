"""relay init — scaffold a relay.yaml in the current directory."""

from __future__ import annotations

from pathlib import Path

import click

from agent_relay.config.parser import DEFAULT_CONFIG_NAME

TEMPLATE_YAML = """\
# agent-relay configuration
version: "1"

# How the coding agent is launched for every task
agent:
  command: claude       # executable (plus any leading arguments)
  max_turns: 30         # passed as --max-turns
  timeout: 600          # seconds before the agent is terminated
  kill_grace: 5         # seconds between SIGTERM and SIGKILL

# Named workspaces the agent may run in (absolute paths, ~ is expanded)
workspaces:
  my-project: ~/src/my-project

# Where per-thread session ids are remembered (relative to this file)
sessions_file: .relay/sessions.json

# Uncomment to keep a JSONL transcript of every invocation
# transcripts_dir: .relay/transcripts
"""


@click.command()
@click.option(
    "--force",
    is_flag=True,
    help=f"Overwrite existing {DEFAULT_CONFIG_NAME} if it exists.",
)
def init(force: bool) -> None:
    """Scaffold a new relay.yaml in the current directory."""
    config_path = Path.cwd() / DEFAULT_CONFIG_NAME

    if config_path.exists() and not force:
        raise click.ClickException(
            f"{DEFAULT_CONFIG_NAME} already exists. Use --force to overwrite."
        )

    try:
        config_path.write_text(TEMPLATE_YAML, encoding="utf-8")
    except OSError as exc:
        raise click.ClickException(
            f"Cannot write {DEFAULT_CONFIG_NAME}: {exc}"
        ) from exc
    click.echo(f"  Created {DEFAULT_CONFIG_NAME}")

    click.echo()
    click.echo("Next steps:")
    click.echo(f"  1. Edit {DEFAULT_CONFIG_NAME} to list your workspaces")
    click.echo("  2. Run `relay run -w my-project \"your task\"`")
