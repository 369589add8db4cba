"""Root CLI group and version flag."""

import click

from agent_relay import __version__
from agent_relay.commands.init import init
from agent_relay.commands.reset import reset
from agent_relay.commands.run import run
from agent_relay.commands.workspaces import workspaces


@click.group()
@click.version_option(version=__version__, prog_name="relay")
def cli() -> None:
    """agent-relay — run coding-agent tasks with streamed progress."""


cli.add_command(init)
cli.add_command(run)
cli.add_command(workspaces)
cli.add_command(reset)
