"""relay run — run one task through the agent and print the result."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import click

from agent_relay.commands._common import config_option, load_or_exit
from agent_relay.engine.helpers import format_stderr_preview
from agent_relay.engine.models import InvocationResult
from agent_relay.engine.relay import ProgressThrottle
from agent_relay.sessions.store import JsonSessionStore
from agent_relay.threads import ThreadRunner, WorkspaceError


@click.command()
@click.argument("task")
@click.option(
    "-w",
    "--workspace",
    default=None,
    help="Workspace to run in (defaults to the thread's previous workspace).",
)
@click.option(
    "-t",
    "--thread",
    "thread_key",
    default="default",
    show_default=True,
    help="Conversation key; tasks in the same thread resume one session.",
)
@config_option
@click.option(
    "--show-messages",
    is_flag=True,
    help="Also print interim assistant messages.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def run(
    task: str,
    workspace: str | None,
    thread_key: str,
    config_file: str | None,
    show_messages: bool,
    verbose: bool,
) -> None:
    """Run TASK with the coding agent and print its final result."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    config = load_or_exit(config_file)
    runner = ThreadRunner(config, JsonSessionStore(Path(config.sessions_file)))

    try:
        result = asyncio.run(
            _run_task(runner, thread_key, task, workspace, show_messages)
        )
    except WorkspaceError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    _report(result)
    if not result.success:
        raise SystemExit(1)


async def _run_task(
    runner: ThreadRunner,
    thread_key: str,
    task: str,
    workspace: str | None,
    show_messages: bool,
) -> InvocationResult:
    def show_latest(lines: list[str]) -> None:
        click.echo(f"  {lines[-1]}", err=True)

    def on_message(text: str) -> None:
        click.echo(click.style(text, dim=True), err=True)

    progress = ProgressThrottle(show_latest)
    try:
        return await runner.run(
            thread_key,
            task,
            workspace=workspace,
            on_progress=progress,
            on_assistant_message=on_message if show_messages else None,
        )
    finally:
        await progress.flush()


def _report(result: InvocationResult) -> None:
    if result.success:
        click.echo(result.result)
    else:
        preview = format_stderr_preview(result.error or "", max_lines=20)
        click.echo(
            click.style(f"Error ({result.outcome}):", fg="red") + f"\n  {preview}",
            err=True,
        )
    if result.session_id:
        click.echo(f"Session: {result.session_id}", err=True)
