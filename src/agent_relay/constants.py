"""Shared constants and type aliases for the relay runtime."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

#: Result text used when the agent exits cleanly without any textual output.
NO_OUTPUT_TEXT = "(no output)"

#: Default agent executable.
DEFAULT_AGENT_COMMAND = "claude"

#: Sink for progress and assistant-message text. May be sync or async.
TextSink = Callable[[str], Awaitable[None] | None]
