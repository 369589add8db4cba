"""Progress relay — forwards stream events to caller-supplied sinks."""

from __future__ import annotations

import inspect
import logging
import time
from collections import deque
from collections.abc import Callable

from agent_relay.constants import TextSink
from agent_relay.engine.events import AssistantMessage, StreamEvent, ToolUse

logger = logging.getLogger(__name__)


def format_progress(tool: ToolUse, count: int, max_turns: int) -> str:
    """Render ``[n/maxTurns] toolName → detail`` for a tool use."""
    detail = tool.detail
    suffix = f" → {detail}" if detail else ""
    return f"[{count}/{max_turns}] {tool.tool_name}{suffix}"


class ProgressRelay:
    """Delivers every tool use and assistant message to the caller.

    Sinks are invoked in the reader task, in event order.  They may be
    plain callables or coroutine functions.  Throttling is the caller's
    business (see :class:`ProgressThrottle`); the relay never drops events
    on its own, but a sink that raises is logged and skipped so one bad
    callback cannot stall decoding.
    """

    def __init__(
        self,
        max_turns: int,
        on_progress: TextSink | None = None,
        on_assistant_message: TextSink | None = None,
    ) -> None:
        self._max_turns = max_turns
        self._on_progress = on_progress
        self._on_assistant_message = on_assistant_message

    async def publish(self, event: StreamEvent, tool_count: int) -> None:
        """Forward *event*; *tool_count* is the counter after applying it."""
        match event:
            case ToolUse():
                status = format_progress(event, tool_count, self._max_turns)
                logger.info("%s", status)
                await self._deliver(self._on_progress, status)
            case AssistantMessage(text=text):
                await self._deliver(self._on_assistant_message, text)

    @staticmethod
    async def _deliver(sink: TextSink | None, text: str) -> None:
        if sink is None:
            return
        try:
            outcome = sink(text)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("progress sink raised")


class ProgressThrottle:
    """Caller-side rate limiter for progress updates.

    Keeps the last *keep* status lines and calls *render* with them at most
    once per *interval* seconds.  Call :meth:`flush` at the end to render
    whatever was held back.
    """

    def __init__(
        self,
        render: Callable[[list[str]], object],
        interval: float = 2.0,
        keep: int = 5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._render = render
        self._interval = interval
        self._lines: deque[str] = deque(maxlen=keep)
        self._clock = clock
        self._last_render: float | None = None
        self._dirty = False

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    async def __call__(self, status: str) -> None:
        self._lines.append(status)
        self._dirty = True
        now = self._clock()
        if self._last_render is not None and now - self._last_render < self._interval:
            return
        self._last_render = now
        await self._emit()

    async def flush(self) -> None:
        if self._dirty:
            await self._emit()

    async def _emit(self) -> None:
        self._dirty = False
        outcome = self._render(list(self._lines))
        if inspect.isawaitable(outcome):
            await outcome
