"""Tests for the progress relay and the caller-side throttle."""

from __future__ import annotations

from unittest.mock import MagicMock

from agent_relay.engine.events import (
    AssistantMessage,
    FinalResult,
    SessionAnnounce,
    ToolUse,
)
from agent_relay.engine.relay import ProgressRelay, ProgressThrottle, format_progress


class _FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


# ===================================================================
# Status formatting
# ===================================================================


class TestFormatProgress:
    def test_with_detail(self) -> None:
        tool = ToolUse(tool_name="Read", tool_input={"file_path": "a.txt"})
        assert format_progress(tool, 1, 30) == "[1/30] Read → a.txt"

    def test_without_detail(self) -> None:
        tool = ToolUse(tool_name="TodoWrite", tool_input={"todos": []})
        assert format_progress(tool, 4, 10) == "[4/10] TodoWrite"

    def test_grep_pattern_quoted(self) -> None:
        tool = ToolUse(tool_name="Grep", tool_input={"pattern": "foo"})
        assert format_progress(tool, 2, 5) == '[2/5] Grep → "foo"'


# ===================================================================
# Relay
# ===================================================================


class TestProgressRelay:
    async def test_sync_sinks(self) -> None:
        progress: list[str] = []
        messages: list[str] = []
        relay = ProgressRelay(30, progress.append, messages.append)

        await relay.publish(ToolUse(tool_name="Bash", tool_input={"command": "ls"}), 1)
        await relay.publish(AssistantMessage(text="hi"), 1)
        await relay.publish(SessionAnnounce(session_id="s"), 1)
        await relay.publish(FinalResult(text="done"), 1)

        assert progress == ["[1/30] Bash → ls"]
        assert messages == ["hi"]

    async def test_async_sinks_are_awaited(self) -> None:
        received: list[str] = []

        async def sink(text: str) -> None:
            received.append(text)

        relay = ProgressRelay(3, on_progress=sink, on_assistant_message=sink)
        await relay.publish(ToolUse(tool_name="Read", tool_input={"file_path": "x"}), 2)
        await relay.publish(AssistantMessage(text="msg"), 2)
        assert received == ["[2/3] Read → x", "msg"]

    async def test_every_assistant_message_delivered(self) -> None:
        messages: list[str] = []
        relay = ProgressRelay(1, on_assistant_message=messages.append)
        for text in ("a", "a", "b"):
            await relay.publish(AssistantMessage(text=text), 0)
        assert messages == ["a", "a", "b"]

    async def test_missing_sinks_are_fine(self) -> None:
        relay = ProgressRelay(1)
        await relay.publish(ToolUse(tool_name="Read"), 1)
        await relay.publish(AssistantMessage(text="x"), 1)

    async def test_raising_sink_does_not_propagate(self) -> None:
        sink = MagicMock(side_effect=RuntimeError("chat API down"))
        relay = ProgressRelay(5, on_progress=sink)
        await relay.publish(ToolUse(tool_name="Read"), 1)
        await relay.publish(ToolUse(tool_name="Read"), 2)
        assert sink.call_count == 2


# ===================================================================
# Throttle
# ===================================================================


class TestProgressThrottle:
    async def test_first_update_renders_immediately(self) -> None:
        rendered: list[list[str]] = []
        throttle = ProgressThrottle(rendered.append, clock=_FakeClock())
        await throttle("[1/5] Read")
        assert rendered == [["[1/5] Read"]]

    async def test_updates_within_interval_are_held(self) -> None:
        clock = _FakeClock()
        rendered: list[list[str]] = []
        throttle = ProgressThrottle(rendered.append, interval=2.0, clock=clock)

        await throttle("one")
        clock.now += 0.5
        await throttle("two")
        clock.now += 0.5
        await throttle("three")
        assert rendered == [["one"]]

        clock.now += 1.5
        await throttle("four")
        assert rendered[-1] == ["one", "two", "three", "four"]

    async def test_keeps_only_recent_lines(self) -> None:
        clock = _FakeClock()
        rendered: list[list[str]] = []
        throttle = ProgressThrottle(rendered.append, keep=2, clock=clock)
        for i in range(5):
            await throttle(str(i))
        assert throttle.lines == ["3", "4"]

    async def test_flush_renders_pending(self) -> None:
        clock = _FakeClock()
        rendered: list[list[str]] = []
        throttle = ProgressThrottle(rendered.append, clock=clock)
        await throttle("a")
        await throttle("b")
        await throttle.flush()
        assert rendered == [["a"], ["a", "b"]]
        await throttle.flush()
        assert len(rendered) == 2

    async def test_async_render(self) -> None:
        rendered: list[list[str]] = []

        async def render(lines: list[str]) -> None:
            rendered.append(lines)

        throttle = ProgressThrottle(render, clock=_FakeClock())
        await throttle("x")
        assert rendered == [["x"]]
