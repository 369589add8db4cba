"""Running state folded from stream events during one invocation."""

from __future__ import annotations

from dataclasses import dataclass

from agent_relay.engine.events import (
    AssistantMessage,
    FinalResult,
    SessionAnnounce,
    StreamEvent,
    ToolUse,
    Unrecognized,
)


@dataclass
class InvocationState:
    """Mutable state owned by a single supervisor.

    ``latest_result`` is ``None`` until some text was captured; after that
    every ``AssistantMessage`` and ``FinalResult`` overwrites it.
    """

    session_id: str | None = None
    latest_result: str | None = None
    tool_count: int = 0

    @property
    def captured_result(self) -> bool:
        return self.latest_result is not None

    def apply(self, event: StreamEvent) -> None:
        """Fold *event* into the state."""
        match event:
            case SessionAnnounce(session_id=session_id):
                self.session_id = session_id
            case ToolUse():
                self.tool_count += 1
            case AssistantMessage(text=text) | FinalResult(text=text):
                self.latest_result = text
            case Unrecognized():
                pass
