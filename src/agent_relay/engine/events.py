"""Stream events decoded from the agent's ``stream-json`` output.

The agent CLI (``--output-format stream-json --verbose``) writes one JSON
object per line.  The records this module understands:

* any record with a ``session_id`` — announces the resumable session;
* ``tool_use`` — ``tool_name`` plus a ``tool_input`` mapping;
* ``assistant`` — wraps an API message whose ``message.content[]`` holds
  ``text`` and ``tool_use`` blocks;
* ``result`` — the final aggregated ``result`` string.

Everything else, including lines that are not JSON at all, is
``Unrecognized`` and ignored downstream.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

#: Maximum characters of a shell command shown in a progress line.
_COMMAND_PREVIEW_CHARS = 50

_PATH_TOOLS = frozenset({"Read", "Edit", "Write", "MultiEdit", "NotebookEdit"})


class _StreamEventBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class SessionAnnounce(_StreamEventBase):
    """The agent reported its session identifier."""

    kind: Literal["session_announce"] = "session_announce"
    session_id: str = Field(description="Opaque token accepted by --resume")


class ToolUse(_StreamEventBase):
    """The agent invoked a tool."""

    kind: Literal["tool_use"] = "tool_use"
    tool_name: str = Field(description="Tool name, e.g. 'Read' or 'Bash'")
    tool_input: dict[str, Any] = Field(
        default_factory=dict,
        description="Tool arguments as sent by the agent",
    )

    @property
    def detail(self) -> str:
        """Short human-readable summary of the tool input ('' if none)."""
        return format_tool_detail(self.tool_name, self.tool_input)


class AssistantMessage(_StreamEventBase):
    """Interim assistant text (text segments joined by newlines)."""

    kind: Literal["assistant_message"] = "assistant_message"
    text: str = Field(description="Joined text content, never empty")


class FinalResult(_StreamEventBase):
    """The agent's authoritative final result."""

    kind: Literal["final_result"] = "final_result"
    text: str = Field(description="Result text, possibly empty")


class Unrecognized(_StreamEventBase):
    """A record matching no known kind, or a line that was not JSON."""

    kind: Literal["unrecognized"] = "unrecognized"
    raw: Any = Field(default=None, description="The record as decoded, if any")


def _event_discriminator(v: Any) -> str:
    if isinstance(v, dict):
        return str(v.get("kind", ""))
    return str(getattr(v, "kind", ""))


StreamEvent = Annotated[
    Annotated[SessionAnnounce, Tag("session_announce")]
    | Annotated[ToolUse, Tag("tool_use")]
    | Annotated[AssistantMessage, Tag("assistant_message")]
    | Annotated[FinalResult, Tag("final_result")]
    | Annotated[Unrecognized, Tag("unrecognized")],
    Discriminator(_event_discriminator),
]
"""Discriminated union of all stream event kinds."""


def format_tool_detail(tool_name: str, tool_input: dict[str, Any]) -> str:
    """Describe a tool call in a few words: a path, pattern or command."""
    if tool_name in _PATH_TOOLS:
        path = tool_input.get("file_path") or tool_input.get("notebook_path")
        return str(path) if path else ""
    if tool_name == "Grep":
        pattern = tool_input.get("pattern")
        return f'"{pattern}"' if pattern else ""
    if tool_name == "Glob":
        pattern = tool_input.get("pattern")
        return str(pattern) if pattern else ""
    if tool_name == "Bash":
        command = tool_input.get("command")
        if not command:
            return ""
        cmd = str(command)
        if len(cmd) > _COMMAND_PREVIEW_CHARS:
            return cmd[:_COMMAND_PREVIEW_CHARS] + "..."
        return cmd
    return ""


def interpret(record: Any) -> list[StreamEvent]:
    """Classify one decoded record into stream events.

    Stateless: the result depends on *record* alone.  A record may produce
    several events, e.g. a ``result`` record that also carries a
    ``session_id`` yields ``SessionAnnounce`` followed by ``FinalResult``.
    """
    if not isinstance(record, dict):
        return [Unrecognized(raw=None if record is None else repr(record))]

    events: list[StreamEvent] = []

    match record:
        case {"session_id": str(session_id)} if session_id:
            events.append(SessionAnnounce(session_id=session_id))

    match record:
        case {"type": "tool_use"}:
            events.append(_tool_use(record.get("tool_name"), record.get("tool_input")))
        case {"type": "assistant", "message": {"content": list(segments)}}:
            events.extend(_assistant_events(segments))
        case {"type": "result", "result": str(text)}:
            events.append(FinalResult(text=text))

    if not events:
        return [Unrecognized(raw=record)]
    return events


def _tool_use(name: Any, tool_input: Any) -> ToolUse:
    return ToolUse(
        tool_name=str(name) if name else "unknown",
        tool_input=tool_input if isinstance(tool_input, dict) else {},
    )


def _assistant_events(segments: list[Any]) -> list[StreamEvent]:
    events: list[StreamEvent] = []
    texts: list[str] = []
    for segment in segments:
        match segment:
            case {"type": "text", "text": str(text)} if text:
                texts.append(text)
            case {"type": "tool_use"}:
                events.append(_tool_use(segment.get("name"), segment.get("input")))
    joined = "\n".join(texts)
    if joined:
        events.append(AssistantMessage(text=joined))
    return events
