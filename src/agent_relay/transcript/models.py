"""Pydantic v2 models for invocation transcript entries."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

from agent_relay.engine.events import StreamEvent


class _EntryBase(BaseModel):
    """Common envelope fields shared by every transcript entry."""

    model_config = ConfigDict(extra="forbid")

    ts: str = Field(description="ISO 8601 timestamp with milliseconds")
    seq: int = Field(ge=0, description="Monotonic sequence number")


class InvocationStartEntry(_EntryBase):
    """Written once when the agent process is about to be spawned."""

    type: Literal["invocation_start"] = "invocation_start"
    argv: list[str] = Field(description="Full agent command line")
    cwd: str = Field(description="Working directory of the agent")
    prior_session_id: str | None = Field(
        default=None,
        description="Session being resumed, if any",
    )


class StreamEventEntry(_EntryBase):
    """One interpreted stream event."""

    type: Literal["stream_event"] = "stream_event"
    event: StreamEvent = Field(description="The decoded event")


class StderrEntry(_EntryBase):
    """A chunk of agent stderr."""

    type: Literal["stderr"] = "stderr"
    text: str = Field(description="Decoded stderr text")


class InvocationEndEntry(_EntryBase):
    """Written once with the terminal result."""

    type: Literal["invocation_end"] = "invocation_end"
    outcome: str = Field(description="succeeded, failed, timed_out or cancelled")
    result: dict[str, Any] = Field(description="Serialized InvocationResult")
    duration_ms: int = Field(description="Invocation duration in milliseconds")


def _entry_discriminator(v: Any) -> str:
    """Extract the discriminator value from raw data or a model instance."""
    if isinstance(v, dict):
        return str(v.get("type", ""))
    return str(getattr(v, "type", ""))


TranscriptEntry = Annotated[
    Annotated[InvocationStartEntry, Tag("invocation_start")]
    | Annotated[StreamEventEntry, Tag("stream_event")]
    | Annotated[StderrEntry, Tag("stderr")]
    | Annotated[InvocationEndEntry, Tag("invocation_end")],
    Discriminator(_entry_discriminator),
]
"""Discriminated union of all transcript entry types."""
