"""Invocation request and result types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from agent_relay.constants import TextSink
from agent_relay.engine.errors import (
    InvocationCancelledError,
    InvocationError,
    InvocationTimeoutError,
    LaunchError,
    ProcessExitError,
)

Outcome = Literal["succeeded", "failed", "timed_out", "cancelled"]
ErrorKind = Literal["launch", "timeout", "exit", "cancelled"]


@dataclass(frozen=True)
class InvocationRequest:
    """One task for the agent.

    Precondition: callers run at most one invocation per conversation at a
    time; the engine does not serialize them.
    """

    task: str
    working_directory: str
    prior_session_id: str | None = None
    on_progress: TextSink | None = None
    on_assistant_message: TextSink | None = None


class InvocationResult(BaseModel):
    """Terminal result of an invocation, produced exactly once."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    outcome: Outcome = Field(description="Terminal state of the invocation")
    result: str | None = Field(
        default=None,
        description="Final result text (present iff the invocation succeeded)",
    )
    session_id: str | None = Field(
        default=None,
        description="Session id announced by the agent, if any",
    )
    error: str | None = Field(
        default=None,
        description="Failure description (present iff not succeeded)",
    )
    error_kind: ErrorKind | None = Field(
        default=None,
        description="Which failure path resolved the invocation",
    )
    returncode: int | None = Field(
        default=None,
        description="Process exit code, when the process was observed to exit",
    )
    tool_count: int = Field(default=0, ge=0, description="Tool uses observed")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return self.outcome == "succeeded"

    @classmethod
    def succeeded(
        cls,
        result: str,
        session_id: str | None = None,
        returncode: int | None = None,
        tool_count: int = 0,
    ) -> InvocationResult:
        return cls(
            outcome="succeeded",
            result=result,
            session_id=session_id,
            returncode=returncode,
            tool_count=tool_count,
        )

    @classmethod
    def failed(
        cls,
        error: str,
        error_kind: ErrorKind,
        session_id: str | None = None,
        returncode: int | None = None,
        tool_count: int = 0,
    ) -> InvocationResult:
        outcome: Outcome
        match error_kind:
            case "timeout":
                outcome = "timed_out"
            case "cancelled":
                outcome = "cancelled"
            case _:
                outcome = "failed"
        return cls(
            outcome=outcome,
            error=error,
            error_kind=error_kind,
            session_id=session_id,
            returncode=returncode,
            tool_count=tool_count,
        )

    def raise_for_error(self) -> None:
        """Raise the matching ``InvocationError`` if the invocation failed."""
        if self.success:
            return
        message = self.error or "Invocation failed"
        exc: InvocationError
        match self.error_kind:
            case "launch":
                exc = LaunchError(message, session_id=self.session_id)
            case "timeout":
                exc = InvocationTimeoutError(message, session_id=self.session_id)
            case "cancelled":
                exc = InvocationCancelledError(message, session_id=self.session_id)
            case _:
                exc = ProcessExitError(
                    message, returncode=self.returncode, session_id=self.session_id
                )
        raise exc
