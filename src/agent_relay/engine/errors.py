"""Terminal error taxonomy for agent invocations.

The supervisor reports failures as data on ``InvocationResult``; these
exceptions exist for callers that prefer raising, via
``InvocationResult.raise_for_error()``.
"""

from __future__ import annotations


class InvocationError(Exception):
    """Base class for a failed invocation."""

    def __init__(self, message: str, session_id: str | None = None) -> None:
        super().__init__(message)
        self.session_id = session_id


class LaunchError(InvocationError):
    """The agent executable could not be spawned."""


class InvocationTimeoutError(InvocationError):
    """The agent ran past its wall-clock budget and was terminated."""


class ProcessExitError(InvocationError):
    """The agent exited non-zero without producing a result."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        session_id: str | None = None,
    ) -> None:
        super().__init__(message, session_id=session_id)
        self.returncode = returncode


class InvocationCancelledError(InvocationError):
    """The invocation was cancelled by its caller."""
