"""Agent invocation engine: decode, interpret, relay, supervise."""

from agent_relay.engine.decoder import UNPARSEABLE, StreamDecoder, decode_document
from agent_relay.engine.errors import (
    InvocationCancelledError,
    InvocationError,
    InvocationTimeoutError,
    LaunchError,
    ProcessExitError,
)
from agent_relay.engine.events import (
    AssistantMessage,
    FinalResult,
    SessionAnnounce,
    StreamEvent,
    ToolUse,
    Unrecognized,
    interpret,
)
from agent_relay.engine.models import InvocationRequest, InvocationResult
from agent_relay.engine.relay import ProgressRelay, ProgressThrottle, format_progress
from agent_relay.engine.state import InvocationState
from agent_relay.engine.supervisor import InvocationSupervisor, build_command, invoke

__all__ = [
    "UNPARSEABLE",
    "AssistantMessage",
    "FinalResult",
    "InvocationCancelledError",
    "InvocationError",
    "InvocationRequest",
    "InvocationResult",
    "InvocationState",
    "InvocationSupervisor",
    "InvocationTimeoutError",
    "LaunchError",
    "ProcessExitError",
    "ProgressRelay",
    "ProgressThrottle",
    "SessionAnnounce",
    "StreamDecoder",
    "StreamEvent",
    "ToolUse",
    "Unrecognized",
    "build_command",
    "decode_document",
    "format_progress",
    "interpret",
    "invoke",
]
