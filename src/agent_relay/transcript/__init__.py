"""Invocation transcripts — entry models and JSONL recorder."""

from agent_relay.transcript.models import (
    InvocationEndEntry,
    InvocationStartEntry,
    StderrEntry,
    StreamEventEntry,
    TranscriptEntry,
)
from agent_relay.transcript.recorder import TranscriptRecorder

__all__ = [
    "InvocationEndEntry",
    "InvocationStartEntry",
    "StderrEntry",
    "StreamEventEntry",
    "TranscriptEntry",
    "TranscriptRecorder",
]
