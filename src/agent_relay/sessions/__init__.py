"""Per-conversation session records and their stores."""

from agent_relay.sessions.store import (
    JsonSessionStore,
    MemorySessionStore,
    SessionStore,
    ThreadSessionRecord,
)

__all__ = [
    "JsonSessionStore",
    "MemorySessionStore",
    "SessionStore",
    "ThreadSessionRecord",
]
