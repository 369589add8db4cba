"""Thread runner — one agent conversation per conversation key.

Sits on the caller side of the engine: picks the workspace, resumes the
stored session for the same key, and persists what the agent announced.
It also serializes invocations per key, which the engine itself does not.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from agent_relay.config.models import AgentSettings, RelayConfig
from agent_relay.constants import TextSink
from agent_relay.engine.models import InvocationRequest, InvocationResult
from agent_relay.engine.supervisor import invoke
from agent_relay.sessions.store import SessionStore, ThreadSessionRecord
from agent_relay.transcript.recorder import TranscriptRecorder

logger = logging.getLogger(__name__)

Invoker = Callable[..., Awaitable[InvocationResult]]


class WorkspaceError(Exception):
    """The workspace for a task is unknown or could not be determined."""


class ThreadRunner:
    """Runs tasks for conversation keys against configured workspaces."""

    def __init__(
        self,
        config: RelayConfig,
        store: SessionStore,
        invoker: Invoker = invoke,
    ) -> None:
        self._config = config
        self._store = store
        self._invoker = invoker
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def settings(self) -> AgentSettings:
        return self._config.agent

    def current(self, key: str) -> ThreadSessionRecord | None:
        """Return the stored record for *key*, if any."""
        return self._store.load(key)

    def reset(self, key: str) -> bool:
        """Forget the session for *key*.  ``False`` if there was none."""
        removed = self._store.delete(key)
        if removed:
            logger.info("Reset thread %s", key)
        return removed

    def resolve(
        self, key: str, workspace: str | None = None
    ) -> tuple[str, str, str | None]:
        """Return ``(workspace_name, workspace_path, prior_session_id)``.

        Raises:
            WorkspaceError: If *workspace* is not configured, or none was
                given and the thread has no stored workspace.
        """
        record = self._store.load(key)

        if workspace is not None:
            path = self._config.workspace_path(workspace)
            if path is None:
                available = ", ".join(sorted(self._config.workspaces)) or "(none)"
                msg = f"Workspace '{workspace}' not found. Available: {available}"
                raise WorkspaceError(msg)
            if record is not None and record.workspace_name == workspace:
                return workspace, path, record.session_id or None
            return workspace, path, None

        if record is None:
            msg = "No workspace given and this thread has no previous workspace"
            raise WorkspaceError(msg)
        return record.workspace_name, record.workspace_path, record.session_id or None

    async def run(
        self,
        key: str,
        task: str,
        workspace: str | None = None,
        on_progress: TextSink | None = None,
        on_assistant_message: TextSink | None = None,
    ) -> InvocationResult:
        """Run *task* in the thread *key*, resuming its session if possible."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            name, path, prior_session_id = self.resolve(key, workspace)
            request = InvocationRequest(
                task=task,
                working_directory=path,
                prior_session_id=prior_session_id,
                on_progress=on_progress,
                on_assistant_message=on_assistant_message,
            )
            result = await self._invoker(
                request, self.settings, recorder=self._make_recorder(key)
            )

            if result.success:
                self._store.save(
                    key,
                    ThreadSessionRecord(
                        workspace_name=name,
                        workspace_path=path,
                        session_id=result.session_id or "",
                    ),
                )
            else:
                logger.warning("Thread %s: invocation %s", key, result.outcome)
            return result

    def _make_recorder(self, key: str) -> TranscriptRecorder | None:
        if not self._config.transcripts_dir:
            return None
        return TranscriptRecorder(Path(self._config.transcripts_dir), label=key)
