"""Agent process supervisor — spawn, stream, time out, finalize.

One :class:`InvocationSupervisor` owns one child process and one timer for
the lifetime of one invocation.  Two completion sources race for a single
result slot: the exit watcher (process exited) and the timer.  Whichever
resolves the slot first wins; the loser is a no-op.  Once the exit is seen
the timer is disarmed and the remaining output gets a bounded drain window,
so a leftover child holding stdout open cannot turn a clean exit into a
timeout.
Cancellation uses the same path as the timer.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import shlex
import signal
from typing import TYPE_CHECKING, Any

from agent_relay.config.models import AgentSettings
from agent_relay.constants import NO_OUTPUT_TEXT
from agent_relay.engine.decoder import StreamDecoder
from agent_relay.engine.events import interpret
from agent_relay.engine.helpers import format_seconds, format_stderr_preview
from agent_relay.engine.models import ErrorKind, InvocationRequest, InvocationResult
from agent_relay.engine.relay import ProgressRelay
from agent_relay.engine.state import InvocationState

if TYPE_CHECKING:
    from agent_relay.transcript.recorder import TranscriptRecorder

logger = logging.getLogger(__name__)

#: Bytes requested per stdout/stderr read.
_READ_CHUNK = 64 * 1024

#: Seconds to wait for the output readers after the process is gone.
_REAP_WAIT = 5.0

#: Seconds to keep reading output after the agent itself has exited.
_DRAIN_WAIT = 5.0


def build_command(request: InvocationRequest, settings: AgentSettings) -> list[str]:
    """Build the agent command line for *request*."""
    cmd = [
        *settings.argv_prefix,
        "-p",
        request.task,
        "--output-format",
        "stream-json",
        "--verbose",
        "--dangerously-skip-permissions",
        "--max-turns",
        str(settings.max_turns),
    ]
    if request.prior_session_id:
        cmd.extend(["--resume", request.prior_session_id])
    return cmd


class InvocationSupervisor:
    """Runs one agent invocation to a single terminal result.

    :meth:`run` may be called once.  :meth:`cancel` may be called from any
    task on the same event loop while :meth:`run` is in progress.
    """

    def __init__(
        self,
        request: InvocationRequest,
        settings: AgentSettings,
        recorder: TranscriptRecorder | None = None,
    ) -> None:
        self._request = request
        self._settings = settings
        self._recorder = recorder
        self._state = InvocationState()
        self._decoder = StreamDecoder()
        self._relay = ProgressRelay(
            settings.max_turns,
            on_progress=request.on_progress,
            on_assistant_message=request.on_assistant_message,
        )
        self._stderr = bytearray()
        self._process: asyncio.subprocess.Process | None = None
        self._result: asyncio.Future[InvocationResult] | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._started = False

    @property
    def state(self) -> InvocationState:
        return self._state

    @property
    def pid(self) -> int | None:
        """PID of the agent process, once spawned."""
        return self._process.pid if self._process is not None else None

    @property
    def done(self) -> bool:
        return self._result is not None and self._result.done()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def run(self) -> InvocationResult:
        """Launch the agent and wait for exactly one terminal result."""
        if self._started:
            msg = "InvocationSupervisor.run() may only be called once"
            raise RuntimeError(msg)
        self._started = True

        loop = asyncio.get_running_loop()
        self._result = loop.create_future()

        request = self._request
        argv = build_command(request, self._settings)
        logger.info(
            "Running agent in %s (resume: %s)",
            request.working_directory,
            request.prior_session_id or "-",
        )
        logger.debug("Agent command: %s", shlex.join(argv))
        if self._recorder is not None:
            self._recorder.record_start(
                argv, request.working_directory, request.prior_session_id
            )

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                cwd=request.working_directory,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as exc:
            logger.error("Failed to spawn agent %r: %s", argv[0], exc)
            self._resolve(f"Process error: {exc}", "launch")
            return self._finish()

        self._process = proc
        logger.info("Agent spawned, PID %s", proc.pid)

        self._timer = loop.call_later(self._settings.timeout, self._on_timeout)
        watcher = asyncio.create_task(self._watch(proc))
        try:
            await asyncio.shield(self._result)
        except asyncio.CancelledError:
            self.cancel("Invocation cancelled by caller")
            await self._cleanup(proc, watcher)
            self._finish()
            raise

        await self._cleanup(proc, watcher)
        return self._finish()

    def cancel(self, reason: str = "Invocation cancelled") -> bool:
        """Resolve as cancelled and signal the agent to terminate.

        Returns ``False`` if the invocation had already resolved.
        """
        if not self._resolve(reason, "cancelled"):
            return False
        logger.info("Cancelling agent (PID %s): %s", self.pid, reason)
        self._signal(kill=False)
        return True

    def _on_timeout(self) -> None:
        message = f"Timeout after {format_seconds(self._settings.timeout)} seconds"
        if self._resolve(message, "timeout"):
            logger.warning("Agent (PID %s) timed out; terminating", self.pid)
            self._signal(kill=False)

    async def _cleanup(
        self,
        proc: asyncio.subprocess.Process,
        watcher: asyncio.Task[None],
    ) -> None:
        """Disarm the timer and make sure the child is gone and reaped."""
        self._disarm_timer()
        if proc.returncode is None:
            await self._terminate(proc)
        await self._reap(watcher)

    def _disarm_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()

    async def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        """SIGTERM the process group, then SIGKILL after the grace period."""
        self._signal(kill=False)
        try:
            await asyncio.wait_for(proc.wait(), timeout=self._settings.kill_grace)
        except TimeoutError:
            logger.warning(
                "Agent (PID %s) did not exit after SIGTERM, sending SIGKILL", proc.pid
            )
            self._signal(kill=True)
            await proc.wait()

    def _signal(self, *, kill: bool) -> None:
        proc = self._process
        if proc is None or proc.returncode is not None:
            return
        with contextlib.suppress(ProcessLookupError, PermissionError):
            if hasattr(os, "killpg"):
                os.killpg(proc.pid, signal.SIGKILL if kill else signal.SIGTERM)
            elif kill:
                proc.kill()
            else:
                proc.terminate()

    def _kill_leftovers(self, proc: asyncio.subprocess.Process) -> None:
        """SIGKILL what is left of the process group after the agent exited."""
        if not hasattr(os, "killpg"):
            return
        with contextlib.suppress(ProcessLookupError, PermissionError):
            os.killpg(proc.pid, signal.SIGKILL)

    async def _reap(self, watcher: asyncio.Task[None]) -> None:
        try:
            await asyncio.wait_for(asyncio.shield(watcher), timeout=_REAP_WAIT)
        except TimeoutError:
            logger.warning("Agent output did not close after exit; abandoning readers")
            watcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await watcher

    # ------------------------------------------------------------------ #
    # Result slot
    # ------------------------------------------------------------------ #

    def _resolve(
        self,
        error: str | None = None,
        error_kind: ErrorKind | None = None,
        *,
        result: InvocationResult | None = None,
    ) -> bool:
        """Fill the result slot once; later calls return ``False``."""
        slot = self._result
        if slot is None or slot.done():
            return False
        if result is None:
            result = InvocationResult.failed(
                error or "Invocation failed",
                error_kind or "exit",
                session_id=self._state.session_id,
                returncode=self._process.returncode if self._process else None,
                tool_count=self._state.tool_count,
            )
        slot.set_result(result)
        return True

    def _slot(self) -> asyncio.Future[InvocationResult]:
        if self._result is None:
            msg = "InvocationSupervisor.run() has not been called"
            raise RuntimeError(msg)
        return self._result

    def _finish(self) -> InvocationResult:
        result = self._slot().result()
        logger.info(
            "Agent invocation %s (tools: %d, session: %s)",
            result.outcome,
            result.tool_count,
            result.session_id or "-",
        )
        if self._recorder is not None:
            self._recorder.end(result)
        return result

    # ------------------------------------------------------------------ #
    # Output handling
    # ------------------------------------------------------------------ #

    async def _watch(self, proc: asyncio.subprocess.Process) -> None:
        """Wait for exit, drain both pipes, then resolve from final state."""
        pumps = asyncio.gather(
            self._pump_stdout(proc.stdout),
            self._pump_stderr(proc.stderr),
        )
        try:
            returncode = await proc.wait()
            self._disarm_timer()
            await self._drain(proc, pumps)
            await self._handle_records(self._decoder.flush())
        except Exception as exc:
            logger.exception("Error while reading agent output")
            self._resolve(f"Process error: {exc}", "exit")
            return
        finally:
            pumps.cancel()
        self._resolve(result=self._finalize(returncode))

    async def _drain(
        self, proc: asyncio.subprocess.Process, pumps: asyncio.Future[Any]
    ) -> None:
        """Read what the exited agent left in its pipes, for a bounded time."""
        done, _ = await asyncio.wait({pumps}, timeout=_DRAIN_WAIT)
        if done:
            pumps.result()
            return
        logger.warning(
            "Agent (PID %s) exited but its output is still held open; "
            "killing leftover processes",
            proc.pid,
        )
        self._kill_leftovers(proc)

    async def _pump_stdout(self, stream: asyncio.StreamReader | None) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                break
            logger.debug("stdout: %r", chunk[:200])
            await self._handle_records(self._decoder.feed(chunk))

    async def _pump_stderr(self, stream: asyncio.StreamReader | None) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(_READ_CHUNK)
            if not chunk:
                break
            self._stderr += chunk
            text = chunk.decode(errors="replace")
            logger.debug("stderr: %s", text.rstrip())
            if self._recorder is not None:
                self._recorder.record_stderr(text)

    async def _handle_records(self, records: list[Any]) -> None:
        slot = self._slot()
        for record in records:
            for event in interpret(record):
                self._state.apply(event)
                if self._recorder is not None:
                    self._recorder.record_event(event)
                if not slot.done():
                    await self._relay.publish(event, self._state.tool_count)

    def _finalize(self, returncode: int) -> InvocationResult:
        state = self._state
        if returncode != 0 and not state.captured_result:
            stderr_text = self._stderr.decode(errors="replace").strip()
            preview = format_stderr_preview(stderr_text)
            if preview:
                logger.warning(
                    "Agent exited with code %d. Stderr:\n  %s", returncode, preview
                )
            else:
                logger.warning("Agent exited with code %d", returncode)
            return InvocationResult.failed(
                stderr_text or f"Exit code: {returncode}",
                "exit",
                session_id=state.session_id,
                returncode=returncode,
                tool_count=state.tool_count,
            )

        if returncode != 0:
            logger.warning(
                "Agent exited with code %d after producing output; keeping the output",
                returncode,
            )
        text = state.latest_result if state.latest_result is not None else NO_OUTPUT_TEXT
        return InvocationResult.succeeded(
            text,
            session_id=state.session_id,
            returncode=returncode,
            tool_count=state.tool_count,
        )


async def invoke(
    request: InvocationRequest,
    settings: AgentSettings,
    *,
    recorder: TranscriptRecorder | None = None,
) -> InvocationResult:
    """Run one agent invocation and return its terminal result."""
    return await InvocationSupervisor(request, settings, recorder=recorder).run()
