"""Transcript recorder — append-only JSONL log of one invocation."""

from __future__ import annotations

import re
import threading
import time
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import IO

from agent_relay.engine.events import StreamEvent
from agent_relay.engine.models import InvocationResult
from agent_relay.transcript.models import (
    InvocationEndEntry,
    InvocationStartEntry,
    StderrEntry,
    StreamEventEntry,
    TranscriptEntry,
)

#: Characters allowed in the label part of a transcript filename.
_UNSAFE_LABEL_RE = re.compile(r"[^a-zA-Z0-9_-]+")


class TranscriptRecorder:
    """Records one invocation to an append-only JSONL file.

    Thread-safe: all writes are serialized through a ``threading.Lock``.
    Crash-safe: the file is flushed after every entry.
    """

    def __init__(self, transcripts_dir: Path, label: str = "invocation") -> None:
        self._lock = threading.Lock()
        self._seq = 0
        self._closed = False
        self._start_ns = time.monotonic_ns()
        self._transcript_id = uuid.uuid4().hex[:12]

        safe_label = _UNSAFE_LABEL_RE.sub("-", label).strip("-") or "invocation"
        transcripts_dir.mkdir(parents=True, exist_ok=True)
        date_str = datetime.now(tz=UTC).strftime("%Y-%m-%d")
        self._path = transcripts_dir / f"{date_str}_{safe_label}_{self._transcript_id}.jsonl"
        self._fh: IO[str] | None = self._path.open("a", encoding="utf-8")

    @property
    def path(self) -> Path:
        """Path to the JSONL file."""
        return self._path

    @property
    def entry_count(self) -> int:
        return self._seq

    def record(self, entry: TranscriptEntry) -> None:
        """Stamp ``ts``/``seq`` on *entry* and append it.

        Silently drops entries after the recorder has been closed.
        """
        with self._lock:
            if self._closed or self._fh is None:
                return
            entry.seq = self._seq
            entry.ts = _iso_now()
            self._seq += 1
            self._fh.write(entry.model_dump_json() + "\n")
            self._fh.flush()

    def record_start(
        self, argv: list[str], cwd: str, prior_session_id: str | None
    ) -> None:
        self.record(
            InvocationStartEntry(
                ts="",
                seq=0,
                argv=argv,
                cwd=cwd,
                prior_session_id=prior_session_id,
            )
        )

    def record_event(self, event: StreamEvent) -> None:
        self.record(StreamEventEntry(ts="", seq=0, event=event))

    def record_stderr(self, text: str) -> None:
        self.record(StderrEntry(ts="", seq=0, text=text))

    def end(self, result: InvocationResult) -> None:
        """Write the ``invocation_end`` entry and close the file.

        Idempotent: a second call is a no-op.
        """
        if self._closed:
            return
        duration_ms = int((time.monotonic_ns() - self._start_ns) / 1_000_000)
        self.record(
            InvocationEndEntry(
                ts="",
                seq=0,
                outcome=result.outcome,
                result=result.model_dump(mode="json"),
                duration_ms=duration_ms,
            )
        )
        self.close()

    def close(self) -> None:
        """Close the file **without** writing an ``invocation_end`` entry."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._fh is not None and not self._fh.closed:
                self._fh.close()


def _iso_now() -> str:
    """Return the current UTC time as ISO 8601 with milliseconds."""
    return datetime.now(tz=UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
