"""Thread session records and the stores that persist them.

A record remembers, per conversation key, which workspace the agent ran in
and the last session id it announced, so the next task in the same thread
can resume.  Records are never shared between keys.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class ThreadSessionRecord(BaseModel):
    """Persisted state for one conversation key."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    workspace_name: str = Field(description="Configured workspace name")
    workspace_path: str = Field(description="Absolute workspace directory")
    session_id: str = Field(
        default="",
        description="Last announced session id ('' if none was observed)",
    )


@runtime_checkable
class SessionStore(Protocol):
    """Load/save/delete contract for thread session records."""

    def load(self, key: str) -> ThreadSessionRecord | None: ...

    def save(self, key: str, record: ThreadSessionRecord) -> None: ...

    def delete(self, key: str) -> bool: ...


class MemorySessionStore:
    """Process-local store, mainly for tests and one-shot runs."""

    def __init__(self) -> None:
        self._records: dict[str, ThreadSessionRecord] = {}

    def load(self, key: str) -> ThreadSessionRecord | None:
        return self._records.get(key)

    def save(self, key: str, record: ThreadSessionRecord) -> None:
        self._records[key] = record

    def delete(self, key: str) -> bool:
        return self._records.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._records)


class JsonSessionStore:
    """Stores all records in one JSON object file, keyed by conversation.

    Writes go to a temporary file that replaces the original, so a crash
    never leaves a half-written store behind.  A missing or unreadable file
    is treated as empty.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self, key: str) -> ThreadSessionRecord | None:
        with self._lock:
            return self._read_all().get(key)

    def save(self, key: str, record: ThreadSessionRecord) -> None:
        with self._lock:
            records = self._read_all()
            records[key] = record
            self._write_all(records)

    def delete(self, key: str) -> bool:
        with self._lock:
            records = self._read_all()
            if records.pop(key, None) is None:
                return False
            self._write_all(records)
            return True

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._read_all())

    def _read_all(self) -> dict[str, ThreadSessionRecord]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable session store %s: %s", self._path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring session store %s: not a JSON object", self._path)
            return {}

        records: dict[str, ThreadSessionRecord] = {}
        for key, value in raw.items():
            try:
                records[key] = ThreadSessionRecord.model_validate(value)
            except ValidationError:
                logger.warning("Dropping malformed session record for %r", key)
        return records

    def _write_all(self, records: dict[str, ThreadSessionRecord]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {key: record.model_dump() for key, record in records.items()}
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
