"""Incremental decoder for newline-delimited JSON on a subprocess stdout."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

#: Maximum bytes per JSONL line from subprocess stdout (10 MB).
_MAX_LINE_BYTES = 10 * 1024 * 1024


class _Unparseable:
    """Sentinel for a line that is not valid JSON."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "UNPARSEABLE"


#: Yielded in place of a record when a line fails to parse.
UNPARSEABLE: Any = _Unparseable()


class StreamDecoder:
    """Reassembles JSON records from arbitrarily chunked bytes.

    Bytes are buffered until a ``\\n`` arrives, so chunk boundaries may fall
    anywhere, including inside a multi-byte UTF-8 character.  Each complete
    line is parsed on its own; a bad line yields :data:`UNPARSEABLE` and the
    decoder carries on with the next one.
    """

    def __init__(self, max_line_bytes: int = _MAX_LINE_BYTES) -> None:
        self._pending = bytearray()
        self._max_line_bytes = max_line_bytes
        self._skipping = False

    @property
    def pending(self) -> bytes:
        """Trailing bytes not yet terminated by a newline."""
        return bytes(self._pending)

    def feed(self, chunk: bytes) -> list[Any]:
        """Append *chunk* and return every record it completes, in order."""
        records: list[Any] = []
        start = 0
        while True:
            end = chunk.find(b"\n", start)
            if end == -1:
                break
            segment = chunk[start:end]
            start = end + 1
            if self._skipping:
                # Tail of an oversized line: discard through its newline.
                self._skipping = False
                self._pending.clear()
                continue
            if len(self._pending) + len(segment) > self._max_line_bytes:
                logger.warning(
                    "stdout line exceeds %d bytes, skipping", self._max_line_bytes
                )
                self._pending.clear()
                continue
            self._pending += segment
            line = bytes(self._pending)
            self._pending.clear()
            record = self._parse(line)
            if record is not None:
                records.append(record)

        if not self._skipping:
            self._pending += chunk[start:]
            if len(self._pending) > self._max_line_bytes:
                logger.warning(
                    "stdout line exceeds %d bytes, skipping", self._max_line_bytes
                )
                self._pending.clear()
                self._skipping = True
        return records

    def flush(self) -> list[Any]:
        """Parse whatever is left in the buffer once and clear it."""
        line = bytes(self._pending)
        self._pending.clear()
        self._skipping = False
        record = self._parse(line)
        return [record] if record is not None else []

    @staticmethod
    def _parse(line: bytes) -> Any | None:
        """Parse one line; ``None`` for blank lines."""
        text = line.decode("utf-8", errors="replace").strip()
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            logger.debug("ignoring non-JSON line: %s", text[:200])
            return UNPARSEABLE


def decode_document(data: bytes) -> list[Any]:
    """Decode a complete JSON-lines document in one go."""
    decoder = StreamDecoder()
    return decoder.feed(data) + decoder.flush()
