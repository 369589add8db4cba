"""Shared helper functions for the engine."""

from __future__ import annotations


def format_stderr_preview(stderr_text: str, max_lines: int = 5) -> str:
    """Extract and format the last N non-empty lines from stderr output."""
    lines = [line for line in stderr_text.split("\n") if line.strip()]
    last = lines[-max_lines:] if len(lines) > max_lines else lines
    return "\n  ".join(last)


def format_seconds(seconds: float) -> str:
    """Render a duration without a trailing ``.0`` (``600`` not ``600.0``)."""
    return f"{seconds:g}"
