"""agent-relay — drive a coding-agent CLI per task and stream its progress."""

__version__ = "0.1.0"
