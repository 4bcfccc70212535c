"""Routine Assistant: error taxonomy.

Every failure that crosses the engine boundary is one of these. The service
layer turns them into short user-facing messages; nothing below it catches
and hides them.
"""

from __future__ import annotations


class RoutineError(Exception):
    """Base class for all engine failures. ``str(exc)`` is user-safe."""


class CorruptState(RoutineError):
    """A persisted document exists but cannot be parsed into its schema."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Stored data in {path} is unreadable")
        self.path = path
        self.detail = detail


class NotFound(RoutineError):
    """A referenced event, reminder or session does not exist."""


class InvalidInput(RoutineError):
    """Malformed or out-of-range input, rejected before any write."""


class IOFailure(RoutineError):
    """The underlying storage read or write failed."""
