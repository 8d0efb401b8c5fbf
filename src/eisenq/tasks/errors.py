# src/eisenq/tasks/errors.py

"""
Errors raised by the task subsystem.

Callers (CLI, TUI) catch TaskError and turn it into a message; nothing here is
meant to crash the process.
"""

from __future__ import annotations


class TaskError(Exception):
    """Base class for all task-store failures."""


class InvalidPriority(TaskError, ValueError):
    def __init__(self, axis: str, value: object) -> None:
        super().__init__(f"{axis} must be an integer in [1, 3], got {value!r}")
        self.axis = axis
        self.value = value


class EmptyTitle(TaskError, ValueError):
    def __init__(self) -> None:
        super().__init__("Task title cannot be empty")


class TaskNotFound(TaskError, LookupError):
    def __init__(self, reference: str) -> None:
        super().__init__(f"Task not found: {reference}")
        self.reference = reference


class AmbiguousReference(TaskNotFound):
    """A reference matched more than one task. Treated as not found."""

    def __init__(self, reference: str, matches: int) -> None:
        TaskError.__init__(self, f"Task reference is ambiguous: {reference} ({matches} matches)")
        self.reference = reference
        self.matches = matches


class InvalidState(TaskError):
    """The operation is not valid for the task's current status."""


class StorageError(TaskError, OSError):
    """Persistence failed after retrying; in-memory state may be ahead of disk."""
