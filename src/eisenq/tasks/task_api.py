# src/eisenq/tasks/task_api.py

"""
High-level helpers shared by the CLI and the TUI.

They combine the priority parser with store operations so both surfaces
interpret "Buy milk !!$" and "u2i3" the same way.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta

from .priority_parser import parse_input
from .task_models import QUADRANT_ORDER, Quadrant, Task, TaskStatus
from .task_store import TaskStore


@dataclass(frozen=True, slots=True)
class TaskChanges:
    """Fields to update; None leaves the current value."""

    title: str | None = None
    urgency: int | None = None
    importance: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.title is None and self.urgency is None and self.importance is None


def add_from_text(store: TaskStore, text: str, *, day: date | None = None) -> Task:
    parsed = parse_input(text)
    return store.add(parsed.title, parsed.urgency, parsed.importance, day)


def edit_from_text(store: TaskStore, task_id: str, text: str) -> Task:
    """
    Apply an edit buffer such as "Write report u3i2".

    The remaining text becomes the new title; an axis the buffer does not
    mention keeps its current value.
    """
    changes = changes_from_text(text)
    # The editor buffer always carries the whole title, so an empty one is an error.
    return apply_changes(store, task_id, replace(changes, title=changes.title or ""))


def changes_from_text(
    text: str,
    *,
    title: str | None = None,
    urgency: int | None = None,
    importance: int | None = None,
) -> TaskChanges:
    """
    Merge free text such as "u3" or "New title i2" with explicit values.

    Explicit values win. Text without a title keeps the current title, and an
    axis neither source mentions keeps its current value.
    """
    parsed = parse_input(text)
    return TaskChanges(
        title=title if title is not None else (parsed.title or None),
        urgency=urgency if urgency is not None else (parsed.urgency if parsed.urgency_set else None),
        importance=importance
        if importance is not None
        else (parsed.importance if parsed.importance_set else None),
    )


def apply_changes(store: TaskStore, task_id: str, changes: TaskChanges) -> Task:
    return store.update_task(
        task_id, title=changes.title, urgency=changes.urgency, importance=changes.importance
    )


def week_of(day: date) -> list[date]:
    """Monday..Sunday of the week containing `day`."""
    start = day - timedelta(days=day.weekday())
    return [start + timedelta(days=i) for i in range(7)]


@dataclass(frozen=True, slots=True)
class QuadrantStats:
    quadrant: Quadrant
    completed: int
    avg_seconds_to_complete: int


def completion_stats(store: TaskStore) -> list[QuadrantStats]:
    counts = {q: 0 for q in QUADRANT_ORDER}
    durations = {q: 0.0 for q in QUADRANT_ORDER}

    for task in store.tasks:
        if task.status is not TaskStatus.COMPLETED:
            continue
        counts[task.quadrant] += 1
        if task.completed_at is not None:
            durations[task.quadrant] += (task.completed_at - task.created_at).total_seconds()

    return [
        QuadrantStats(
            quadrant=q,
            completed=counts[q],
            avg_seconds_to_complete=int(durations[q] / counts[q]) if counts[q] else 0,
        )
        for q in QUADRANT_ORDER
    ]
