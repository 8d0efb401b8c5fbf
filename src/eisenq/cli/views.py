# src/eisenq/cli/views.py

"""Plain-text renderings used by the non-interactive commands."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from ..tasks.priority_parser import format_notation
from ..tasks.task_api import QuadrantStats, week_of
from ..tasks.task_models import QUADRANT_ORDER, Task, TaskStatus
from ..tasks.task_store import TaskStore


def format_task_line(n: int, task: Task) -> str:
    mark = "x" if task.status is TaskStatus.COMPLETED else " "
    return f"  {n:>2}. [{mark}] {task.title}  ({format_notation(task.urgency, task.importance)})  {task.short_id()}"


def format_matrix(store: TaskStore, day: date, *, label: str | None = None) -> str:
    """
    One day's tasks grouped by quadrant.

    Numbers run across quadrants in display order, so `eq done 3` refers to
    the third line printed here.
    """
    groups = store.quadrants_for(day)
    header = f"{label or day.isoformat()} ({day.strftime('%A')})"
    lines = [header, "=" * len(header)]
    n = 0
    for q in QUADRANT_ORDER:
        lines.append(f"{q.label}:")
        if not groups[q]:
            lines.append("     -")
        for task in groups[q]:
            n += 1
            lines.append(format_task_line(n, task))
    return "\n".join(lines)


def format_week(store: TaskStore, day: date) -> str:
    lines: list[str] = []
    for d in week_of(day):
        tasks = store.tasks_for(d)
        marker = " <" if d == store.today() else ""
        lines.append(f"{d.strftime('%a %Y-%m-%d')}{marker}")
        if not tasks:
            lines.append("     -")
        for n, task in enumerate(tasks, start=1):
            lines.append(f"{format_task_line(n, task)}  [{task.quadrant.label}]")
    return "\n".join(lines)


def _format_duration(seconds: int) -> str:
    if seconds <= 0:
        return "-"
    hours, rem = divmod(seconds, 3600)
    if hours >= 24:
        return f"{hours // 24}d {hours % 24}h"
    if hours:
        return f"{hours}h {rem // 60}m"
    return f"{rem // 60}m"


def format_stats(stats: Sequence[QuadrantStats]) -> str:
    lines = [f"{'Quadrant':<10} {'Done':>5}  Avg time to complete"]
    for s in stats:
        lines.append(f"{s.quadrant.label:<10} {s.completed:>5}  {_format_duration(s.avg_seconds_to_complete)}")
    total = sum(s.completed for s in stats)
    lines.append(f"{'TOTAL':<10} {total:>5}")
    return "\n".join(lines)
