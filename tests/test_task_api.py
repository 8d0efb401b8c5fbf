# tests/test_task_api.py

from __future__ import annotations

from datetime import date

from eisenq.cli.views import format_matrix, format_week
from eisenq.tasks.task_api import (
    add_from_text,
    apply_changes,
    changes_from_text,
    completion_stats,
    edit_from_text,
    week_of,
)
from eisenq.tasks.task_models import Quadrant
from eisenq.tasks.task_store import TaskStore

from .fakes import FakeClock


def test_edit_from_text_keeps_unmentioned_axis(store: TaskStore) -> None:
    task = add_from_text(store, "Write report !!$$$")
    edited = edit_from_text(store, task.id, "Write final report u1")
    assert (edited.title, edited.urgency, edited.importance) == ("Write final report", 1, 3)


def test_notation_only_changes_keep_the_title(store: TaskStore) -> None:
    task = add_from_text(store, "Gym u2i2")
    changes = changes_from_text("i3")
    assert changes.title is None and changes.urgency is None

    updated = apply_changes(store, task.id, changes)
    assert (updated.title, updated.urgency, updated.importance) == ("Gym", 2, 3)


def test_explicit_values_override_notation() -> None:
    changes = changes_from_text("Renamed u1i1", urgency=3, title="Kept")
    assert (changes.title, changes.urgency, changes.importance) == ("Kept", 3, 1)
    assert changes_from_text("").is_empty


def test_week_runs_monday_to_sunday() -> None:
    days = week_of(date(2024, 5, 9))
    assert days[0] == date(2024, 5, 6)
    assert days[-1] == date(2024, 5, 12)


def test_completion_stats_average(store: TaskStore, clock: FakeClock) -> None:
    a = store.add("a", 3, 3)
    b = store.add("b", 3, 3)
    clock.advance(hours=1)
    store.complete(a.id)
    clock.advance(hours=2)
    store.complete(b.id)
    store.add("open", 1, 1)

    stats = {s.quadrant: s for s in completion_stats(store)}
    assert stats[Quadrant.DO_FIRST].completed == 2
    assert stats[Quadrant.DO_FIRST].avg_seconds_to_complete == 2 * 3600
    assert stats[Quadrant.DROP].completed == 0


def test_matrix_and_week_views_number_tasks_in_display_order(store: TaskStore) -> None:
    store.add("low", 1, 1)
    store.add("high", 3, 3)

    matrix = format_matrix(store, store.today())
    assert matrix.index("1. [ ] high") < matrix.index("2. [ ] low")

    week = format_week(store, store.today())
    assert week.splitlines()[0] == "Mon 2024-05-06 <"
