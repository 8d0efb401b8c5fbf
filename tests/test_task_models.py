# tests/test_task_models.py

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta

import pytest

from eisenq.tasks.errors import EmptyTitle, InvalidPriority
from eisenq.tasks.task_models import Quadrant, Task, TaskStatus, score_of

from .fakes import FIXED_NOW


def _task(**overrides) -> Task:
    fields = dict(
        id="abc",
        title="Write report",
        urgency=1,
        importance=1,
        status=TaskStatus.PENDING,
        scheduled_day=0,
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )
    fields.update(overrides)
    return Task(**fields)


@pytest.mark.parametrize(
    ("importance", "urgency", "expected"),
    [
        (3, 3, Quadrant.DO_FIRST),
        (2, 2, Quadrant.DO_FIRST),
        (3, 1, Quadrant.SCHEDULE),
        (1, 3, Quadrant.DELEGATE),
        (1, 1, Quadrant.DROP),
    ],
)
def test_quadrant_partition(importance: int, urgency: int, expected: Quadrant) -> None:
    assert _task(importance=importance, urgency=urgency).quadrant is expected


def test_every_priority_pair_lands_in_exactly_one_quadrant() -> None:
    seen = {(i, u): Quadrant.of(i, u) for i in range(1, 4) for u in range(1, 4)}
    assert len(seen) == 9
    assert set(seen.values()) == set(Quadrant)


def test_score_formula() -> None:
    assert score_of(3, 3) == 15
    assert score_of(1, 1) == 5
    assert _task(importance=2, urgency=3).score == 12


@pytest.mark.parametrize("bad", [0, 4, -1, True, 2.0, "2"])
def test_priority_out_of_range_is_rejected(bad) -> None:
    with pytest.raises(InvalidPriority):
        _task(urgency=bad)


def test_empty_title_is_rejected() -> None:
    with pytest.raises(EmptyTitle):
        _task(title="   ")


def test_scheduled_date_is_offset_from_creation_day() -> None:
    task = _task(scheduled_day=2)
    assert task.scheduled_date == FIXED_NOW.date() + timedelta(days=2)
    assert task.offset_for(FIXED_NOW.date() - timedelta(days=1)) == -1


def test_sort_key_prefers_score_then_age() -> None:
    older = _task(id="a", urgency=2, importance=2)
    newer = replace(older, id="b", created_at=FIXED_NOW + timedelta(minutes=5))
    higher = _task(id="c", urgency=3, importance=3, created_at=FIXED_NOW + timedelta(hours=1))
    assert sorted([newer, older, higher], key=Task.sort_key) == [higher, older, newer]


def test_json_round_trip_preserves_every_field() -> None:
    task = _task(
        urgency=3,
        importance=2,
        status=TaskStatus.COMPLETED,
        scheduled_day=-1,
        completed_at=FIXED_NOW + timedelta(hours=2),
    )
    assert Task.from_json(task.to_json()) == task


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("Today", 0), ("Tomorrow", 1), ("3", 3), ("2024-05-08", 2), (None, 0)],
)
def test_from_json_accepts_older_day_shapes(raw, expected: int) -> None:
    record = _task().to_json()
    record["scheduled_day"] = raw
    assert Task.from_json(record).scheduled_day == expected


def test_unknown_status_reads_as_pending() -> None:
    record = _task().to_json()
    record["status"] = "archived"
    assert Task.from_json(record).status is TaskStatus.PENDING


def test_dropped_task_is_not_live() -> None:
    assert not _task(status=TaskStatus.DROPPED).is_live
    assert _task(status=TaskStatus.COMPLETED).is_live
    assert _task().created_day == date(2024, 5, 6)
