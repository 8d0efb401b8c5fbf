# tests/test_task_store.py

from __future__ import annotations

import json
import uuid
from datetime import timedelta
from types import SimpleNamespace

import pytest

from eisenq.tasks.errors import (
    AmbiguousReference,
    EmptyTitle,
    InvalidPriority,
    InvalidState,
    StorageError,
    TaskNotFound,
)
from eisenq.tasks.event_log import EventAction, EventLog
from eisenq.tasks.task_models import Quadrant, TaskStatus
from eisenq.tasks.task_store import TaskStore

from .fakes import FakeClock


def _reopen(store: TaskStore, clock: FakeClock) -> TaskStore:
    return TaskStore(store.path, event_log=EventLog(store.event_log.path), clock=clock)


def test_add_persists_and_logs(store: TaskStore, clock: FakeClock) -> None:
    task = store.add("Write report", 3, 2)

    reopened = _reopen(store, clock)
    assert reopened.tasks == (task,)

    entries = store.event_log.read_entries()
    assert [e.action for e in entries] == [EventAction.CREATED]
    assert entries[0].task_id == task.id
    assert entries[0].details == "Created task: Write report"


def test_every_mutation_survives_a_reload(store: TaskStore, clock: FakeClock) -> None:
    keep = store.add("Write report", 1, 1)
    done = store.add("Pay rent", 3, 3)
    gone = store.add("Old idea", 1, 2)
    moved = store.add("Trip", 2, 2)

    clock.advance(minutes=5)
    store.update_task(keep.id, title="Write final report", urgency=2)
    store.complete(done.id)
    store.drop(gone.id)
    store.move_to(moved.id, store.today() + timedelta(days=3))
    store.toggle_complete(keep.id)
    store.toggle_complete(keep.id)

    reopened = _reopen(store, clock)
    assert reopened.tasks == store.tasks
    assert reopened.get(done.id).completed_at == clock.now
    assert reopened.get(moved.id).scheduled_day == 3
    assert reopened.get(gone.id).status is TaskStatus.DROPPED


def test_log_timestamps_follow_the_store_clock(store: TaskStore, clock: FakeClock) -> None:
    task = store.add("Timed", 2, 2)
    clock.advance(hours=2)
    completed = store.complete(task.id)

    created, finished = store.event_log.read_entries()
    assert created.timestamp == task.created_at
    assert finished.timestamp == completed.updated_at == clock.now


def test_add_validates_before_mutating(store: TaskStore) -> None:
    with pytest.raises(InvalidPriority):
        store.add("Bad", 4, 1)
    with pytest.raises(EmptyTitle):
        store.add("   ", 1, 1)
    assert store.tasks == ()
    assert not store.path.exists()
    assert store.event_log.read_entries() == []


def test_add_for_tomorrow_sets_offset(store: TaskStore) -> None:
    tomorrow = store.today() + timedelta(days=1)
    task = store.add("Later", day=tomorrow)
    assert task.scheduled_day == 1
    assert store.tasks_for(tomorrow) == [task]
    assert store.tasks_for(store.today()) == []


def test_quadrants_sorted_by_score_then_age(store: TaskStore, clock: FakeClock) -> None:
    low = store.add("low", 2, 2)
    clock.advance(minutes=1)
    high = store.add("high", 3, 3)
    clock.advance(minutes=1)
    tie = store.add("tie", 2, 2)
    drop = store.add("someday", 1, 1)

    groups = store.quadrants_for(store.today())
    assert groups[Quadrant.DO_FIRST] == [high, low, tie]
    assert groups[Quadrant.DROP] == [drop]
    assert store.tasks_for(store.today()) == [high, low, tie, drop]


def test_complete_is_idempotent(store: TaskStore, clock: FakeClock) -> None:
    task = store.add("Pay rent", 3, 3)
    clock.advance(hours=2)
    done = store.complete(task.id)
    again = store.complete(task.id)

    assert done.status is TaskStatus.COMPLETED
    assert done.completed_at == clock.now
    assert again == done
    assert [e.action for e in store.event_log.read_entries()] == [
        EventAction.CREATED,
        EventAction.COMPLETED,
    ]


def test_toggle_twice_logs_completed_then_updated(store: TaskStore) -> None:
    task = store.add("Toggle me")
    first = store.toggle_complete(task.id)
    second = store.toggle_complete(task.id)

    assert first.status is TaskStatus.COMPLETED
    assert second.status is TaskStatus.PENDING
    assert second.completed_at is None
    actions = [e.action for e in store.event_log.read_entries()]
    assert actions == [EventAction.CREATED, EventAction.COMPLETED, EventAction.UPDATED]


def test_drop_hides_task_and_second_drop_is_not_found(store: TaskStore) -> None:
    task = store.add("Forget it")
    store.drop(task.id)

    assert store.tasks_for(store.today()) == []
    assert store.get(task.id).status is TaskStatus.DROPPED
    with pytest.raises(TaskNotFound):
        store.drop(task.id)
    with pytest.raises(InvalidState):
        store.complete(task.id)
    with pytest.raises(InvalidState):
        store.update_task(task.id, title="Back")


def test_update_task_keeps_unmentioned_fields(store: TaskStore) -> None:
    task = store.add("Draft", 1, 3)
    updated = store.update_task(task.id, urgency=3)

    assert updated.title == "Draft"
    assert (updated.urgency, updated.importance) == (3, 3)
    last = store.event_log.read_entries()[-1]
    assert last.action is EventAction.UPDATED
    assert last.details == "Updated: Draft (u1i3) -> Draft (u3i3)"


def test_update_task_rejects_bad_input_without_mutation(store: TaskStore) -> None:
    task = store.add("Draft", 2, 2)
    with pytest.raises(EmptyTitle):
        store.update_task(task.id, title=" ")
    with pytest.raises(InvalidPriority):
        store.update_priority(task.id, 0, 2)
    assert store.get(task.id) == task


def test_move_to_logs_old_and_new_day(store: TaskStore) -> None:
    task = store.add("Move me")
    target = store.today() + timedelta(days=3)
    moved = store.move_to(task.id, target)

    assert moved.scheduled_day == 3
    assert moved.scheduled_date == target
    last = store.event_log.read_entries()[-1]
    assert last.action is EventAction.MOVED
    assert last.details == f"Moved: {store.today()} -> {target}"


def test_unknown_id_raises(store: TaskStore) -> None:
    with pytest.raises(TaskNotFound):
        store.complete("nope")


def test_find_task_id_by_prefix_and_number(store: TaskStore) -> None:
    a = store.add("first", 3, 3)
    b = store.add("second")
    visible = store.tasks_for(store.today())

    assert store.find_task_id(a.id[:8]) == a.id
    assert store.find_task_id("2", visible) == b.id
    assert store.find_task_id("zzzz") is None


def test_ambiguous_prefix_is_none(store: TaskStore, monkeypatch) -> None:
    ids = iter(
        [
            uuid.UUID("abcd0000-0000-4000-8000-000000000001"),
            uuid.UUID("abcd0000-0000-4000-8000-000000000002"),
        ]
    )
    # Only task ids are pinned; event-log entry ids stay random.
    monkeypatch.setattr("eisenq.tasks.task_store.uuid", SimpleNamespace(uuid4=lambda: next(ids)))
    store.add("one")
    store.add("two")

    assert store.find_task_id("abcd") is None
    with pytest.raises(AmbiguousReference):
        store.resolve("abcd")
    assert store.find_task_id("abcd0000-0000-4000-8000-000000000002") is not None


def test_dropped_tasks_do_not_resolve(store: TaskStore) -> None:
    task = store.add("gone")
    store.drop(task.id)
    assert store.find_task_id(task.id) is None


def test_corrupt_file_raises_storage_error(settings, clock: FakeClock) -> None:
    settings.tasks_path.parent.mkdir(parents=True)
    settings.tasks_path.write_text("{not json", "utf-8")
    with pytest.raises(StorageError):
        TaskStore(settings.tasks_path, clock=clock)
    assert settings.tasks_path.read_text("utf-8") == "{not json"


def test_write_failure_retries_then_raises(store: TaskStore, monkeypatch) -> None:
    calls = []

    def broken(path, data):
        calls.append(path)
        raise OSError("disk full")

    monkeypatch.setattr("eisenq.tasks.task_store.atomic_write_json", broken)
    with pytest.raises(StorageError):
        store.add("Never saved")
    assert len(calls) == 2


def test_event_log_failure_does_not_fail_mutation(store: TaskStore, monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise OSError("read-only")

    monkeypatch.setattr(store.event_log, "record", broken)
    task = store.add("Still saved")
    assert json.loads(store.path.read_text("utf-8"))[0]["id"] == task.id

    warning = store.pop_warning()
    assert warning is not None and "read-only" in warning
    assert store.pop_warning() is None


def test_chat_history_round_trip(store: TaskStore) -> None:
    messages = [
        {"role": "user", "text": "hi", "timestamp": "2024-05-06T09:00:00+00:00"},
        {"role": "assistant", "text": "hello", "timestamp": "2024-05-06T09:00:01+00:00"},
    ]
    store.save_chat_history(messages)
    assert store.load_chat_history() == messages


def test_chat_history_normalizes_roles(store: TaskStore) -> None:
    store.chat_history_path.parent.mkdir(parents=True, exist_ok=True)
    store.chat_history_path.write_text(
        json.dumps([{"role": "system", "content": "legacy"}, "junk"]), "utf-8"
    )
    assert store.load_chat_history() == [{"role": "user", "text": "legacy", "timestamp": ""}]
