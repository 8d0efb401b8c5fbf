# src/eisenq/tasks/task_store.py

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Any

from ..core.ports import ChatMessage
from .atomic_io import atomic_write_json, read_json
from .errors import (
    AmbiguousReference,
    EmptyTitle,
    InvalidState,
    StorageError,
    TaskNotFound,
)
from .event_log import EventAction, EventLog
from .priority_parser import format_notation
from .task_models import QUADRANT_ORDER, Quadrant, Task, TaskStatus, validate_priority

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _local_now() -> datetime:
    return datetime.now().astimezone()


class TaskStore:
    """
    JSON-file task store (aggregate root).

    - Tasks are kept in insertion order; views sort on read.
    - Every mutation rewrites the whole file atomically, then appends one
      event-log entry. Validation happens before anything is mutated.
    - Single writer: one process, one control thread.
    """

    def __init__(
        self,
        tasks_path: str | Path = "tasks.json",
        *,
        event_log: EventLog | None = None,
        chat_history_path: str | Path | None = None,
        clock: Clock | None = None,
        write_attempts: int = 2,
        retry_delay: float = 0.05,
    ) -> None:
        self._path = Path(tasks_path)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create {self._path.parent}: {e}") from e
        self._event_log = event_log if event_log is not None else EventLog(
            self._path.with_name("history.jsonl")
        )
        self._chat_path = (
            Path(chat_history_path)
            if chat_history_path is not None
            else self._path.with_name("chat_history.json")
        )
        self._clock: Clock = clock or _local_now
        self._write_attempts = max(1, int(write_attempts))
        self._retry_delay = retry_delay
        self._warning: str | None = None
        self._tasks: list[Task] = self._load()
        logger.info("TaskStore ready path=%s total=%d", self._path, len(self._tasks))

    # ---- low-level helpers ----

    def _load(self) -> list[Task]:
        try:
            raw = read_json(self._path, default=[])
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read {self._path}: {e}") from e
        if not isinstance(raw, list):
            raise StorageError(f"{self._path} does not contain a task array")
        try:
            return [Task.from_json(item) for item in raw]
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"{self._path} contains an invalid task record: {e}") from e

    def _write(self, path: Path, data: Any) -> None:
        last_error: OSError | None = None
        for attempt in range(1, self._write_attempts + 1):
            try:
                atomic_write_json(path, data)
                return
            except OSError as e:
                last_error = e
                logger.warning("Write to %s failed (attempt %d/%d): %s", path, attempt, self._write_attempts, e)
                if attempt < self._write_attempts and self._retry_delay > 0:
                    time.sleep(self._retry_delay)
        raise StorageError(f"Failed to save {path}: {last_error}") from last_error

    def _persist(self) -> None:
        self._write(self._path, [t.to_json() for t in self._tasks])

    def _log(self, action: EventAction, task_id: str, details: str, *, now: datetime | None = None) -> None:
        try:
            self._event_log.record(action, task_id, details, now=now or self._clock())
        except OSError as e:
            # The log is advisory; the mutation already reached disk.
            logger.warning("Event log append failed action=%s task_id=%s", action, task_id, exc_info=True)
            self._warning = f"Saved, but the history log could not be written: {e}"

    def pop_warning(self) -> str | None:
        """Return and clear the last non-fatal persistence warning."""
        warning, self._warning = self._warning, None
        return warning

    def _index_of(self, task_id: str) -> int:
        for idx, task in enumerate(self._tasks):
            if task.id == task_id:
                return idx
        raise TaskNotFound(task_id)

    def _commit(self, idx: int, task: Task, action: EventAction, details: str) -> Task:
        self._tasks[idx] = task
        self._persist()
        self._log(action, task.id, details, now=task.updated_at)
        return task

    def today(self) -> date:
        return self._clock().date()

    # ---- queries ----

    @property
    def path(self) -> Path:
        return self._path

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    def get(self, task_id: str) -> Task:
        return self._tasks[self._index_of(task_id)]

    def quadrants_for(self, day: date) -> dict[Quadrant, list[Task]]:
        groups: dict[Quadrant, list[Task]] = {q: [] for q in QUADRANT_ORDER}
        for task in self._tasks:
            if task.is_live and task.scheduled_date == day:
                groups[task.quadrant].append(task)
        for tasks in groups.values():
            tasks.sort(key=Task.sort_key)
        return groups

    def tasks_for(self, day: date) -> list[Task]:
        """Non-dropped tasks on `day`, quadrant by quadrant, best score first."""
        groups = self.quadrants_for(day)
        return [t for q in QUADRANT_ORDER for t in groups[q]]

    def _matches(self, reference: str, visible: Sequence[Task] | None) -> list[Task]:
        ref = reference.strip()
        if not ref:
            return []
        if visible and ref.isdigit():
            n = int(ref)
            if 1 <= n <= len(visible):
                return [visible[n - 1]]
        prefix = ref.lower()
        return [t for t in self._tasks if t.is_live and t.id.lower().startswith(prefix)]

    def find_task_id(self, reference: str, visible: Sequence[Task] | None = None) -> str | None:
        """
        Resolve a user-facing reference to a task id.

        `visible` is the list exactly as the caller displayed it; a 1-based
        number indexes into it. Anything else is an id prefix that must match
        exactly one non-dropped task. Ambiguous prefixes resolve to None.
        """
        matches = self._matches(reference, visible)
        return matches[0].id if len(matches) == 1 else None

    def resolve(self, reference: str, visible: Sequence[Task] | None = None) -> Task:
        matches = self._matches(reference, visible)
        if not matches:
            raise TaskNotFound(reference)
        if len(matches) > 1:
            raise AmbiguousReference(reference, len(matches))
        return matches[0]

    # ---- mutations ----

    def add(
        self,
        title: str,
        urgency: int = 1,
        importance: int = 1,
        day: date | None = None,
    ) -> Task:
        now = self._clock()
        offset = (day - now.date()).days if day is not None else 0
        task = Task(
            id=str(uuid.uuid4()),
            title=(title or "").strip(),
            urgency=urgency,
            importance=importance,
            status=TaskStatus.PENDING,
            scheduled_day=offset,
            created_at=now,
            updated_at=now,
        )
        self._tasks.append(task)
        self._persist()
        self._log(EventAction.CREATED, task.id, f"Created task: {task.title}", now=now)
        logger.debug("Task added id=%s quadrant=%s day=%s", task.id, task.quadrant, task.scheduled_date)
        return task

    def complete(self, task_id: str) -> Task:
        """One-way completion; completing a completed task is a silent no-op."""
        idx = self._index_of(task_id)
        task = self._tasks[idx]
        if task.status is TaskStatus.DROPPED:
            raise InvalidState(f"Cannot complete a dropped task: {task.title}")
        if task.status is TaskStatus.COMPLETED:
            return task
        now = self._clock()
        done = replace(task, status=TaskStatus.COMPLETED, completed_at=now, updated_at=now)
        return self._commit(idx, done, EventAction.COMPLETED, f"Completed task: {task.title}")

    def toggle_complete(self, task_id: str) -> Task:
        idx = self._index_of(task_id)
        task = self._tasks[idx]
        now = self._clock()
        if task.status is TaskStatus.DROPPED:
            raise InvalidState(f"Cannot toggle a dropped task: {task.title}")
        if task.status is TaskStatus.COMPLETED:
            undone = replace(task, status=TaskStatus.PENDING, completed_at=None, updated_at=now)
            return self._commit(idx, undone, EventAction.UPDATED, f"Undone task: {task.title}")
        done = replace(task, status=TaskStatus.COMPLETED, completed_at=now, updated_at=now)
        return self._commit(idx, done, EventAction.COMPLETED, f"Completed task: {task.title}")

    def drop(self, task_id: str) -> Task:
        idx = self._index_of(task_id)
        task = self._tasks[idx]
        if task.status is TaskStatus.DROPPED:
            raise TaskNotFound(task_id)
        dropped = replace(task, status=TaskStatus.DROPPED, updated_at=self._clock())
        return self._commit(idx, dropped, EventAction.DROPPED, f"Dropped task: {task.title}")

    def update_task(
        self,
        task_id: str,
        *,
        title: str | None = None,
        urgency: int | None = None,
        importance: int | None = None,
    ) -> Task:
        idx = self._index_of(task_id)
        task = self._tasks[idx]
        if task.status is TaskStatus.DROPPED:
            raise InvalidState(f"Cannot edit a dropped task: {task.title}")

        new_title = task.title if title is None else title.strip()
        if not new_title:
            raise EmptyTitle()
        new_u = task.urgency if urgency is None else validate_priority(urgency, "urgency")
        new_i = task.importance if importance is None else validate_priority(importance, "importance")

        updated = replace(
            task,
            title=new_title,
            urgency=new_u,
            importance=new_i,
            updated_at=self._clock(),
        )
        before = f"{task.title} ({format_notation(task.urgency, task.importance)})"
        after = f"{updated.title} ({format_notation(updated.urgency, updated.importance)})"
        return self._commit(idx, updated, EventAction.UPDATED, f"Updated: {before} -> {after}")

    def update_priority(self, task_id: str, urgency: int, importance: int) -> Task:
        validate_priority(urgency, "urgency")
        validate_priority(importance, "importance")
        return self.update_task(task_id, urgency=urgency, importance=importance)

    def move_to(self, task_id: str, day: date) -> Task:
        idx = self._index_of(task_id)
        task = self._tasks[idx]
        if task.status is TaskStatus.DROPPED:
            raise InvalidState(f"Cannot move a dropped task: {task.title}")
        old_day = task.scheduled_date
        moved = replace(task, scheduled_day=task.offset_for(day), updated_at=self._clock())
        return self._commit(idx, moved, EventAction.MOVED, f"Moved: {old_day} -> {day}")

    # ---- chat transcript ----

    @property
    def chat_history_path(self) -> Path:
        return self._chat_path

    def load_chat_history(self) -> list[ChatMessage]:
        try:
            data = read_json(self._chat_path, default=[])
        except (OSError, ValueError):
            logger.exception("Failed to load chat history from %s", self._chat_path)
            return []
        if not isinstance(data, list):
            return []
        out: list[ChatMessage] = []
        for m in data:
            if not isinstance(m, dict):
                continue
            role = str(m.get("role", "user"))
            if role not in ("user", "assistant"):
                role = "user"
            out.append(
                {
                    "role": role,
                    "text": str(m.get("text", m.get("content", ""))),
                    "timestamp": str(m.get("timestamp", "")),
                }
            )
        logger.info("Loaded chat history: %d messages from %s", len(out), self._chat_path)
        return out

    def save_chat_history(self, messages: Iterable[ChatMessage]) -> None:
        clean = [
            {"role": m["role"], "text": m["text"], "timestamp": m.get("timestamp", "")}
            for m in messages
        ]
        self._write(self._chat_path, clean)
        logger.debug("Saved chat history: %d messages to %s", len(clean), self._chat_path)
