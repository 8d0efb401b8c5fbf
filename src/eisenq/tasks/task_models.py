# src/eisenq/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import Any

from .errors import EmptyTitle, InvalidPriority

MIN_LEVEL = 1
MAX_LEVEL = 3


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    pending -> completed is reversible only from the interactive UI (toggle);
    dropped is terminal and hidden from every view.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    DROPPED = "dropped"

    @classmethod
    def from_json(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(str(raw).lower())
        except ValueError:
            return cls.PENDING


class Quadrant(StrEnum):
    DO_FIRST = "do_first"
    SCHEDULE = "schedule"
    DELEGATE = "delegate"
    DROP = "drop"

    @property
    def label(self) -> str:
        return _QUADRANT_LABELS[self]

    @classmethod
    def of(cls, importance: int, urgency: int) -> Quadrant:
        if importance >= 2:
            return cls.DO_FIRST if urgency >= 2 else cls.SCHEDULE
        return cls.DELEGATE if urgency >= 2 else cls.DROP


_QUADRANT_LABELS = {
    Quadrant.DO_FIRST: "DO FIRST",
    Quadrant.SCHEDULE: "SCHEDULE",
    Quadrant.DELEGATE: "DELEGATE",
    Quadrant.DROP: "DROP",
}

# Display order: left-to-right, top-to-bottom in the grid.
QUADRANT_ORDER: tuple[Quadrant, ...] = (
    Quadrant.DO_FIRST,
    Quadrant.SCHEDULE,
    Quadrant.DELEGATE,
    Quadrant.DROP,
)


def validate_priority(value: Any, axis: str = "priority") -> int:
    """Return value if it is an int in [1, 3], else raise InvalidPriority."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPriority(axis, value)
    if value < MIN_LEVEL or value > MAX_LEVEL:
        raise InvalidPriority(axis, value)
    return value


def score_of(importance: int, urgency: int) -> int:
    return importance * 3 + urgency * 2


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    title: str
    urgency: int
    importance: int
    status: TaskStatus
    # Day offset from the local creation day (0 = created-on day, 1 = next day, ...).
    scheduled_day: int
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        validate_priority(self.urgency, "urgency")
        validate_priority(self.importance, "importance")
        if not self.title or not self.title.strip():
            raise EmptyTitle()

    @property
    def quadrant(self) -> Quadrant:
        return Quadrant.of(self.importance, self.urgency)

    @property
    def score(self) -> int:
        return score_of(self.importance, self.urgency)

    @property
    def created_day(self) -> date:
        return self.created_at.date()

    @property
    def scheduled_date(self) -> date:
        return self.created_day + timedelta(days=self.scheduled_day)

    @property
    def is_live(self) -> bool:
        return self.status is not TaskStatus.DROPPED

    def sort_key(self) -> tuple[int, datetime]:
        """Within a quadrant: score descending, then oldest first."""
        return (-self.score, self.created_at)

    def offset_for(self, day: date) -> int:
        return (day - self.created_day).days

    def short_id(self) -> str:
        return self.id[:8]

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "urgency": self.urgency,
            "importance": self.importance,
            "status": self.status.value,
            "scheduled_day": self.scheduled_day,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> Task:
        created_at = datetime.fromisoformat(str(raw["created_at"]))
        updated_raw = raw.get("updated_at")
        completed_raw = raw.get("completed_at")
        return cls(
            id=str(raw["id"]),
            title=str(raw.get("title") or ""),
            urgency=int(raw.get("urgency", MIN_LEVEL)),
            importance=int(raw.get("importance", MIN_LEVEL)),
            status=TaskStatus.from_json(raw.get("status")),
            scheduled_day=_offset_from_json(raw.get("scheduled_day"), created_at.date()),
            created_at=created_at,
            updated_at=datetime.fromisoformat(str(updated_raw)) if updated_raw else created_at,
            completed_at=datetime.fromisoformat(str(completed_raw)) if completed_raw else None,
        )


def _offset_from_json(raw: Any, created_day: date) -> int:
    """
    Accept the current integer offset plus the older shapes:
    "Today"/"Tomorrow" flags and absolute ISO dates.
    """
    if raw is None:
        return 0
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    s = str(raw).strip()
    low = s.lower()
    if low == "today":
        return 0
    if low == "tomorrow":
        return 1
    try:
        return int(s)
    except ValueError:
        pass
    return (date.fromisoformat(s) - created_day).days
