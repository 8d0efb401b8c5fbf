# src/eisenq/tasks/event_log.py

"""
Append-only audit trail of task lifecycle transitions (JSON Lines).

One write+flush per entry. The log is advisory: losing a partially written
last line on crash is accepted, and nothing replays it to rebuild the store.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class EventAction(StrEnum):
    CREATED = "Created"
    UPDATED = "Updated"
    COMPLETED = "Completed"
    DROPPED = "Dropped"
    MOVED = "Moved"


@dataclass(frozen=True, slots=True)
class EventLogEntry:
    id: str
    timestamp: datetime
    action: EventAction
    task_id: str
    details: str

    @classmethod
    def new(
        cls, action: EventAction, task_id: str, details: str, *, now: datetime | None = None
    ) -> EventLogEntry:
        return cls(
            id=str(uuid.uuid4()),
            timestamp=now or datetime.now().astimezone(),
            action=action,
            task_id=task_id,
            details=details,
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "action": self.action.value,
            "task_id": self.task_id,
            "details": self.details,
        }

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> EventLogEntry:
        return cls(
            id=str(raw["id"]),
            timestamp=datetime.fromisoformat(str(raw["timestamp"])),
            action=EventAction(raw["action"]),
            task_id=str(raw["task_id"]),
            details=str(raw.get("details", "")),
        )


class EventLog:
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, entry: EventLogEntry) -> None:
        """Raises OSError if the line cannot be written."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(entry.to_json(), ensure_ascii=False)
        with open(self._path, "a", encoding="utf-8") as f:
            f.write(line + "\n")
            f.flush()

    def record(
        self, action: EventAction, task_id: str, details: str, *, now: datetime | None = None
    ) -> EventLogEntry:
        entry = EventLogEntry.new(action, task_id, details, now=now)
        self.append(entry)
        return entry

    def read_entries(self) -> list[EventLogEntry]:
        if not self._path.exists():
            return []
        out: list[EventLogEntry] = []
        with open(self._path, encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    out.append(EventLogEntry.from_json(json.loads(line)))
                except (ValueError, KeyError):
                    logger.warning("Skipping unreadable event log line %s:%d", self._path, lineno)
        return out
