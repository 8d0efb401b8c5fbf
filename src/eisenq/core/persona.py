# src/eisenq/core/persona.py

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import date
from typing import Final

from ..tasks.task_models import Task

BASE_PERSONA_PROMPT: Final[str] = """
You are a planning assistant built around the Eisenhower Matrix.

Priority scale:
- Urgency 1-3: 3 = due within 24h or blocks others; 2 = due this week; 1 = no time pressure.
- Importance 1-3: 3 = advances key goals or is irreversible; 2 = meaningful but not critical; 1 = nice-to-have.

Coaching:
- Break goals into next physical actions of 15-45 minutes.
- For DELEGATE tasks ask whether they can be delegated, automated or declined.
- For DROP tasks ask whether they belong on the list at all.

Directives (one per line, exactly as shown; the app executes them):
[ADD] <task title> u<1-3>i<1-3>
[DONE] #<number>
[DROP] #<number>
[EDIT] #<number> -> <new title> u<1-3>i<1-3>
Numbers refer to the numbered task list below. ADD is applied immediately;
DONE, DROP and EDIT wait for the user's confirmation.

Style:
- Be direct and concise. One clear recommendation per reply when possible.
- Ask one clarifying question if a task is too vague to decompose.
- Match the user's language.
""".strip()


def format_task_context(tasks: Sequence[Task], day: date) -> str:
    """Numbered task list for `day`, in the order the user sees it."""
    rows = [
        {
            "n": n,
            "title": t.title,
            "urgency": t.urgency,
            "importance": t.importance,
            "quadrant": t.quadrant.label,
            "status": t.status.value,
        }
        for n, t in enumerate(tasks, start=1)
    ]
    return f"Tasks for {day.isoformat()}:\n" + json.dumps(rows, ensure_ascii=False, indent=2)


def get_system_prompt(task_context: str) -> str:
    return f"{BASE_PERSONA_PROMPT}\n\nCURRENT TASKS:\n{task_context or '(none)'}"
