# src/eisenq/chat/directives.py

"""
Directives embedded in assistant replies.

One directive per line, anywhere in the reply:
    [ADD] Draft agenda u2i3
    [DONE] #2          (or "2", or a title fragment)
    [DROP] groceries
    [EDIT] #1 -> Draft final agenda u3i3
    [EDIT] #1 u1i2     (priority only)

ADD directives are applied as soon as the reply arrives; the others are
destructive and wait for the user's confirmation in the chat screen.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import StrEnum

from ..tasks.errors import AmbiguousReference, TaskError, TaskNotFound
from ..tasks.priority_parser import format_notation, parse_input
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

# Plain-sentence form some models prefer over the bracket syntax.
_ADD_SENTENCE = re.compile(
    r"^add task [`'\"]?(?P<title>.+?)[`'\"]? with urgency [`'\"]?(?P<u>\d+)[`'\"]?"
    r",? (?:and )?importance [`'\"]?(?P<i>\d+)[`'\"]?\.?$",
    re.IGNORECASE,
)


class DirectiveKind(StrEnum):
    ADD = "ADD"
    DONE = "DONE"
    DROP = "DROP"
    EDIT = "EDIT"


@dataclass(frozen=True, slots=True)
class TaskRef:
    """Either a 1-based position in the displayed list or a title fragment."""

    index: int | None = None
    title: str | None = None

    @classmethod
    def parse(cls, raw: str) -> TaskRef | None:
        text = raw.strip()
        if not text:
            return None
        digits = text[1:].strip() if text.startswith("#") else text
        if digits.isdigit():
            return cls(index=int(digits))
        return cls(title=text)

    def describe(self) -> str:
        return f"#{self.index}" if self.index is not None else f'"{self.title}"'

    def resolve(self, visible: Sequence[Task]) -> Task:
        """Match against `visible`; title fragments must match exactly one task."""
        if self.index is not None:
            if 1 <= self.index <= len(visible):
                return visible[self.index - 1]
            raise TaskNotFound(self.describe())
        needle = (self.title or "").lower()
        matches = [t for t in visible if needle in t.title.lower()]
        if not matches:
            raise TaskNotFound(self.describe())
        if len(matches) > 1:
            raise AmbiguousReference(self.describe(), len(matches))
        return matches[0]


@dataclass(frozen=True, slots=True)
class Directive:
    kind: DirectiveKind
    # ADD: the new task. EDIT: the replacement values (title may be empty).
    title: str = ""
    urgency: int | None = None
    importance: int | None = None
    target: TaskRef | None = None

    def describe(self) -> str:
        if self.kind is DirectiveKind.ADD:
            return f"ADD: {self.title} ({format_notation(self.urgency or 1, self.importance or 1)})"
        target = self.target.describe() if self.target else "?"
        if self.kind is not DirectiveKind.EDIT:
            return f"{self.kind.value}: {target}"
        changes: list[str] = []
        if self.title:
            changes.append(f"title='{self.title}'")
        if self.urgency is not None:
            changes.append(f"urgency={self.urgency}")
        if self.importance is not None:
            changes.append(f"importance={self.importance}")
        return f"EDIT: {target} -> {', '.join(changes) or 'no changes'}"


def _parse_add(rest: str) -> Directive | None:
    parsed = parse_input(rest)
    if not parsed.title:
        return None
    return Directive(DirectiveKind.ADD, parsed.title, parsed.urgency, parsed.importance)


def _add_from_sentence(m: re.Match[str]) -> Directive:
    # Out-of-range levels degrade to the default, like the notation parser.
    parsed = parse_input(f"{m.group('title')} u{m.group('u')}i{m.group('i')}")
    return Directive(DirectiveKind.ADD, parsed.title, parsed.urgency, parsed.importance)


def _parse_edit(rest: str) -> Directive | None:
    if "->" in rest:
        left, right = rest.split("->", 1)
        target = TaskRef.parse(left)
        parsed = parse_input(right)
    else:
        # "[EDIT] #1 u1i2": priority only, the rest of the line is the reference.
        parsed = parse_input(rest)
        if not parsed.has_notation:
            return None
        target = TaskRef.parse(parsed.title)
        parsed = replace(parsed, title="")
    if target is None:
        return None
    return Directive(
        DirectiveKind.EDIT,
        title=parsed.title,
        urgency=parsed.urgency if parsed.urgency_set else None,
        importance=parsed.importance if parsed.importance_set else None,
        target=target,
    )


def parse_directives(reply: str) -> list[Directive]:
    out: list[Directive] = []
    for line in (reply or "").splitlines():
        trimmed = line.strip()
        sentence = _ADD_SENTENCE.match(trimmed)
        if sentence:
            out.append(_add_from_sentence(sentence))
            continue
        if not trimmed.startswith("["):
            continue
        head, sep, rest = trimmed[1:].partition("]")
        if not sep:
            continue
        try:
            kind = DirectiveKind(head.strip().upper())
        except ValueError:
            continue

        directive: Directive | None
        if kind is DirectiveKind.ADD:
            directive = _parse_add(rest)
        elif kind is DirectiveKind.EDIT:
            directive = _parse_edit(rest)
        else:
            target = TaskRef.parse(rest)
            directive = Directive(kind, target=target) if target else None

        if directive is None:
            logger.debug("Ignoring malformed directive line: %r", trimmed)
            continue
        out.append(directive)
    return out


@dataclass(slots=True)
class DirectiveResults:
    added: list[str] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)
    edited: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.completed or self.dropped or self.edited)

    def record_error(self, directive: Directive, err: TaskError) -> None:
        self.errors.append(f"{directive.describe()}: {err}")

    def format_confirmation(self) -> str:
        sections = (
            ("Added", self.added),
            ("Completed", self.completed),
            ("Dropped", self.dropped),
            ("Edited", self.edited),
            ("Errors", self.errors),
        )
        lines: list[str] = []
        for name, items in sections:
            if not items:
                continue
            lines.append(f"{name}:")
            lines.extend(f"  - {item}" for item in items)
        return "\n".join(lines)
