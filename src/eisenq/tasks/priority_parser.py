# src/eisenq/tasks/priority_parser.py

"""
Priority notation parser.

Two notations are recognised inside free-form task text:
- symbols: a token made only of "!" and "$" ("!!", "$$$", "!!$"),
  one "!" per urgency level and one "$" per importance level, capped at 3;
- shorthand: "u2i3", "i3u2", "u3", "i2" (case-insensitive).

Rules:
- notation tokens are stripped from the title, whitespace is collapsed;
- an axis nobody specified defaults to 1;
- a shorthand axis with a missing or out-of-range digit ("u", "i9") is ignored;
- shorthand wins over symbols per axis; a later shorthand token wins over an earlier one.

Parsing never raises: every string maps to one (title, urgency, importance).
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .task_models import MAX_LEVEL, MIN_LEVEL

_SYMBOL_TOKEN = re.compile(r"^[!$]+$")
# At least one digit somewhere, so plain words like "I" or "u" stay in the title.
_SHORTHAND_TOKEN = re.compile(
    r"^(?:u(?P<u1>\d*)(?:i(?P<i1>\d*))?|i(?P<i2>\d*)(?:u(?P<u2>\d*))?)$",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class ParsedInput:
    title: str
    urgency: int
    importance: int
    urgency_set: bool = False
    importance_set: bool = False

    @property
    def has_notation(self) -> bool:
        return self.urgency_set or self.importance_set


def _level(digits: str | None) -> int | None:
    if not digits:
        return None
    try:
        n = int(digits)
    except ValueError:
        return None
    if n < MIN_LEVEL or n > MAX_LEVEL:
        return None
    return n


def _parse_shorthand(token: str) -> tuple[bool, int | None, int | None]:
    """Return (is_notation, urgency, importance) for one whitespace-delimited token."""
    m = _SHORTHAND_TOKEN.match(token)
    if m is None or not any(ch.isdigit() for ch in token):
        return False, None, None
    u_digits = m.group("u1") if m.group("u1") is not None else m.group("u2")
    i_digits = m.group("i1") if m.group("i1") is not None else m.group("i2")
    return True, _level(u_digits), _level(i_digits)


def parse_input(text: str | None) -> ParsedInput:
    symbol_u = 0
    symbol_i = 0
    short_u: int | None = None
    short_i: int | None = None
    title_parts: list[str] = []

    for token in (text or "").split():
        if _SYMBOL_TOKEN.match(token):
            symbol_u += token.count("!")
            symbol_i += token.count("$")
            continue

        is_notation, u, i = _parse_shorthand(token)
        if is_notation:
            if u is not None:
                short_u = u
            if i is not None:
                short_i = i
            continue

        title_parts.append(token)

    urgency = short_u if short_u is not None else min(symbol_u, MAX_LEVEL) or MIN_LEVEL
    importance = short_i if short_i is not None else min(symbol_i, MAX_LEVEL) or MIN_LEVEL

    return ParsedInput(
        title=" ".join(title_parts),
        urgency=urgency,
        importance=importance,
        urgency_set=short_u is not None or symbol_u > 0,
        importance_set=short_i is not None or symbol_i > 0,
    )


def parse_priority(text: str | None) -> tuple[int, int]:
    """Convenience: just the (urgency, importance) pair."""
    parsed = parse_input(text)
    return parsed.urgency, parsed.importance


def format_notation(urgency: int, importance: int) -> str:
    return f"u{urgency}i{importance}"
