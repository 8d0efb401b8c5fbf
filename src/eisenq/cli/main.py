# src/eisenq/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then either runs one command against
the task store or starts the interactive terminal UI (`eq tui`).

Exit codes: 0 ok, 1 task errors (not found, invalid priority/state, empty
title), 2 usage errors, 3 storage errors.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Sequence
from datetime import date, timedelta

from ..cli.bootstrap import create_initial_state
from ..cli.views import format_matrix, format_stats, format_week
from ..config import get_settings
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..tasks.errors import StorageError, TaskError
from ..tasks.priority_parser import format_notation
from ..tasks.task_api import add_from_text, apply_changes, changes_from_text, completion_stats
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_TASK_ERROR = 1
EXIT_USAGE = 2
EXIT_STORAGE = 3

_DAY_OFFSETS = {"yesterday": -1, "today": 0, "tomorrow": 1}


def _describe(task: Task) -> str:
    return f"{task.title} ({format_notation(task.urgency, task.importance)}, {task.quadrant.label}) [{task.short_id()}]"


def _resolve(state: AppState, reference: str) -> Task:
    """Numbers index today's list as printed by `eq today`; anything else is an id prefix."""
    store = state.task_store
    return store.resolve(reference, visible=store.tasks_for(store.today()))


# ---- command handlers ----


def cmd_add(state: AppState, args: argparse.Namespace) -> int:
    store = state.task_store
    day = store.today() + timedelta(days=1 if args.tomorrow else 0)
    task = add_from_text(store, " ".join(args.text), day=day)
    print(f"Added: {_describe(task)} for {task.scheduled_date.isoformat()}")
    return EXIT_OK


def cmd_done(state: AppState, args: argparse.Namespace) -> int:
    task = state.task_store.complete(_resolve(state, args.ref).id)
    print(f"Completed: {_describe(task)}")
    return EXIT_OK


def cmd_drop(state: AppState, args: argparse.Namespace) -> int:
    task = state.task_store.drop(_resolve(state, args.ref).id)
    print(f"Dropped: {_describe(task)}")
    return EXIT_OK


def cmd_edit(state: AppState, args: argparse.Namespace) -> int:
    target = _resolve(state, args.ref)
    changes = changes_from_text(
        " ".join(args.notation), title=args.title, urgency=args.urgency, importance=args.importance
    )
    if changes.is_empty:
        print("Nothing to change: give a notation like u3i2, --urgency, --importance or --title.", file=sys.stderr)
        return EXIT_USAGE

    task = apply_changes(state.task_store, target.id, changes)
    print(f"Updated: {_describe(task)}")
    return EXIT_OK


def cmd_move(state: AppState, args: argparse.Namespace) -> int:
    store = state.task_store
    target = _resolve(state, args.ref)
    offset = 1 if args.tomorrow else args.days
    task = store.move_to(target.id, target.scheduled_date + timedelta(days=offset))
    print(f"Moved: {_describe(task)} to {task.scheduled_date.isoformat()}")
    return EXIT_OK


def _print_day(state: AppState, label: str) -> int:
    store = state.task_store
    day: date = store.today() + timedelta(days=_DAY_OFFSETS[label])
    print(format_matrix(store, day, label=label.capitalize()))
    return EXIT_OK


def cmd_list(state: AppState, args: argparse.Namespace) -> int:
    if args.when == "week":
        return cmd_week(state, args)
    return _print_day(state, args.when)


def cmd_today(state: AppState, args: argparse.Namespace) -> int:
    return _print_day(state, "today")


def cmd_tomorrow(state: AppState, args: argparse.Namespace) -> int:
    return _print_day(state, "tomorrow")


def cmd_week(state: AppState, args: argparse.Namespace) -> int:
    store = state.task_store
    print(format_week(store, store.today()))
    return EXIT_OK


def cmd_stats(state: AppState, args: argparse.Namespace) -> int:
    print(format_stats(completion_stats(state.task_store)))
    return EXIT_OK


def cmd_tui(state: AppState, args: argparse.Namespace) -> int:
    # curses is only needed for the interactive UI.
    from ..tui.screen import run_tui

    run_tui(state)
    return EXIT_OK


# ---- argument parsing ----


def _priority(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected 1, 2 or 3, got {raw!r}") from None
    if value not in (1, 2, 3):
        raise argparse.ArgumentTypeError(f"expected 1, 2 or 3, got {raw!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eq",
        description="Eisenhower-matrix task tracker. Priority notation: !/$ symbols or u<1-3>i<1-3>.",
    )
    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("add", help="Add a task, e.g. eq add Fix crash !!!$$$")
    p.add_argument("text", nargs="+")
    p.add_argument("--tomorrow", action="store_true", help="schedule for tomorrow")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("done", help="Complete a task (list number or id prefix)")
    p.add_argument("ref")
    p.set_defaults(func=cmd_done)

    p = sub.add_parser("drop", help="Drop a task (list number or id prefix)")
    p.add_argument("ref")
    p.set_defaults(func=cmd_drop)

    p = sub.add_parser("edit", help="Change title and/or priority, e.g. eq edit 2 u3i2")
    p.add_argument("ref")
    p.add_argument("notation", nargs="*", help="new title and/or notation")
    p.add_argument("--urgency", "-u", type=_priority)
    p.add_argument("--importance", "-i", type=_priority)
    p.add_argument("--title", "-t")
    p.set_defaults(func=cmd_edit)

    p = sub.add_parser("move", help="Reschedule a task")
    p.add_argument("ref")
    when = p.add_mutually_exclusive_group(required=True)
    when.add_argument("--tomorrow", action="store_true", help="one day later")
    when.add_argument("--days", type=int, help="signed number of days")
    p.set_defaults(func=cmd_move)

    p = sub.add_parser("list", help="Show tasks")
    p.add_argument("when", nargs="?", default="today", choices=["today", "tomorrow", "yesterday", "week"])
    p.set_defaults(func=cmd_list)

    for name, func, help_text in (
        ("today", cmd_today, "Show today's matrix"),
        ("tomorrow", cmd_tomorrow, "Show tomorrow's matrix"),
        ("week", cmd_week, "Show the current week"),
        ("stats", cmd_stats, "Completion statistics per quadrant"),
        ("tui", cmd_tui, "Start the interactive terminal UI"),
    ):
        sub.add_parser(name, help=help_text).set_defaults(func=func)

    parser.set_defaults(func=cmd_today)
    return parser


def main(argv: Sequence[str] | None = None, *, settings=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Callable[[AppState, argparse.Namespace], int] = args.func

    if settings is None:
        settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    log_dir = getattr(settings, "data_dir", ".local/eq")
    try:
        setup_logging(
            log_dir=log_dir,
            console_level=console_level,
            console=func is not cmd_tui,
        )
    except OSError as e:
        print(f"Error: cannot open the log in {log_dir}: {e}", file=sys.stderr)
        return EXIT_STORAGE
    logger.debug("Starting %s command=%s", getattr(settings, "app_name", "eq"), args.command or "today")

    try:
        state = create_initial_state(settings=settings)
        return func(state, args)
    except StorageError as e:
        logger.debug("Storage failure", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_STORAGE
    except TaskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_TASK_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
