# src/eisenq/tui/app.py

"""
Interactive application state machine.

Screens: MAIN (the 2x2 matrix), EDITING (add or edit one task), CHAT,
FOCUS (one quadrant full-screen) and ZEN (one task with a pomodoro timer).
Keys arrive as plain strings: printable characters as themselves, other keys
by name ("enter", "esc", "backspace", "tab", "up", "down", "left", "right",
"pageup", "pagedown", "home", "end", "ctrl+k", "alt+backspace", ...).

The App never touches the terminal, so it can be driven directly in tests;
tui/screen.py feeds it keys and draws it.

Selection invariant: after every store mutation each quadrant keeps its
selected task if that task is still listed, otherwise the index is clamped
to max(0, min(old, len - 1)).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import TypeVar

from ..chat.bridge import ChatDisabled, ChatReply
from ..chat.directives import Directive, DirectiveKind, DirectiveResults, parse_directives
from ..cli.commands import registry as command_registry
from ..core.persona import format_task_context
from ..core.ports import ChatMessage
from ..core.state import AppState
from ..tasks.errors import StorageError, TaskError, TaskNotFound
from ..tasks.priority_parser import format_notation
from ..tasks.task_api import add_from_text, edit_from_text
from ..tasks.task_models import QUADRANT_ORDER, Quadrant, Task, TaskStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

PAGE = 5
POMODORO_MINUTES = 25
ZEN_MESSAGE = "Focus on what matters"
BREAK_MESSAGE = "Time for a break. Press r to start another round."

# Grid neighbours for left/right navigation.
_RIGHT_OF = {Quadrant.DO_FIRST: Quadrant.SCHEDULE, Quadrant.DELEGATE: Quadrant.DROP}
_LEFT_OF = {Quadrant.SCHEDULE: Quadrant.DO_FIRST, Quadrant.DROP: Quadrant.DELEGATE}


class Screen(StrEnum):
    MAIN = "main"
    EDITING = "editing"
    CHAT = "chat"
    FOCUS = "focus"
    ZEN = "zen"


@dataclass(frozen=True, slots=True)
class Pomodoro:
    """Countdown measured on a monotonic clock (seconds)."""

    started: float
    duration: int = POMODORO_MINUTES * 60

    def remaining(self, now: float) -> int:
        return max(0, int(self.started + self.duration - now))

    def progress(self, now: float) -> float:
        return min(1.0, max(0.0, (now - self.started) / self.duration))

    def is_complete(self, now: float) -> bool:
        return now - self.started >= self.duration

    def format_remaining(self, now: float) -> str:
        mins, secs = divmod(self.remaining(now), 60)
        return f"{mins:02d}:{secs:02d}"


def clamp_index(index: int, length: int) -> int:
    return max(0, min(index, length - 1))


def _now_iso() -> str:
    return datetime.now().astimezone().isoformat(timespec="seconds")


@dataclass(slots=True)
class ChatView:
    """State local to the chat screen."""

    input: str = ""
    input_history: list[str] = field(default_factory=list)
    history_cursor: int | None = None
    # Top line of the transcript viewport; only used while not pinned.
    scroll: int = 0
    # Follow the newest message until the user scrolls away.
    pinned: bool = True
    # Largest valid `scroll`, reported by the renderer after each draw.
    max_scroll: int = 0
    show_help: bool = False
    notice: str | None = None
    unread: int = 0

    def scroll_up(self, lines: int) -> None:
        if self.pinned:
            self.scroll = self.max_scroll
        self.pinned = False
        self.scroll = max(0, self.scroll - lines)

    def scroll_down(self, lines: int) -> None:
        if self.pinned:
            return
        self.scroll += lines
        if self.scroll >= self.max_scroll:
            self.follow_latest()

    def follow_latest(self) -> None:
        self.pinned = True
        self.scroll = self.max_scroll

    def set_viewport(self, max_scroll: int) -> None:
        self.max_scroll = max(0, max_scroll)
        if self.pinned:
            self.scroll = self.max_scroll
        else:
            self.scroll = min(self.scroll, self.max_scroll)

    def delete_word(self) -> None:
        trimmed = self.input.rstrip()
        cut = trimmed.rfind(" ")
        self.input = trimmed[: cut + 1] if cut >= 0 else ""

    def recall(self, step: int) -> None:
        if not self.input_history:
            return
        if self.history_cursor is None:
            if step > 0:
                return
            self.history_cursor = len(self.input_history)
        cursor = self.history_cursor + step
        if cursor >= len(self.input_history):
            self.history_cursor = None
            self.input = ""
            return
        self.history_cursor = max(0, cursor)
        self.input = self.input_history[self.history_cursor]


class App:
    def __init__(
        self,
        state: AppState,
        *,
        view_date: date | None = None,
        monotonic: Callable[[], float] | None = None,
    ) -> None:
        self.state = state
        self.store = state.task_store
        self.screen = Screen.MAIN
        self.view_date = view_date or self.store.today()
        self.selected_quadrant = Quadrant.DO_FIRST
        self.selection: dict[Quadrant, int] = {q: 0 for q in QUADRANT_ORDER}
        self.edit_buffer = ""
        self.editing_task_id: str | None = None
        self.show_help = False
        self.status: str | None = None
        self.chat = ChatView()
        self.pending_commands: list[Directive] = []
        self.ticks = 0
        self._monotonic = monotonic or time.monotonic
        self.pomodoro: Pomodoro | None = None
        self.zen_message = ZEN_MESSAGE

    # ---- derived view ----

    def visible_tasks(self) -> list[Task]:
        """The day's tasks in display order; chat directives number into this list."""
        return self.store.tasks_for(self.view_date)

    def quadrant_tasks(self, quadrant: Quadrant | None = None) -> list[Task]:
        return self.store.quadrants_for(self.view_date)[quadrant or self.selected_quadrant]

    @property
    def selected_index(self) -> int:
        return self.selection[self.selected_quadrant]

    def selected_task(self) -> Task | None:
        tasks = self.quadrant_tasks()
        if not tasks:
            return None
        return tasks[clamp_index(self.selected_index, len(tasks))]

    @property
    def is_loading(self) -> bool:
        return self.state.chat.in_flight > 0

    # ---- selection stability ----

    def _selection_snapshot(self) -> dict[Quadrant, str | None]:
        groups = self.store.quadrants_for(self.view_date)
        snap: dict[Quadrant, str | None] = {}
        for q in QUADRANT_ORDER:
            tasks = groups[q]
            idx = self.selection[q]
            snap[q] = tasks[idx].id if 0 <= idx < len(tasks) else None
        return snap

    def _restore_selection(self, snapshot: dict[Quadrant, str | None]) -> None:
        groups = self.store.quadrants_for(self.view_date)
        for q in QUADRANT_ORDER:
            ids = [t.id for t in groups[q]]
            previous = snapshot.get(q)
            if previous is not None and previous in ids:
                self.selection[q] = ids.index(previous)
            else:
                self.selection[q] = clamp_index(self.selection[q], len(ids))

    def clamp_selection(self) -> None:
        groups = self.store.quadrants_for(self.view_date)
        for q in QUADRANT_ORDER:
            self.selection[q] = clamp_index(self.selection[q], len(groups[q]))

    def _mutate(self, op: Callable[[], T]) -> T | None:
        """Run one store operation; errors become the status line, selection stays valid."""
        snapshot = self._selection_snapshot()
        try:
            result = op()
        except TaskError as e:
            logger.info("Operation failed: %s", e)
            self.status = str(e)
            return None
        finally:
            self._restore_selection(snapshot)
        self._surface_store_warning()
        return result

    def _surface_store_warning(self) -> None:
        warning = self.store.pop_warning()
        if warning is not None:
            self.status = warning

    # ---- keys ----

    def handle_key(self, key: str) -> bool:
        """Process one key. Returns True when the app should exit."""
        if self.screen is Screen.MAIN:
            self.status = None
            return self._handle_main(key)
        if self.screen is Screen.FOCUS:
            self.status = None
            self._handle_focus(key)
            return False
        if self.screen is Screen.ZEN:
            self.status = None
            self._handle_zen(key)
            return False
        if self.screen is Screen.EDITING:
            self._handle_editing(key)
            return False
        self._handle_chat(key)
        return False

    def _move_selection(self, delta: int, *, wrap: bool) -> None:
        count = len(self.quadrant_tasks())
        if count == 0:
            return
        idx = self.selected_index + delta
        self.selection[self.selected_quadrant] = idx % count if wrap else clamp_index(idx, count)

    def _select_quadrant(self, quadrant: Quadrant) -> None:
        self.selected_quadrant = quadrant
        self.clamp_selection()

    def _handle_list_key(self, key: str, task: Task | None) -> None:
        """Keys shared by the matrix and the focus screen."""
        if key in ("d", "enter"):
            if task is not None:
                self._mutate(lambda: self.store.toggle_complete(task.id))
        elif key == "x":
            if task is not None:
                self._mutate(lambda: self.store.drop(task.id))
        elif key in ("down", "j"):
            self._move_selection(1, wrap=True)
        elif key in ("up", "k"):
            self._move_selection(-1, wrap=True)
        elif key == "pagedown":
            self._move_selection(PAGE, wrap=False)
        elif key == "pageup":
            self._move_selection(-PAGE, wrap=False)

    def _handle_main(self, key: str) -> bool:
        task = self.selected_task()

        if key == "q":
            return True
        if key == "?":
            self.show_help = not self.show_help
        elif key == "c":
            self.screen = Screen.CHAT
            self.chat.unread = 0
        elif key == "z":
            self.screen = Screen.FOCUS
        elif key == "a":
            self.start_editing(None)
        elif key == "e":
            if task is not None:
                self.start_editing(task)
        elif key in (">", "."):
            if task is not None:
                self._mutate(lambda: self.store.move_to(task.id, self.view_date + timedelta(days=1)))
        elif key == "<":
            if task is not None:
                self._mutate(lambda: self.store.move_to(task.id, self.view_date - timedelta(days=1)))
        elif key == "t":
            today = self.store.today()
            self.view_date = today + timedelta(days=1) if self.view_date == today else today
            self.clamp_selection()
        elif key == "tab":
            order = list(QUADRANT_ORDER)
            self._select_quadrant(order[(order.index(self.selected_quadrant) + 1) % len(order)])
        elif key in ("left", "h"):
            self._select_quadrant(_LEFT_OF.get(self.selected_quadrant, self.selected_quadrant))
        elif key in ("right", "l"):
            self._select_quadrant(_RIGHT_OF.get(self.selected_quadrant, self.selected_quadrant))
        else:
            self._handle_list_key(key, task)
        return False

    # ---- focus / zen ----

    def _handle_focus(self, key: str) -> None:
        if key == "esc":
            self.screen = Screen.MAIN
        elif key == "z":
            self.enter_zen()
        else:
            self._handle_list_key(key, self.selected_task())

    def _next_pending(self, start: int) -> int | None:
        """Index of the first pending task at or after `start`, wrapping around."""
        tasks = self.quadrant_tasks()
        for step in range(len(tasks)):
            idx = (start + step) % len(tasks)
            if tasks[idx].status is TaskStatus.PENDING:
                return idx
        return None

    def _advance_or_leave_zen(self, start: int) -> None:
        idx = self._next_pending(start)
        if idx is None:
            self.screen = Screen.FOCUS
            self.status = f"Nothing left in {self.selected_quadrant.label}."
            return
        self.selection[self.selected_quadrant] = idx

    def enter_zen(self) -> None:
        idx = self._next_pending(self.selected_index)
        if idx is None:
            self.status = f"Nothing left in {self.selected_quadrant.label}."
            return
        self.selection[self.selected_quadrant] = idx
        self.screen = Screen.ZEN
        if self.pomodoro is None:
            self.reset_pomodoro()

    def reset_pomodoro(self) -> None:
        self.pomodoro = Pomodoro(started=self._monotonic())
        self.zen_message = ZEN_MESSAGE

    def pomodoro_remaining(self) -> str:
        if self.pomodoro is None:
            return f"{POMODORO_MINUTES:02d}:00"
        return self.pomodoro.format_remaining(self._monotonic())

    def pomodoro_progress(self) -> float:
        if self.pomodoro is None:
            return 0.0
        return self.pomodoro.progress(self._monotonic())

    def _handle_zen(self, key: str) -> None:
        task = self.selected_task()

        if key in ("esc", "z"):
            self.screen = Screen.FOCUS
        elif key in ("d", "enter", " "):
            if task is not None:
                self._mutate(lambda: self.store.complete(task.id))
                self._advance_or_leave_zen(self.selected_index + 1)
        elif key == "s":
            self._advance_or_leave_zen(self.selected_index + 1)
        elif key == "x":
            if task is not None:
                self._mutate(lambda: self.store.drop(task.id))
                self._advance_or_leave_zen(self.selected_index)
        elif key == "r":
            self.reset_pomodoro()

    # ---- editing ----

    def start_editing(self, task: Task | None) -> None:
        """Enter the editor; an existing task's text and priority seed the buffer."""
        self.screen = Screen.EDITING
        if task is None:
            self.editing_task_id = None
            self.edit_buffer = ""
        else:
            self.editing_task_id = task.id
            self.edit_buffer = f"{task.title} {format_notation(task.urgency, task.importance)}"

    def _finish_editing(self) -> None:
        self.edit_buffer = ""
        self.editing_task_id = None
        self.screen = Screen.MAIN

    def _handle_editing(self, key: str) -> None:
        if key == "esc":
            self._finish_editing()
        elif key == "enter":
            text = self.edit_buffer.strip()
            task_id = self.editing_task_id
            if text:
                if task_id is not None:
                    self._mutate(lambda: edit_from_text(self.store, task_id, text))
                else:
                    self._mutate(lambda: add_from_text(self.store, text, day=self.view_date))
            self._finish_editing()
        elif key == "backspace":
            self.edit_buffer = self.edit_buffer[:-1]
        elif len(key) == 1:
            self.edit_buffer += key

    # ---- chat ----

    def _append_chat(self, role: str, text: str) -> None:
        message: ChatMessage = {"role": role, "text": text, "timestamp": _now_iso()}
        self.state.chat_history.append(message)

    def save_chat_history(self) -> None:
        try:
            self.state.save_chat_history()
        except StorageError as e:
            logger.warning("Chat history not saved: %s", e)
            self.status = str(e)

    def clear_chat(self) -> None:
        self.state.chat_history.clear()
        self.pending_commands.clear()
        self.chat.scroll = 0
        self.chat.follow_latest()
        self.save_chat_history()

    def _handle_chat(self, key: str) -> None:
        chat = self.chat
        if key != "?":
            chat.notice = None

        if key == "esc":
            self.screen = Screen.MAIN
            self.save_chat_history()
        elif key == "?" and not chat.input:
            chat.show_help = not chat.show_help
        elif key in ("y", "n") and not chat.input and self.pending_commands:
            if key == "y":
                self.execute_pending_commands()
            else:
                self.cancel_pending_commands()
        elif key == "pageup":
            chat.scroll_up(PAGE)
        elif key == "pagedown":
            chat.scroll_down(PAGE)
        elif key == "ctrl+k":
            chat.scroll_up(1)
        elif key == "ctrl+j":
            chat.scroll_down(1)
        elif key == "home":
            chat.scroll_up(chat.max_scroll + 1)
        elif key == "end":
            chat.follow_latest()
        elif key == "up":
            chat.recall(-1)
        elif key == "down":
            chat.recall(1)
        elif key in ("ctrl+w", "alt+backspace"):
            chat.delete_word()
        elif key == "ctrl+u":
            chat.input = ""
        elif key == "ctrl+l":
            self.clear_chat()
        elif key == "enter":
            self.submit_chat()
        elif key == "backspace":
            chat.input = chat.input[:-1]
        elif len(key) == 1:
            chat.input += key

    def submit_chat(self) -> None:
        chat = self.chat
        text = chat.input.strip()
        chat.input = ""
        chat.history_cursor = None
        if not text:
            return
        chat.input_history.append(text)

        reply = command_registry.handle(self, text)
        if reply is not None:
            chat.notice = reply
            return

        history = list(self.state.chat_history)
        self._append_chat("user", text)
        chat.follow_latest()

        context = format_task_context(self.visible_tasks(), self.view_date)
        try:
            self.state.chat.send(text, context, history)
        except ChatDisabled as e:
            self._append_chat("assistant", str(e))
            self.save_chat_history()

    def tick(self) -> None:
        """One UI tick: take at most one finished chat reply, never block."""
        self.ticks += 1
        if self.pomodoro is not None and self.pomodoro.is_complete(self._monotonic()):
            self.zen_message = BREAK_MESSAGE
        reply = self.state.chat.poll()
        if reply is not None:
            self.merge_reply(reply)

    def merge_reply(self, reply: ChatReply) -> None:
        if not reply.ok:
            self._append_chat("assistant", f"Error: {reply.error}")
        else:
            directives = parse_directives(reply.text)
            results = DirectiveResults()
            for directive in directives:
                if directive.kind is DirectiveKind.ADD:
                    self._apply_add(directive, results)
                else:
                    self.pending_commands.append(directive)

            parts = [reply.text]
            summary = results.format_confirmation()
            if summary:
                parts.append(summary)
            if self.pending_commands:
                parts.append(self._pending_summary())
            self._append_chat("assistant", "\n\n".join(parts))

        self._surface_store_warning()
        if self.screen is not Screen.CHAT:
            self.chat.unread += 1
        self.save_chat_history()

    def _apply_add(self, directive: Directive, results: DirectiveResults) -> None:
        snapshot = self._selection_snapshot()
        try:
            task = self.store.add(
                directive.title,
                directive.urgency or 1,
                directive.importance or 1,
                self.view_date,
            )
        except TaskError as e:
            results.record_error(directive, e)
        else:
            results.added.append(f"{task.title} ({format_notation(task.urgency, task.importance)})")
        finally:
            self._restore_selection(snapshot)

    def _pending_summary(self) -> str:
        lines = ["Pending commands:"]
        lines.extend(f"  {n}. {d.describe()}" for n, d in enumerate(self.pending_commands, start=1))
        lines.append("Press y to execute, n to cancel.")
        return "\n".join(lines)

    def execute_pending_commands(self) -> DirectiveResults:
        commands, self.pending_commands = self.pending_commands, []
        results = DirectiveResults()
        snapshot = self._selection_snapshot()

        # Resolve every reference against one list, taken right before running.
        visible = self.visible_tasks()
        resolved: list[tuple[Directive, Task | TaskError]] = []
        for directive in commands:
            if directive.target is None:
                resolved.append((directive, TaskNotFound("?")))
                continue
            try:
                resolved.append((directive, directive.target.resolve(visible)))
            except TaskError as e:
                resolved.append((directive, e))

        for directive, target in resolved:
            if isinstance(target, TaskError):
                results.record_error(directive, target)
                continue
            try:
                if directive.kind is DirectiveKind.DONE:
                    self.store.complete(target.id)
                    results.completed.append(target.title)
                elif directive.kind is DirectiveKind.DROP:
                    self.store.drop(target.id)
                    results.dropped.append(target.title)
                elif directive.kind is DirectiveKind.EDIT:
                    updated = self.store.update_task(
                        target.id,
                        title=directive.title or None,
                        urgency=directive.urgency,
                        importance=directive.importance,
                    )
                    results.edited.append(
                        f"{target.title} -> {updated.title} "
                        f"({format_notation(updated.urgency, updated.importance)})"
                    )
            except TaskError as e:
                results.record_error(directive, e)

        self._surface_store_warning()
        self._restore_selection(snapshot)
        self._append_chat("assistant", results.format_confirmation() or "Nothing to do.")
        self.save_chat_history()
        return results

    def cancel_pending_commands(self) -> None:
        count = len(self.pending_commands)
        self.pending_commands.clear()
        self._append_chat("assistant", f"Cancelled {count} command(s).")
        self.save_chat_history()

    def shutdown(self) -> None:
        self.save_chat_history()
