# src/eisenq/tui/screen.py

"""
curses driver for the App state machine.

Loop per tick: App.tick() -> draw -> read one key (100 ms timeout) ->
App.handle_key(). All state lives in App; this module only translates raw
curses input into key names and paints the current screen.
"""

from __future__ import annotations

import contextlib
import curses
import logging
import textwrap
from datetime import timedelta

from ..core.state import AppState
from ..tasks.priority_parser import format_notation
from ..tasks.task_models import QUADRANT_ORDER, Quadrant, TaskStatus
from .app import App, Screen

logger = logging.getLogger(__name__)

TICK_MS = 100
SPINNER = "|/-\\"

_CURSES_KEYS = {
    curses.KEY_UP: "up",
    curses.KEY_DOWN: "down",
    curses.KEY_LEFT: "left",
    curses.KEY_RIGHT: "right",
    curses.KEY_PPAGE: "pageup",
    curses.KEY_NPAGE: "pagedown",
    curses.KEY_HOME: "home",
    curses.KEY_END: "end",
    curses.KEY_BACKSPACE: "backspace",
    curses.KEY_ENTER: "enter",
}

# curses.nonl() keeps Enter (CR) apart from Ctrl+J (LF).
_CONTROL_KEYS = {
    "\r": "enter",
    "\t": "tab",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\x0b": "ctrl+k",
    "\n": "ctrl+j",
    "\x15": "ctrl+u",
    "\x17": "ctrl+w",
    "\x0c": "ctrl+l",
}

MAIN_HELP = (
    "a add   e edit   d/Enter toggle done   x drop",
    "> or . move to next day   < move to previous day",
    "Tab/h/l switch quadrant   j/k move   PgUp/PgDn page",
    "t today/tomorrow   z focus   c chat   ? help   q quit",
)

CHAT_HELP = (
    "Enter send   Esc back   Up/Down input history",
    "PgUp/PgDn, Ctrl+K/Ctrl+J scroll   Home top   End follow latest",
    "Ctrl+W / Alt+Backspace delete word   Ctrl+U clear input   Ctrl+L clear chat",
    "y/n confirm pending commands   /help slash commands",
)


def _safe_addnstr(scr, y: int, x: int, s: str, max_cols: int, attr: int = 0) -> None:
    """Write safely, avoiding curses ERR on small/resize terminals."""
    h, w = scr.getmaxyx()
    if y < 0 or y >= h or x < 0 or x >= w:
        return
    width = max(0, min(max_cols, w - x))
    if width <= 0:
        return
    # Writing the bottom-right cell raises even though the text is drawn.
    with contextlib.suppress(curses.error):
        scr.addnstr(y, x, s, width, attr)


def read_key(scr) -> str | None:
    """Translate one curses event into an App key name; None on timeout."""
    try:
        ch = scr.get_wch()
    except curses.error:
        return None

    if isinstance(ch, int):
        return _CURSES_KEYS.get(ch)

    if ch == "\x1b":
        scr.nodelay(True)
        try:
            nxt = scr.get_wch()
        except curses.error:
            nxt = None
        finally:
            scr.timeout(TICK_MS)
        if nxt in ("\x7f", "\x08", curses.KEY_BACKSPACE):
            return "alt+backspace"
        return "esc"

    if ch in _CONTROL_KEYS:
        return _CONTROL_KEYS[ch]
    return ch if ch.isprintable() else None


# ---- drawing ----


def _day_label(app: App) -> str:
    offset = (app.view_date - app.store.today()).days
    name = {0: "Today", 1: "Tomorrow", -1: "Yesterday"}.get(offset, app.view_date.strftime("%A"))
    return f"{name} {app.view_date.isoformat()}"


def _draw_header(scr, app: App, width: int) -> None:
    chat = "chat on" if app.state.chat_enabled else "chat off"
    if app.is_loading:
        chat += f" {SPINNER[app.ticks % len(SPINNER)]}"
    if app.chat.unread:
        chat += f" ({app.chat.unread} new)"
    header = f" eq  {_day_label(app)}  [{chat}] "
    _safe_addnstr(scr, 0, 0, header.ljust(width), width, curses.A_REVERSE)


def _draw_status(scr, app: App, height: int, width: int, hint: str) -> None:
    text = app.status or hint
    attr = curses.A_BOLD if app.status else curses.A_DIM
    _safe_addnstr(scr, height - 1, 0, f" {text}".ljust(width), width, attr)


def _draw_quadrant(scr, app: App, quadrant: Quadrant, top: int, left: int, rows: int, cols: int) -> None:
    tasks = app.quadrant_tasks(quadrant)
    active = quadrant is app.selected_quadrant
    title = f" {quadrant.label} ({len(tasks)}) "
    _safe_addnstr(scr, top, left, title.ljust(cols), cols, curses.A_BOLD | (curses.A_REVERSE if active else 0))

    body = max(0, rows - 1)
    selected = app.selection[quadrant]
    start = 0
    if body and len(tasks) > body:
        start = min(max(selected - body // 2, 0), len(tasks) - body)

    for row, task in enumerate(tasks[start : start + body]):
        idx = start + row
        mark = "[x]" if task.status is TaskStatus.COMPLETED else "[ ]"
        line = f" {mark} {task.title}  u{task.urgency}i{task.importance}"
        attr = curses.A_REVERSE if active and idx == selected else curses.A_NORMAL
        if task.status is TaskStatus.COMPLETED:
            attr |= curses.A_DIM
        _safe_addnstr(scr, top + 1 + row, left, line.ljust(cols), cols, attr)


def _draw_main(scr, app: App, height: int, width: int) -> None:
    top = 1
    rows = max(2, (height - 2) // 2)
    cols = max(10, width // 2)
    positions = {
        Quadrant.DO_FIRST: (top, 0),
        Quadrant.SCHEDULE: (top, cols),
        Quadrant.DELEGATE: (top + rows, 0),
        Quadrant.DROP: (top + rows, cols),
    }
    for q in QUADRANT_ORDER:
        y, x = positions[q]
        _draw_quadrant(scr, app, q, y, x, rows, cols - 1)

    if app.show_help:
        y0 = max(1, height - len(MAIN_HELP) - 2)
        for n, line in enumerate(MAIN_HELP):
            _safe_addnstr(scr, y0 + n, 2, f" {line} ".ljust(width - 4), width - 4, curses.A_REVERSE)

    _draw_status(scr, app, height, width, "? help  a add  c chat  q quit")


def _draw_editing(scr, app: App, height: int, width: int) -> None:
    prompt = "Edit task: " if app.editing_task_id else "New task: "
    _safe_addnstr(scr, 2, 1, prompt, width - 1, curses.A_BOLD)
    _safe_addnstr(scr, 2, 1 + len(prompt), app.edit_buffer + "_", width - 2 - len(prompt))
    _safe_addnstr(scr, 4, 1, "Priority: !/!!/!!! urgency, $/$$/$$$ importance, or u<1-3>i<1-3>", width - 2, curses.A_DIM)
    target = "tomorrow" if app.view_date == app.store.today() + timedelta(days=1) else app.view_date.isoformat()
    _safe_addnstr(scr, 5, 1, f"New tasks land on {target}.", width - 2, curses.A_DIM)
    _draw_status(scr, app, height, width, "Enter save  Esc cancel")


def _draw_focus(scr, app: App, height: int, width: int) -> None:
    _draw_quadrant(scr, app, app.selected_quadrant, 1, 0, max(2, height - 2), width)
    _draw_status(scr, app, height, width, "z zen  d/Enter toggle done  x drop  j/k move  Esc back")


def _draw_zen(scr, app: App, height: int, width: int) -> None:
    task = app.selected_task()
    mid = max(2, height // 2 - 3)

    def centered(y: int, text: str, attr: int = 0) -> None:
        _safe_addnstr(scr, y, max(0, (width - len(text)) // 2), text, width, attr)

    if task is not None:
        centered(mid, task.title, curses.A_BOLD)
        centered(mid + 1, f"{task.quadrant.label}  {format_notation(task.urgency, task.importance)}", curses.A_DIM)

    bar_width = max(10, min(40, width - 10))
    filled = int(bar_width * app.pomodoro_progress())
    centered(mid + 3, app.pomodoro_remaining(), curses.A_BOLD)
    centered(mid + 4, "[" + "#" * filled + "." * (bar_width - filled) + "]")
    centered(mid + 6, app.zen_message, curses.A_DIM)
    _draw_status(scr, app, height, width, "d/Space done  s skip  x drop  r restart timer  Esc back")


def _chat_lines(app: App, width: int) -> list[tuple[str, int]]:
    lines: list[tuple[str, int]] = []
    wrap_at = max(10, width - 4)
    for message in app.state.chat_history:
        you = message["role"] == "user"
        lines.append(("You:" if you else "Assistant:", curses.A_BOLD))
        for paragraph in message["text"].splitlines() or [""]:
            for part in textwrap.wrap(paragraph, wrap_at) or [""]:
                lines.append(("  " + part, curses.A_NORMAL))
        lines.append(("", curses.A_NORMAL))
    if app.is_loading:
        lines.append((f"Assistant is thinking {SPINNER[app.ticks % len(SPINNER)]}", curses.A_DIM))
    return lines


def _draw_chat(scr, app: App, height: int, width: int) -> None:
    chat = app.chat
    bottom_rows = 2
    extra: list[str] = []
    if chat.show_help:
        extra.extend(CHAT_HELP)
    if chat.notice:
        extra.extend(chat.notice.splitlines())
    view_rows = max(1, height - 1 - bottom_rows - len(extra))

    lines = _chat_lines(app, width)
    chat.set_viewport(len(lines) - view_rows)
    for row, (text, attr) in enumerate(lines[chat.scroll : chat.scroll + view_rows]):
        _safe_addnstr(scr, 1 + row, 1, text, width - 2, attr)

    y = 1 + view_rows
    for text in extra:
        _safe_addnstr(scr, y, 1, text.ljust(width - 2), width - 2, curses.A_DIM)
        y += 1

    _safe_addnstr(scr, height - 2, 0, f"> {chat.input}_", width)
    if app.pending_commands:
        hint = f"{len(app.pending_commands)} pending command(s): y execute, n cancel"
    elif not app.state.chat_enabled:
        hint = "Chat is disabled: set EQ_OPENAI_API_KEY or OPENAI_API_KEY.  Esc back"
    else:
        hint = "Enter send  Esc back  ? help" + ("" if chat.pinned else "  End follow latest")
    _draw_status(scr, app, height, width, hint)


def draw(scr, app: App) -> None:
    scr.erase()
    height, width = scr.getmaxyx()
    _draw_header(scr, app, width)
    if app.screen is Screen.MAIN:
        _draw_main(scr, app, height, width)
    elif app.screen is Screen.EDITING:
        _draw_editing(scr, app, height, width)
    elif app.screen is Screen.FOCUS:
        _draw_focus(scr, app, height, width)
    elif app.screen is Screen.ZEN:
        _draw_zen(scr, app, height, width)
    else:
        _draw_chat(scr, app, height, width)
    scr.refresh()


def _loop(scr, app: App) -> None:
    with contextlib.suppress(curses.error):
        curses.curs_set(0)
    with contextlib.suppress(AttributeError):
        curses.set_escdelay(25)
    curses.nonl()
    scr.keypad(True)
    scr.timeout(TICK_MS)

    while True:
        app.tick()
        draw(scr, app)
        key = read_key(scr)
        if key is None:
            continue
        if app.handle_key(key):
            return


def run_tui(state: AppState) -> None:
    app = App(state)
    logger.info("TUI started view_date=%s", app.view_date)
    try:
        curses.wrapper(_loop, app)
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        app.shutdown()
        logger.info("TUI stopped.")
