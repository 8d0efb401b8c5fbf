# src/eisenq/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from ..tasks.priority_parser import format_notation
from ..tasks.task_models import TaskStatus

if TYPE_CHECKING:
    from ..tui.app import App

CommandHandler = Callable[["App", list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Slash-command registry for the chat input line (/help, /status, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, app: App, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        logger.debug("Running chat command /%s %s", name, args)
        return handler(app, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def cmd_help(app: App, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(app: App, args: list[str]) -> str:
    settings = app.state.settings
    mode = "ON" if app.state.chat_enabled else "OFF (no API key)"
    models = ", ".join(list(getattr(settings, "llm_models", []) or []))
    return (
        "Status:\n"
        f"  Assistant: {mode}\n"
        f"  Models (priority -> fallback): {models}\n"
        f"  Viewing: {app.view_date.isoformat()} ({len(app.visible_tasks())} tasks)\n"
        f"  Pending commands: {len(app.pending_commands)}"
    )


def cmd_tasks(app: App, args: list[str]) -> str:
    """The numbered list the assistant refers to with #N."""
    tasks = app.visible_tasks()
    if not tasks:
        return f"No tasks for {app.view_date.isoformat()}."
    lines = [f"Tasks for {app.view_date.isoformat()}:"]
    for n, t in enumerate(tasks, start=1):
        mark = "x" if t.status is TaskStatus.COMPLETED else " "
        lines.append(
            f"  {n}. [{mark}] {t.title} ({format_notation(t.urgency, t.importance)}, {t.quadrant.label})"
        )
    return "\n".join(lines)


def cmd_clear(app: App, args: list[str]) -> str:
    app.clear_chat()
    return "Chat history cleared."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h"])
registry.register("status", cmd_status, help_text="Show assistant and view status.")
registry.register("tasks", cmd_tasks, help_text="List the numbered tasks the assistant sees.")
registry.register("clear", cmd_clear, help_text="Clear the chat transcript.")
