# tests/test_commands.py

from __future__ import annotations

from eisenq.cli.commands import CommandRegistry, registry
from eisenq.core.state import AppState
from eisenq.tui.app import App


def test_command_registry_routes_with_aliases(state: AppState) -> None:
    reg = CommandRegistry()
    called = []

    def handler(app, args):
        called.append(args)
        return "done"

    reg.register("go", handler, "go somewhere", aliases=["g"])
    app = App(state)

    assert reg.handle(app, "/go far away") == "done"
    assert reg.handle(app, "/G") == "done"
    assert called == [["far", "away"], []]
    assert "/go - go somewhere" in reg.build_help()


def test_command_registry_unknown_and_non_command(state: AppState) -> None:
    reg = CommandRegistry()
    app = App(state)
    assert reg.handle(app, "hello") is None
    assert "Unknown command" in (reg.handle(app, "/nope") or "")
    assert "Empty command" in (reg.handle(app, "/") or "")


def test_tasks_command_numbers_visible_tasks(state: AppState) -> None:
    state.task_store.add("Second", 1, 1)
    state.task_store.add("First", 3, 3)
    app = App(state)

    out = registry.handle(app, "/tasks") or ""

    assert "1. [ ] First (u3i3, DO FIRST)" in out
    assert "2. [ ] Second (u1i1, DROP)" in out


def test_clear_command_empties_transcript(state: AppState) -> None:
    state.chat_history.append({"role": "user", "text": "hi", "timestamp": ""})
    app = App(state)

    assert registry.handle(app, "/clear") == "Chat history cleared."
    assert state.chat_history == []


def test_help_lists_builtin_commands(state: AppState) -> None:
    out = registry.handle(App(state), "/help") or ""
    for name in ("/help", "/status", "/tasks", "/clear"):
        assert name in out
