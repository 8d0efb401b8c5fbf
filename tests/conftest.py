# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from eisenq.chat.bridge import ChatBridge
from eisenq.core.state import AppState
from eisenq.tasks.event_log import EventLog
from eisenq.tasks.task_store import TaskStore

from .fakes import FakeClock, FakeLLMClient


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    data_dir = tmp_path / "data"
    return SimpleNamespace(
        app_name="eq",
        log_level="WARNING",
        # Paths (tmp per test run)
        data_dir=data_dir,
        tasks_path=data_dir / "tasks.json",
        history_log_path=data_dir / "history.jsonl",
        chat_history_path=data_dir / "chat_history.json",
        # Chat
        chat_enabled=False,
        llm_models=["test-model"],
        chat_context_messages=20,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(settings: SimpleNamespace, clock: FakeClock) -> TaskStore:
    return TaskStore(
        settings.tasks_path,
        event_log=EventLog(settings.history_log_path),
        chat_history_path=settings.chat_history_path,
        clock=clock,
        retry_delay=0,
    )


@pytest.fixture()
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore, llm: FakeLLMClient) -> AppState:
    """AppState wired with a real JSON store and a deterministic LLM."""
    return AppState(settings=settings, task_store=store, chat=ChatBridge(llm))
