# src/eisenq/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local data directory exists,
- wires the task store, event log and chat bridge into AppState,
- restores the saved chat transcript.
"""

from __future__ import annotations

import logging

from ..chat.bridge import ChatBridge
from ..config import get_settings
from ..core.ports import LLMClient
from ..core.state import AppState
from ..llm.client import OpenAILLMClient
from ..tasks.errors import StorageError
from ..tasks.event_log import EventLog
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    for path in (
        settings.data_dir,
        settings.tasks_path.parent,
        settings.history_log_path.parent,
        settings.chat_history_path.parent,
    ):
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {path}: {e}") from e


def _create_llm_client(settings) -> LLMClient | None:
    if not settings.chat_enabled:
        logger.info("No API key configured; chat assistant disabled.")
        return None
    try:
        return OpenAILLMClient(settings)
    except RuntimeError as e:
        logger.warning("Chat assistant disabled: %s", e)
        return None


def create_initial_state(*, settings=None, llm: LLMClient | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings(). `llm` overrides the configured client.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = TaskStore(
        settings.tasks_path,
        event_log=EventLog(settings.history_log_path),
        chat_history_path=settings.chat_history_path,
    )
    llm_client = llm if llm is not None else _create_llm_client(settings)
    chat = ChatBridge(llm_client, context_messages=settings.chat_context_messages)

    return AppState(
        settings=settings,
        task_store=store,
        chat=chat,
        chat_history=store.load_chat_history(),
    )
