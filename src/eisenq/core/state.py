# src/eisenq/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..chat.bridge import ChatBridge
from ..tasks.task_store import TaskStore
from .ports import ChatMessage


@dataclass
class AppState:
    """
    The one owned context object passed through the CLI and the UI loop.

    Nothing in the app reads process-wide mutable state; everything it needs
    (settings, store, chat bridge, transcript) hangs off this object.
    """

    settings: Any
    task_store: TaskStore
    chat: ChatBridge

    chat_history: list[ChatMessage] = field(default_factory=list)

    @property
    def chat_enabled(self) -> bool:
        return self.chat.enabled

    def save_chat_history(self) -> None:
        self.task_store.save_chat_history(self.chat_history)
