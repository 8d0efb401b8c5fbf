# src/eisenq/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The chat bridge and the app depend on Protocols instead of concrete
implementations, so the LLM provider can be swapped and faked in tests.
"""

from collections.abc import Iterable
from typing import Protocol

ChatMessage = dict[str, str]
# Transcript entry: {"role": "user" | "assistant", "text": "...", "timestamp": "..."}.

LLMMessage = dict[str, str]
# OpenAI-style chat message: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI-compatible)."""

    def stream_chat(self, messages: list[LLMMessage], system_prompt: str) -> Iterable[str]: ...
