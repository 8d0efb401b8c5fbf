# src/eisenq/chat/bridge.py

"""
Non-blocking bridge between the UI loop and the chat assistant.

send() starts one daemon thread per request and returns a ChatHandle at once;
the worker puts exactly one ChatReply on a queue. The UI thread is the only
consumer and drains the queue with poll(), once per tick, without blocking.

Requests are never cancelled: a reply that arrives after the user left the
chat screen is still delivered by the next poll().
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from ..core.persona import get_system_prompt
from ..core.ports import ChatMessage, LLMClient, LLMMessage
from ..llm.client import friendly_llm_error_message

logger = logging.getLogger(__name__)


class ChatDisabled(RuntimeError):
    """Raised by send() when no LLM client is configured."""


@dataclass(frozen=True, slots=True)
class ChatReply:
    request_id: int
    text: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class ChatHandle:
    request_id: int
    submitted_at: float
    _done: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the worker has queued its reply. Meant for tests and shutdown."""
        return self._done.wait(timeout)


def to_llm_messages(history: Sequence[ChatMessage], limit: int) -> list[LLMMessage]:
    recent = list(history)[-limit:] if limit > 0 else []
    return [
        {"role": m["role"], "content": m["text"]}
        for m in recent
        if m.get("role") in ("user", "assistant") and m.get("text")
    ]


class ChatBridge:
    def __init__(
        self,
        llm: LLMClient | None,
        *,
        system_prompt: Callable[[str], str] = get_system_prompt,
        context_messages: int = 20,
    ) -> None:
        self._llm = llm
        self._system_prompt = system_prompt
        self._context_messages = context_messages
        self._replies: queue.Queue[ChatReply] = queue.Queue()
        self._ids = itertools.count(1)
        self._in_flight = 0
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._llm is not None

    @property
    def in_flight(self) -> int:
        """Requests sent but not yet drained by poll()."""
        with self._lock:
            return self._in_flight

    def send(
        self,
        user_text: str,
        task_context: str,
        history: Sequence[ChatMessage] = (),
    ) -> ChatHandle:
        if self._llm is None:
            raise ChatDisabled("Chat is disabled: set EQ_OPENAI_API_KEY or OPENAI_API_KEY.")

        handle = ChatHandle(request_id=next(self._ids), submitted_at=time.time())
        messages = to_llm_messages(history, self._context_messages)
        messages.append({"role": "user", "content": user_text})
        system_prompt = self._system_prompt(task_context)

        with self._lock:
            self._in_flight += 1

        worker = threading.Thread(
            target=self._run,
            args=(self._llm, handle, messages, system_prompt),
            name=f"chat-request-{handle.request_id}",
            daemon=True,
        )
        worker.start()
        logger.debug("Chat request %d started", handle.request_id)
        return handle

    def _run(
        self,
        llm: LLMClient,
        handle: ChatHandle,
        messages: list[LLMMessage],
        system_prompt: str,
    ) -> None:
        try:
            text = "".join(llm.stream_chat(messages, system_prompt)).strip()
            if text:
                reply = ChatReply(handle.request_id, text)
            else:
                reply = ChatReply(handle.request_id, "", error="The assistant returned no content.")
        except Exception as e:
            # Never let a provider failure escape the worker; it becomes a chat message.
            msg = friendly_llm_error_message(e)
            logger.info("Chat request %d failed: %s", handle.request_id, msg, exc_info=True)
            reply = ChatReply(handle.request_id, "", error=msg)

        self._replies.put(reply)
        handle._done.set()
        logger.debug("Chat request %d finished ok=%s", handle.request_id, reply.ok)

    def poll(self) -> ChatReply | None:
        try:
            reply = self._replies.get_nowait()
        except queue.Empty:
            return None
        with self._lock:
            self._in_flight -= 1
        return reply
