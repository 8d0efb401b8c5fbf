# tests/test_chat_bridge.py

from __future__ import annotations

import pytest

from eisenq.chat.bridge import ChatBridge, ChatDisabled, to_llm_messages

from .fakes import BlockingLLMClient, FailingLLMClient, FakeLLMClient


def test_send_returns_handle_and_poll_delivers_reply() -> None:
    llm = FakeLLMClient("Sounds good.")
    bridge = ChatBridge(llm, system_prompt=lambda ctx: f"SYS {ctx}")

    handle = bridge.send("plan my day", "Tasks for today: []")
    assert handle.wait(5.0)

    reply = bridge.poll()
    assert reply is not None
    assert reply.ok
    assert reply.request_id == handle.request_id
    assert reply.text == "Sounds good."
    assert bridge.poll() is None
    assert bridge.in_flight == 0

    messages, system_prompt = llm.calls[0]
    assert system_prompt == "SYS Tasks for today: []"
    assert messages[-1] == {"role": "user", "content": "plan my day"}


def test_poll_never_blocks_while_request_in_flight() -> None:
    llm = BlockingLLMClient("done")
    bridge = ChatBridge(llm)

    handle = bridge.send("hi", "")
    assert bridge.poll() is None
    assert bridge.in_flight == 1
    assert not handle.done

    llm.release()
    assert handle.wait(5.0)
    reply = bridge.poll()
    assert reply is not None and reply.text == "done"


def test_worker_errors_become_error_replies() -> None:
    bridge = ChatBridge(FailingLLMClient(RuntimeError("boom")))
    handle = bridge.send("hi", "")
    assert handle.wait(5.0)

    reply = bridge.poll()
    assert reply is not None
    assert not reply.ok
    assert reply.error


def test_empty_output_is_an_error() -> None:
    bridge = ChatBridge(FakeLLMClient("   "))
    bridge.send("hi", "").wait(5.0)
    reply = bridge.poll()
    assert reply is not None and not reply.ok


def test_disabled_bridge_raises() -> None:
    bridge = ChatBridge(None)
    assert not bridge.enabled
    with pytest.raises(ChatDisabled):
        bridge.send("hi", "")


def test_history_is_trimmed_and_converted() -> None:
    history = [
        {"role": "user", "text": f"m{n}", "timestamp": ""} for n in range(5)
    ] + [{"role": "assistant", "text": "", "timestamp": ""}]
    messages = to_llm_messages(history, limit=3)
    assert messages == [
        {"role": "user", "content": "m3"},
        {"role": "user", "content": "m4"},
    ]
    assert to_llm_messages(history, limit=0) == []
