# tests/test_config.py

from __future__ import annotations

import importlib.util
import re
from pathlib import Path

from eisenq import config
from eisenq.llm import client

ROOT = Path(__file__).resolve().parents[1]


def _documented() -> set[str]:
    spec = importlib.util.spec_from_file_location("config_example", ROOT / "config.example.py")
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return set(module.ENV_VARS)


def _read_by(path: str) -> set[str]:
    source = Path(path).read_text("utf-8")
    names = {f"EQ_{m}" for m in re.findall(r'_k\("([A-Z_]+)"\)', source)}
    names |= set(re.findall(r'"(EQ_[A-Z_]+)"', source))
    return names


def test_every_variable_is_documented() -> None:
    used = _read_by(config.__file__) | _read_by(client.__file__)
    assert used
    assert used <= _documented()


def test_from_env_defaults(monkeypatch, tmp_path: Path) -> None:
    for name in _documented() | {"OPENAI_API_KEY"}:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("EQ_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("EQ_LLM_MODELS", "a, b c")

    s = config.Settings.from_env()

    assert s.tasks_path == tmp_path / "tasks.json"
    assert s.history_log_path == tmp_path / "history.jsonl"
    assert s.chat_history_path == tmp_path / "chat_history.json"
    assert s.llm_models == ["a", "b", "c"]
    assert not s.chat_enabled


def test_generic_openai_key_enables_chat(monkeypatch) -> None:
    monkeypatch.delenv("EQ_OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    assert config.Settings.from_env().chat_enabled
