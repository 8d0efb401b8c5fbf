# src/eisenq/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time; chat is simply disabled without a key.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "EQ"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Local .env never overrides variables already set in the environment.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths ----
    data_dir: Path
    tasks_path: Path
    history_log_path: Path
    chat_history_path: Path

    # ---- LLM / OpenAI-compatible API ----
    openai_api_key: Optional[str]
    openai_base_url: str
    llm_models: List[str]
    llm_temperature: float

    # ---- Chat tuning ----
    chat_context_messages: int

    @property
    def chat_enabled(self) -> bool:
        return bool(self.openai_api_key and self.openai_api_key.strip())

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "eq")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/eq"))
        tasks_path = _env_path(_k("TASKS_PATH"), data_dir / "tasks.json")
        history_log_path = _env_path(_k("HISTORY_LOG_PATH"), data_dir / "history.jsonl")
        chat_history_path = _env_path(_k("CHAT_HISTORY_PATH"), data_dir / "chat_history.json")

        openai_api_key = _first_env(_k("OPENAI_API_KEY"), "OPENAI_API_KEY", default=None)
        openai_base_url = _env(_k("OPENAI_BASE_URL"), "https://api.openai.com/v1")
        llm_models = _env_list(_k("LLM_MODELS"), ["gpt-4o", "gpt-4o-mini"])
        llm_temperature = _env_float(_k("LLM_TEMPERATURE"), 0.5)

        chat_context_messages = _env_int(_k("CHAT_CONTEXT_MESSAGES"), 20)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_path=tasks_path,
            history_log_path=history_log_path,
            chat_history_path=chat_history_path,
            openai_api_key=openai_api_key,
            openai_base_url=openai_base_url,
            llm_models=llm_models,
            llm_temperature=llm_temperature,
            chat_context_messages=chat_context_messages,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
