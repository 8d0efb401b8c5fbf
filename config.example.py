# config.example.py

"""
Documentation-only module (safe to commit).

Configuration is read from environment variables, optionally through a local
.env file (gitignored). Never commit a real API key.
"""

ENV_VARS = {
    # App / logging
    "EQ_APP_NAME": "App display name (default: eq).",
    "EQ_LOG_LEVEL": "Console logging level for CLI commands (default: INFO).",
    # Paths (gitignored)
    "EQ_DATA_DIR": "Local data directory; also holds eq.log (default: .local/eq).",
    "EQ_TASKS_PATH": "Task file (default: <data_dir>/tasks.json).",
    "EQ_HISTORY_LOG_PATH": "Append-only event log (default: <data_dir>/history.jsonl).",
    "EQ_CHAT_HISTORY_PATH": "Chat transcript (default: <data_dir>/chat_history.json).",
    # Chat assistant (OpenAI-compatible API)
    "EQ_OPENAI_API_KEY": "API key; OPENAI_API_KEY is used when unset. No key => chat disabled.",
    "EQ_OPENAI_BASE_URL": "API base URL (default: https://api.openai.com/v1).",
    "EQ_LLM_MODELS": "Comma/space separated list of models to try in order.",
    "EQ_LLM_TEMPERATURE": "Sampling temperature (default: 0.5).",
    "EQ_CHAT_CONTEXT_MESSAGES": "Previous chat messages sent with each request (default: 20).",
    # Timeouts
    "EQ_LLM_CONNECT_TIMEOUT_SECONDS": "HTTP connect timeout (default: 5).",
    "EQ_LLM_READ_TIMEOUT_SECONDS": "HTTP read timeout (default: 60).",
    "EQ_LLM_FIRST_TOKEN_TIMEOUT_SECONDS": "Move to the next model if no token arrives in time (default: 45).",
}
