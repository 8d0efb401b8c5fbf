"""OpenAI-compatible LLM client."""
