"""Ports, owned application state and the assistant prompt."""
