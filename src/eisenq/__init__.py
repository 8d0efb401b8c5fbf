"""
eisenq: an Eisenhower-matrix task tracker for the terminal.

Subpackages:
- tasks: task model, priority notation, JSON store and audit log
- chat: background chat bridge and assistant directives
- llm: OpenAI-compatible streaming client
- core: ports, owned app state, assistant prompt
- tui: interactive state machine and curses driver
- cli: command line entry point and composition root
"""

__version__ = "0.1.0"
