"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, Quadrant)
- errors.py: error taxonomy raised by store operations
- priority_parser.py: "!!$$" / "u2i3" notation parsing
- atomic_io.py: write-temp-then-rename JSON persistence
- event_log.py: append-only JSON Lines audit trail
- task_store.py: the task collection (aggregate root)
- task_api.py: notation-aware helpers shared by CLI and TUI
"""
