"""Interactive terminal UI: state machine and curses driver."""
