"""FocusFlow - focus sessions, task board and distraction log."""

__version__ = "0.1.0"
