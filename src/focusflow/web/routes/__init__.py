"""API routes."""

from focusflow.web.routes import analytics, auth, distractions, health, sessions, tasks, timer

__all__ = ["analytics", "auth", "distractions", "health", "sessions", "tasks", "timer"]
