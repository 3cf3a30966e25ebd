"""Focus timer: rotation engine, persistence outbox and tick runner."""

from focusflow.focus.engine import (
    TIMER_PRESETS,
    EnginePhase,
    EngineState,
    Interval,
    IntervalCompleted,
    IntervalKind,
    RotationEngine,
    TimerMode,
)
from focusflow.focus.manager import EventFeed, TimerManager, mode_from_settings
from focusflow.focus.outbox import CreateSession, OutboxWorker, SessionOutbox, UpdateSession
from focusflow.focus.runner import TimerRunner

__all__ = [
    "TIMER_PRESETS",
    "EnginePhase",
    "EngineState",
    "Interval",
    "IntervalCompleted",
    "IntervalKind",
    "RotationEngine",
    "TimerMode",
    "EventFeed",
    "TimerManager",
    "mode_from_settings",
    "CreateSession",
    "UpdateSession",
    "SessionOutbox",
    "OutboxWorker",
    "TimerRunner",
]
