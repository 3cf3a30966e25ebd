"""Ownership of one rotation engine per user."""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime
from typing import Any, Callable

from focusflow.focus.engine import IntervalCompleted, RotationEngine, TimerMode
from focusflow.focus.outbox import SessionOutbox
from focusflow.storage.base import Storage
from focusflow.storage.models import TimerSettings

logger = logging.getLogger(__name__)


def mode_from_settings(settings: TimerSettings) -> TimerMode:
    """Timer mode for a user's stored preferences."""
    return TimerMode(
        work_minutes=settings.session_duration,
        short_break_minutes=settings.short_break,
        long_break_minutes=settings.long_break,
        sessions_per_cycle=settings.sessions_per_cycle,
    )


class EventFeed:
    """Notification sink that logs completions and keeps recent ones per user."""

    def __init__(self, max_events_per_user: int = 20):
        self._max_events = max_events_per_user
        self._events: dict[str, deque[IntervalCompleted]] = {}

    def notify(self, event: IntervalCompleted) -> None:
        logger.info(f"{event.title} ({event.user_id}) - {event.description}")
        queue = self._events.setdefault(event.user_id, deque(maxlen=self._max_events))
        queue.append(event)

    def drain(self, user_id: str) -> list[IntervalCompleted]:
        """Return and forget the user's pending events, oldest first."""
        queue = self._events.pop(user_id, None)
        return list(queue) if queue else []


class TimerManager:
    """Creates, resumes and ticks the engines of all active users.

    All engines share one outbox, drained by a single ``OutboxWorker``.
    """

    def __init__(
        self,
        storage: Storage,
        outbox: SessionOutbox | None = None,
        feed: EventFeed | None = None,
        default_mode: TimerMode | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.storage = storage
        self.outbox = outbox if outbox is not None else SessionOutbox()
        self.feed = feed or EventFeed()
        self.default_mode = default_mode or TimerMode()
        self._clock = clock
        self._engines: dict[str, RotationEngine] = {}

    def peek(self, user_id: str) -> RotationEngine | None:
        """Engine for a user if one has been loaded."""
        return self._engines.get(user_id)

    async def get_engine(self, user_id: str) -> RotationEngine:
        """Return the user's engine, loading it on first use.

        A new engine takes the user's timer settings and resumes the most
        recent active session, if any, as a paused interval.
        """
        engine = self._engines.get(user_id)
        if engine is not None:
            return engine

        user = await self.storage.get_user_by_id(user_id)
        mode = mode_from_settings(user.timer_settings) if user else self.default_mode
        active = await self.storage.get_active_session(user_id)

        # Another request may have loaded it while we awaited
        engine = self._engines.get(user_id)
        if engine is not None:
            return engine

        engine = RotationEngine(
            user_id,
            mode=mode,
            outbox=self.outbox,
            notifier=self.feed,
            clock=self._clock,
        )
        if active is not None:
            engine.restore(
                session_id=active.id,
                session_type=active.type,
                duration_minutes=active.duration,
                start_time=active.start_time,
                task_id=active.task_id,
            )
        self._engines[user_id] = engine
        return engine

    async def switch_mode(self, user_id: str, mode: TimerMode | dict[str, Any]) -> RotationEngine:
        engine = await self.get_engine(user_id)
        engine.switch_mode(mode)
        return engine

    async def current_session_id(self, user_id: str) -> str | None:
        """Id of the interval the user is in, from the engine or storage."""
        engine = self._engines.get(user_id)
        if engine is not None and engine.current_interval is not None:
            return engine.current_interval.session_id
        active = await self.storage.get_active_session(user_id)
        return active.id if active else None

    def discard(self, user_id: str) -> bool:
        """Forget a user's engine.

        An in-progress interval stays active in storage and is restored
        the next time the engine is loaded.
        """
        engine = self._engines.pop(user_id, None)
        if engine is None:
            return False
        logger.info(f"Discarded timer for {user_id}")
        return True

    def tick_all(self) -> int:
        """Tick every running engine once. Returns how many were ticked."""
        ticked = 0
        for engine in list(self._engines.values()):
            if engine.is_running:
                engine.tick()
                ticked += 1
        return ticked

    def drain_events(self, user_id: str) -> list[IntervalCompleted]:
        return self.feed.drain(user_id)

    @property
    def engine_count(self) -> int:
        return len(self._engines)
