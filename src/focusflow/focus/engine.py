"""Work/break rotation engine for focus sessions."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Protocol

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from focusflow.core.errors import ValidationError
from focusflow.focus.outbox import CreateSession, SessionOutbox, UpdateSession

logger = logging.getLogger(__name__)


class IntervalKind(Enum):
    """Kind of countdown interval."""
    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @property
    def session_type(self) -> str:
        """Stored session type; storage does not distinguish break lengths."""
        return "work" if self is IntervalKind.WORK else "break"


class EnginePhase(Enum):
    """Whether the countdown is running."""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class TimerMode(BaseModel):
    """Interval durations for one engine configuration."""

    model_config = ConfigDict(frozen=True)

    work_minutes: int = Field(default=50, gt=0)
    short_break_minutes: int = Field(default=10, gt=0)
    long_break_minutes: int = Field(default=30, gt=0)
    sessions_per_cycle: int = Field(default=4, gt=0)

    def duration_for(self, kind: IntervalKind) -> int:
        """Duration in seconds for an interval kind."""
        if kind == IntervalKind.WORK:
            return self.work_minutes * 60
        elif kind == IntervalKind.SHORT_BREAK:
            return self.short_break_minutes * 60
        else:
            return self.long_break_minutes * 60


# Work durations for the named presets; break settings come from the user
TIMER_PRESETS: dict[str, int] = {
    "30min": 30,
    "50min": 50,
    "custom": 25,
}


@dataclass
class Interval:
    """One countdown period of a fixed kind."""
    session_id: str
    kind: IntervalKind
    planned_duration_seconds: int
    remaining_seconds: int
    started_at: datetime
    task_id: str | None = None
    ended_at: datetime | None = None
    completed: bool = False


@dataclass
class EngineState:
    """Read-only projection of the engine for the presentation layer."""
    phase: EnginePhase
    current_kind: IntervalKind
    remaining_seconds: int
    duration_seconds: int
    cycle_position: int
    sessions_per_cycle: int
    session_id: str | None = None
    task_id: str | None = None
    started_at: datetime | None = None

    @property
    def is_running(self) -> bool:
        return self.phase == EnginePhase.RUNNING

    @property
    def time_remaining_display(self) -> str:
        """Format time remaining as MM:SS."""
        minutes, seconds = divmod(self.remaining_seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"

    @property
    def progress_percent(self) -> float:
        """Progress through current interval (0-100)."""
        if self.duration_seconds <= 0:
            return 0.0
        elapsed = self.duration_seconds - self.remaining_seconds
        return min(100.0, max(0.0, (elapsed / self.duration_seconds) * 100))

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "current_kind": self.current_kind.value,
            "remaining_seconds": self.remaining_seconds,
            "time_remaining": self.time_remaining_display,
            "duration_seconds": self.duration_seconds,
            "progress_percent": round(self.progress_percent, 1),
            "cycle_position": self.cycle_position,
            "sessions_per_cycle": self.sessions_per_cycle,
            "session_id": self.session_id,
            "task_id": self.task_id,
            "started_at": self.started_at.isoformat() if self.started_at else None,
        }


@dataclass
class IntervalCompleted:
    """Emitted on every transition, natural or skipped."""
    user_id: str
    session_id: str
    finished_kind: IntervalKind
    next_kind: IntervalKind
    completed: bool
    cycle_position: int
    occurred_at: datetime

    @property
    def title(self) -> str:
        label = "Work" if self.finished_kind == IntervalKind.WORK else "Break"
        return f"{label} Session Complete!"

    @property
    def description(self) -> str:
        label = "work" if self.next_kind == IntervalKind.WORK else "break"
        return f"Starting {label} session"

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "finished_kind": self.finished_kind.value,
            "next_kind": self.next_kind.value,
            "completed": self.completed,
            "cycle_position": self.cycle_position,
            "occurred_at": self.occurred_at.isoformat(),
            "title": self.title,
            "description": self.description,
        }


class NotificationSink(Protocol):
    """Receives interval-complete notifications (sound, toast, ...)."""

    def notify(self, event: IntervalCompleted) -> None: ...


class RotationEngine:
    """Countdown state machine cycling through work and break intervals.

    The engine never reads the wall clock on its own schedule: an external
    scheduler calls ``tick()`` once per elapsed second. Persistence is
    requested by appending commands to an outbox that a separate worker
    drains, so a slow or failing store never changes the timer.

    Usage:
        engine = RotationEngine("user-1", TimerMode(work_minutes=25))
        engine.start()
        for _ in range(25 * 60):
            engine.tick()
        engine.state.current_kind  # IntervalKind.SHORT_BREAK
    """

    def __init__(
        self,
        user_id: str,
        mode: TimerMode | None = None,
        outbox: SessionOutbox | None = None,
        notifier: NotificationSink | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.user_id = user_id
        self.mode = mode or TimerMode()
        self.outbox = outbox if outbox is not None else SessionOutbox()
        self.notifier = notifier
        self._clock = clock

        self.phase = EnginePhase.IDLE
        self.current_kind = IntervalKind.WORK
        self.remaining_seconds = self.mode.duration_for(IntervalKind.WORK)
        self.cycle_position = 1
        self.current_interval: Interval | None = None

    @property
    def state(self) -> EngineState:
        """Snapshot of the current state."""
        interval = self.current_interval
        return EngineState(
            phase=self.phase,
            current_kind=self.current_kind,
            remaining_seconds=self.remaining_seconds,
            duration_seconds=(
                interval.planned_duration_seconds if interval
                else self.mode.duration_for(self.current_kind)
            ),
            cycle_position=self.cycle_position,
            sessions_per_cycle=self.mode.sessions_per_cycle,
            session_id=interval.session_id if interval else None,
            task_id=interval.task_id if interval else None,
            started_at=interval.started_at if interval else None,
        )

    @property
    def is_running(self) -> bool:
        return self.phase == EnginePhase.RUNNING

    def start(self, task_id: str | None = None) -> None:
        """Start a new interval from idle, or resume a paused one."""
        if self.phase == EnginePhase.RUNNING:
            return

        if self.phase == EnginePhase.PAUSED:
            self.phase = EnginePhase.RUNNING
            logger.info(f"Timer resumed for {self.user_id}: {self.current_kind.value}")
            return

        duration = self.mode.duration_for(self.current_kind)
        interval = Interval(
            session_id=str(uuid.uuid4()),
            kind=self.current_kind,
            planned_duration_seconds=duration,
            remaining_seconds=duration,
            started_at=self._clock(),
            task_id=task_id,
        )
        self.current_interval = interval
        self.remaining_seconds = duration
        self.phase = EnginePhase.RUNNING

        self.outbox.put(CreateSession(
            session_id=interval.session_id,
            user_id=self.user_id,
            session_type=interval.kind.session_type,
            duration_minutes=duration // 60,
            start_time=interval.started_at,
            task_id=task_id,
        ))
        logger.info(f"Timer started for {self.user_id}: {self.current_kind.value}")

    def pause(self) -> None:
        """Pause a running countdown."""
        if self.phase != EnginePhase.RUNNING:
            return
        self.phase = EnginePhase.PAUSED
        logger.info(f"Timer paused for {self.user_id}")

    def tick(self) -> None:
        """Advance the countdown by one second."""
        if self.phase != EnginePhase.RUNNING:
            return

        self.remaining_seconds = max(0, self.remaining_seconds - 1)
        if self.current_interval:
            self.current_interval.remaining_seconds = self.remaining_seconds

        if self.remaining_seconds == 0:
            self._complete_interval(completed=True)

    def skip(self) -> None:
        """Finish the current interval now without marking it completed."""
        if self.phase == EnginePhase.IDLE:
            self.remaining_seconds = self.mode.duration_for(self.current_kind)
            return
        self._complete_interval(completed=False)

    def reset(self) -> None:
        """Abort the current interval and return to idle at full duration."""
        if self.current_interval is not None:
            self._close_interval(self.current_interval)
        self.current_interval = None
        self.phase = EnginePhase.IDLE
        self.remaining_seconds = self.mode.duration_for(self.current_kind)
        logger.info(f"Timer reset for {self.user_id}: {self.current_kind.value}")

    def switch_mode(self, new_mode: TimerMode | dict[str, Any]) -> None:
        """Replace the mode and restart the rotation from an idle work interval."""
        data = new_mode.model_dump() if isinstance(new_mode, TimerMode) else new_mode
        try:
            mode = TimerMode.model_validate(data)
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid timer mode: {e.errors()[0]['msg']}") from e

        if self.current_interval is not None:
            self._close_interval(self.current_interval)

        self.mode = mode
        self.current_interval = None
        self.phase = EnginePhase.IDLE
        self.current_kind = IntervalKind.WORK
        self.cycle_position = 1
        self.remaining_seconds = mode.work_minutes * 60
        logger.info(f"Timer mode switched for {self.user_id}: {mode.work_minutes}m work")

    def restore(self, session_id: str, session_type: str, duration_minutes: int,
                start_time: datetime, task_id: str | None = None) -> None:
        """Resume a persisted active session as a paused interval.

        No new record is created. The remaining time is the planned
        duration minus wall-clock time since the session started, kept
        at one second or more so the next tick completes it.
        """
        kind = IntervalKind.WORK if session_type == "work" else IntervalKind.SHORT_BREAK
        planned = duration_minutes * 60
        elapsed = int((self._clock() - start_time).total_seconds())
        remaining = min(planned, max(1, planned - elapsed))

        self.current_kind = kind
        self.current_interval = Interval(
            session_id=session_id,
            kind=kind,
            planned_duration_seconds=planned,
            remaining_seconds=remaining,
            started_at=start_time,
            task_id=task_id,
        )
        self.remaining_seconds = remaining
        self.phase = EnginePhase.PAUSED
        logger.info(f"Restored active session {session_id} for {self.user_id}")

    def _close_interval(self, interval: Interval) -> None:
        """Record an abandoned interval as not completed."""
        interval.ended_at = self._clock()
        interval.completed = False
        self.outbox.put(UpdateSession(
            session_id=interval.session_id,
            completed=False,
            end_time=interval.ended_at,
        ))

    def _complete_interval(self, completed: bool) -> None:
        """Record the finished interval and move to the next kind."""
        finished_kind = self.current_kind
        interval = self.current_interval

        if interval is not None:
            interval.ended_at = self._clock()
            interval.completed = completed
            self.outbox.put(UpdateSession(
                session_id=interval.session_id,
                completed=completed,
                end_time=interval.ended_at,
            ))

        if finished_kind == IntervalKind.WORK:
            if self.cycle_position >= self.mode.sessions_per_cycle:
                self.current_kind = IntervalKind.LONG_BREAK
                self.cycle_position = 1
            else:
                self.current_kind = IntervalKind.SHORT_BREAK
        else:
            self.current_kind = IntervalKind.WORK
            if finished_kind == IntervalKind.SHORT_BREAK:
                self.cycle_position += 1

        self.remaining_seconds = self.mode.duration_for(self.current_kind)
        self.phase = EnginePhase.IDLE
        self.current_interval = None

        logger.info(
            f"{finished_kind.value} {'complete' if completed else 'skipped'} for "
            f"{self.user_id}, next: {self.current_kind.value} ({self.cycle_position}/"
            f"{self.mode.sessions_per_cycle})"
        )

        if self.notifier:
            event = IntervalCompleted(
                user_id=self.user_id,
                session_id=interval.session_id if interval else "",
                finished_kind=finished_kind,
                next_kind=self.current_kind,
                completed=completed,
                cycle_position=self.cycle_position,
                occurred_at=self._clock(),
            )
            try:
                self.notifier.notify(event)
            except Exception as e:
                logger.error(f"Error in notification sink: {e}")
