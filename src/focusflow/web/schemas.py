"""Request and response models for the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from focusflow.focus.engine import TIMER_PRESETS, TimerMode
from focusflow.storage.models import TimerSettings

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

SessionTypeField = Literal["work", "break"]
TaskStatusField = Literal["todo", "inprogress", "done"]
TaskPriorityField = Literal["low", "medium", "high"]


def to_local_naive(value: datetime | None) -> datetime | None:
    """Convert an aware timestamp to naive local time, the form every record uses."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    storage_backend: str
    pending_writes: int
    active_timers: int


# ============ Auth ============

class RegisterRequest(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=254)
    # bcrypt only looks at the first 72 bytes
    password: str = Field(min_length=6, max_length=72)
    first_name: str | None = None
    last_name: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class UserResponse(BaseModel):
    """A user without the password hash."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: str | None
    last_name: str | None
    settings: dict[str, Any]
    created_at: datetime


class AuthResponse(BaseModel):
    user: UserResponse


# ============ Timer ============

class TimerStartRequest(BaseModel):
    task_id: str | None = None


class TimerModeRequest(BaseModel):
    """Either a named preset or explicit durations; omitted fields keep their value."""
    preset: str | None = None
    work_minutes: int | None = None
    short_break_minutes: int | None = None
    long_break_minutes: int | None = None
    sessions_per_cycle: int | None = None

    @field_validator("preset")
    @classmethod
    def known_preset(cls, value: str | None) -> str | None:
        if value is not None and value not in TIMER_PRESETS:
            raise ValueError(f"preset must be one of {', '.join(TIMER_PRESETS)}")
        return value

    def resolve(self, current: TimerMode, settings: TimerSettings) -> dict[str, Any]:
        """Mode values to hand to the engine, which validates them."""
        if self.preset is not None:
            values = {
                "work_minutes": TIMER_PRESETS[self.preset],
                "short_break_minutes": settings.short_break,
                "long_break_minutes": settings.long_break,
                "sessions_per_cycle": settings.sessions_per_cycle,
            }
        else:
            values = current.model_dump()
        values.update(self.model_dump(exclude={"preset"}, exclude_none=True))
        return values


class TimerStateResponse(BaseModel):
    phase: str
    current_kind: str
    remaining_seconds: int
    time_remaining: str
    duration_seconds: int
    progress_percent: float
    cycle_position: int
    sessions_per_cycle: int
    session_id: str | None = None
    task_id: str | None = None
    started_at: datetime | None = None


class TimerEventResponse(BaseModel):
    session_id: str
    finished_kind: str
    next_kind: str
    completed: bool
    cycle_position: int
    occurred_at: datetime
    title: str
    description: str


# ============ Sessions ============

class SessionCreateRequest(BaseModel):
    type: SessionTypeField
    duration: int = Field(gt=0, description="Planned length in minutes")
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: datetime | None = None
    completed: bool = False
    task_id: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def local_time(cls, value: datetime | None) -> datetime | None:
        return to_local_naive(value)


class SessionUpdateRequest(BaseModel):
    type: SessionTypeField | None = None
    duration: int | None = Field(default=None, gt=0)
    start_time: datetime | None = None
    end_time: datetime | None = None
    completed: bool | None = None
    task_id: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def local_time(cls, value: datetime | None) -> datetime | None:
        return to_local_naive(value)


class SessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: str
    duration: int
    start_time: datetime
    end_time: datetime | None
    completed: bool
    task_id: str | None


# ============ Tasks ============

class TaskCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    status: TaskStatusField = "todo"
    priority: TaskPriorityField = "medium"
    estimated_sessions: int = Field(default=1, ge=1)
    completed_sessions: int = Field(default=0, ge=0)


class TaskUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    status: TaskStatusField | None = None
    priority: TaskPriorityField | None = None
    estimated_sessions: int | None = Field(default=None, ge=1)
    completed_sessions: int | None = Field(default=None, ge=0)


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    description: str | None
    status: str
    priority: str
    estimated_sessions: int
    completed_sessions: int
    created_at: datetime
    updated_at: datetime


# ============ Distractions ============

class DistractionCreateRequest(BaseModel):
    session_id: str | None = Field(default=None, description="Defaults to the active session")
    description: str = Field(min_length=1, max_length=500)


class DistractionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str
    description: str
    timestamp: datetime


# ============ Analytics ============

class StatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_sessions: int
    total_hours: float
    completion_rate: float
    distraction_free_rate: float
    longest_streak: int
    current_streak: int
    best_day: str
    best_hour: int
