"""Records stored by the persistence layer."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class SessionType(str, Enum):
    """Stored session type. Break length is only known to the engine."""

    WORK = "work"
    BREAK = "break"


class TaskStatus(str, Enum):
    """Kanban column of a task."""

    TODO = "todo"
    IN_PROGRESS = "inprogress"
    DONE = "done"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TimerSettings(BaseModel):
    """Per-user timer preferences."""

    session_duration: int = Field(default=50, ge=1, le=120)
    short_break: int = Field(default=10, ge=1, le=30)
    long_break: int = Field(default=30, ge=1, le=60)
    sessions_per_cycle: int = Field(default=4, ge=2, le=8)
    sound_enabled: bool = True
    browser_notifications: bool = False
    theme: str = Field(default="light", pattern="^(light|dark)$")


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass
class User:
    """A registered account."""
    id: str
    email: str
    password_hash: str
    first_name: str | None = None
    last_name: str | None = None
    settings: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def timer_settings(self) -> TimerSettings:
        """Stored settings merged over defaults."""
        return TimerSettings(**self.settings)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> User:
        settings = row.get("settings") or "{}"
        if isinstance(settings, str):
            settings = json.loads(settings)
        return cls(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            first_name=row.get("first_name"),
            last_name=row.get("last_name"),
            settings=settings,
            created_at=_parse_datetime(row.get("created_at")) or datetime.now(),
        )

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "password_hash": self.password_hash,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "settings": json.dumps(self.settings),
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class FocusSession:
    """A persisted work or break interval."""
    id: str
    user_id: str
    type: str
    duration: int  # minutes
    start_time: datetime
    end_time: datetime | None = None
    completed: bool = False
    task_id: str | None = None

    @property
    def is_work(self) -> bool:
        return self.type == SessionType.WORK.value

    @property
    def is_active(self) -> bool:
        """Not completed and not closed."""
        return not self.completed and self.end_time is None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> FocusSession:
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            type=row["type"],
            duration=row["duration"],
            start_time=_parse_datetime(row["start_time"]),
            end_time=_parse_datetime(row.get("end_time")),
            completed=bool(row.get("completed", False)),
            task_id=row.get("task_id"),
        )

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "duration": self.duration,
            "start_time": self.start_time.isoformat(),
            "end_time": _format_datetime(self.end_time),
            "completed": self.completed,
            "task_id": self.task_id,
        }


@dataclass
class Task:
    """A kanban task, optionally worked on during focus sessions."""
    id: str
    user_id: str
    title: str
    description: str | None = None
    status: str = TaskStatus.TODO.value
    priority: str = TaskPriority.MEDIUM.value
    estimated_sessions: int = 1
    completed_sessions: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Task:
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            description=row.get("description"),
            status=row.get("status") or TaskStatus.TODO.value,
            priority=row.get("priority") or TaskPriority.MEDIUM.value,
            estimated_sessions=row.get("estimated_sessions", 1),
            completed_sessions=row.get("completed_sessions", 0),
            created_at=_parse_datetime(row.get("created_at")) or datetime.now(),
            updated_at=_parse_datetime(row.get("updated_at")) or datetime.now(),
        )

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "estimated_sessions": self.estimated_sessions,
            "completed_sessions": self.completed_sessions,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class Distraction:
    """Something that pulled the user out of a session."""
    id: str
    session_id: str
    description: str
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Distraction:
        return cls(
            id=row["id"],
            session_id=row["session_id"],
            description=row["description"],
            timestamp=_parse_datetime(row.get("timestamp")) or datetime.now(),
        )

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "description": self.description,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class SessionStats:
    """Aggregate figures for the dashboard."""
    total_sessions: int = 0
    total_hours: float = 0.0
    completion_rate: float = 0.0
    distraction_free_rate: float = 100.0
    longest_streak: int = 0
    current_streak: int = 0
    best_day: str = ""
    best_hour: int = 9


# Columns a caller may change through update_session / update_task
SESSION_UPDATABLE = frozenset({"type", "duration", "start_time", "end_time", "completed", "task_id"})
TASK_UPDATABLE = frozenset({
    "title", "description", "status", "priority", "estimated_sessions", "completed_sessions",
})
