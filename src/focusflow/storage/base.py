"""Storage interface shared by the memory and SQLite backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any

from focusflow.storage import analytics
from focusflow.storage.models import Distraction, FocusSession, SessionStats, Task, User


class Storage(ABC):
    """Persistence gateway for users, sessions, tasks and distractions.

    Backends implement the CRUD methods; analytics are derived here by
    scanning the stored sessions.
    """

    async def connect(self) -> None:
        """Open underlying resources."""

    async def close(self) -> None:
        """Release underlying resources."""

    # Users
    @abstractmethod
    async def get_user_by_email(self, email: str) -> User | None: ...

    @abstractmethod
    async def get_user_by_id(self, user_id: str) -> User | None: ...

    @abstractmethod
    async def create_user(
        self,
        email: str,
        password_hash: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User: ...

    @abstractmethod
    async def update_user_settings(self, user_id: str, settings: dict[str, Any]) -> User | None: ...

    # Sessions
    @abstractmethod
    async def create_session(self, session: FocusSession) -> FocusSession: ...

    @abstractmethod
    async def update_session(self, session_id: str, **updates: Any) -> FocusSession | None: ...

    @abstractmethod
    async def get_session(self, session_id: str) -> FocusSession | None: ...

    @abstractmethod
    async def get_sessions_by_user(
        self,
        user_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[FocusSession]:
        """Sessions newest first, optionally limited to a start-time range."""

    @abstractmethod
    async def get_active_session(self, user_id: str) -> FocusSession | None:
        """Most recent session that is neither completed nor closed."""

    # Tasks
    @abstractmethod
    async def create_task(self, task: Task) -> Task: ...

    @abstractmethod
    async def get_task(self, task_id: str) -> Task | None: ...

    @abstractmethod
    async def update_task(self, task_id: str, **updates: Any) -> Task | None: ...

    @abstractmethod
    async def delete_task(self, task_id: str) -> bool: ...

    @abstractmethod
    async def get_tasks_by_user(self, user_id: str) -> list[Task]: ...

    async def increment_task_sessions(self, task_id: str) -> Task | None:
        """Count one more completed session against a task."""
        task = await self.get_task(task_id)
        if task is None:
            return None
        updates: dict[str, Any] = {"completed_sessions": task.completed_sessions + 1}
        if task.status == "todo":
            updates["status"] = "inprogress"
        return await self.update_task(task_id, **updates)

    # Distractions
    @abstractmethod
    async def create_distraction(self, distraction: Distraction) -> Distraction: ...

    @abstractmethod
    async def get_distractions_by_session(self, session_id: str) -> list[Distraction]: ...

    @abstractmethod
    async def get_distractions_by_user(self, user_id: str) -> list[Distraction]: ...

    # Analytics
    async def get_session_stats(
        self,
        user_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        today: date | None = None,
    ) -> SessionStats:
        sessions = await self.get_sessions_by_user(user_id, start_date, end_date)
        distractions = await self.get_distractions_by_user(user_id)
        return analytics.compute_session_stats(sessions, distractions, today)

    async def get_heatmap_data(self, user_id: str, year: int) -> dict[str, int]:
        start, end = analytics.year_bounds(year)
        sessions = await self.get_sessions_by_user(user_id, start, end)
        return analytics.heatmap(sessions, year)
