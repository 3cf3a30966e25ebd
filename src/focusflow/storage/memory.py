"""In-memory storage backend."""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any

from focusflow.core.errors import ValidationError
from focusflow.storage.base import Storage
from focusflow.storage.models import (
    SESSION_UPDATABLE,
    TASK_UPDATABLE,
    Distraction,
    FocusSession,
    Task,
    User,
)

logger = logging.getLogger(__name__)


def _check_updates(updates: dict[str, Any], allowed: frozenset[str]) -> None:
    unknown = set(updates) - allowed
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")


class MemoryStorage(Storage):
    """Dict-backed storage. Data lives as long as the process."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._sessions: dict[str, FocusSession] = {}
        self._tasks: dict[str, Task] = {}
        self._distractions: dict[str, Distraction] = {}

    async def connect(self) -> None:
        logger.info("Using in-memory storage")

    async def get_user_by_email(self, email: str) -> User | None:
        return next((u for u in self._users.values() if u.email == email), None)

    async def get_user_by_id(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    async def create_user(
        self,
        email: str,
        password_hash: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        if await self.get_user_by_email(email):
            raise ValidationError("User already exists")
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
        )
        self._users[user.id] = user
        return user

    async def update_user_settings(self, user_id: str, settings: dict[str, Any]) -> User | None:
        user = self._users.get(user_id)
        if user is None:
            return None
        updated = replace(user, settings=dict(settings))
        self._users[user_id] = updated
        return updated

    async def create_session(self, session: FocusSession) -> FocusSession:
        if session.id in self._sessions:
            raise ValidationError(f"Session {session.id} already exists")
        self._sessions[session.id] = session
        return session

    async def update_session(self, session_id: str, **updates: Any) -> FocusSession | None:
        _check_updates(updates, SESSION_UPDATABLE)
        session = self._sessions.get(session_id)
        if session is None:
            return None
        updated = replace(session, **updates)
        self._sessions[session_id] = updated
        return updated

    async def get_session(self, session_id: str) -> FocusSession | None:
        return self._sessions.get(session_id)

    async def get_sessions_by_user(
        self,
        user_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[FocusSession]:
        sessions = [s for s in self._sessions.values() if s.user_id == user_id]
        if start_date:
            sessions = [s for s in sessions if s.start_time >= start_date]
        if end_date:
            sessions = [s for s in sessions if s.start_time <= end_date]
        return sorted(sessions, key=lambda s: s.start_time, reverse=True)

    async def get_active_session(self, user_id: str) -> FocusSession | None:
        sessions = await self.get_sessions_by_user(user_id)
        return next((s for s in sessions if s.is_active), None)

    async def create_task(self, task: Task) -> Task:
        self._tasks[task.id] = task
        return task

    async def get_task(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    async def update_task(self, task_id: str, **updates: Any) -> Task | None:
        _check_updates(updates, TASK_UPDATABLE)
        task = self._tasks.get(task_id)
        if task is None:
            return None
        updated = replace(task, **updates, updated_at=datetime.now())
        self._tasks[task_id] = updated
        return updated

    async def delete_task(self, task_id: str) -> bool:
        return self._tasks.pop(task_id, None) is not None

    async def get_tasks_by_user(self, user_id: str) -> list[Task]:
        tasks = [t for t in self._tasks.values() if t.user_id == user_id]
        return sorted(tasks, key=lambda t: t.created_at, reverse=True)

    async def create_distraction(self, distraction: Distraction) -> Distraction:
        self._distractions[distraction.id] = distraction
        return distraction

    async def get_distractions_by_session(self, session_id: str) -> list[Distraction]:
        found = [d for d in self._distractions.values() if d.session_id == session_id]
        return sorted(found, key=lambda d: d.timestamp, reverse=True)

    async def get_distractions_by_user(self, user_id: str) -> list[Distraction]:
        owned = {s.id for s in self._sessions.values() if s.user_id == user_id}
        found = [d for d in self._distractions.values() if d.session_id in owned]
        return sorted(found, key=lambda d: d.timestamp, reverse=True)
