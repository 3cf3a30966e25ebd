"""SQLite storage backend."""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from focusflow.core.errors import ValidationError
from focusflow.storage.base import Storage
from focusflow.storage.database import Database
from focusflow.storage.models import (
    SESSION_UPDATABLE,
    TASK_UPDATABLE,
    Distraction,
    FocusSession,
    Task,
    User,
)

logger = logging.getLogger(__name__)


def _to_column(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    return value


def _check_updates(updates: dict[str, Any], allowed: frozenset[str]) -> dict[str, Any]:
    unknown = set(updates) - allowed
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
    return {key: _to_column(value) for key, value in updates.items()}


class SQLiteStorage(Storage):
    """Storage over a single SQLite database file."""

    def __init__(self, db: Database | Path | str):
        self.db = db if isinstance(db, Database) else Database(db)

    async def connect(self) -> None:
        await self.db.connect()

    async def close(self) -> None:
        await self.db.close()

    # Users
    async def get_user_by_email(self, email: str) -> User | None:
        row = await self.db.fetch_one("SELECT * FROM users WHERE email = ?", (email,))
        return User.from_db_row(row) if row else None

    async def get_user_by_id(self, user_id: str) -> User | None:
        row = await self.db.fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))
        return User.from_db_row(row) if row else None

    async def create_user(
        self,
        email: str,
        password_hash: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
        )
        try:
            await self.db.insert("users", user.to_db_dict())
        except sqlite3.IntegrityError as e:
            raise ValidationError("User already exists") from e
        return user

    async def update_user_settings(self, user_id: str, settings: dict[str, Any]) -> User | None:
        changed = await self.db.update("users", user_id, {"settings": json.dumps(settings)})
        if not changed:
            return None
        return await self.get_user_by_id(user_id)

    # Sessions
    async def create_session(self, session: FocusSession) -> FocusSession:
        data = session.to_db_dict()
        data["completed"] = int(session.completed)
        try:
            await self.db.insert("sessions", data)
        except sqlite3.IntegrityError as e:
            raise ValidationError(f"Invalid session record: {e}") from e
        return session

    async def update_session(self, session_id: str, **updates: Any) -> FocusSession | None:
        data = _check_updates(updates, SESSION_UPDATABLE)
        if data:
            changed = await self.db.update("sessions", session_id, data)
            if not changed:
                return None
        return await self.get_session(session_id)

    async def get_session(self, session_id: str) -> FocusSession | None:
        row = await self.db.fetch_one("SELECT * FROM sessions WHERE id = ?", (session_id,))
        return FocusSession.from_db_row(row) if row else None

    async def get_sessions_by_user(
        self,
        user_id: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[FocusSession]:
        query = "SELECT * FROM sessions WHERE user_id = ?"
        params: list[Any] = [user_id]
        if start_date:
            query += " AND start_time >= ?"
            params.append(start_date.isoformat())
        if end_date:
            query += " AND start_time <= ?"
            params.append(end_date.isoformat())
        query += " ORDER BY start_time DESC"

        rows = await self.db.fetch_all(query, tuple(params))
        return [FocusSession.from_db_row(row) for row in rows]

    async def get_active_session(self, user_id: str) -> FocusSession | None:
        row = await self.db.fetch_one(
            """
            SELECT * FROM sessions
            WHERE user_id = ? AND completed = 0 AND end_time IS NULL
            ORDER BY start_time DESC
            LIMIT 1
            """,
            (user_id,),
        )
        return FocusSession.from_db_row(row) if row else None

    # Tasks
    async def create_task(self, task: Task) -> Task:
        try:
            await self.db.insert("tasks", task.to_db_dict())
        except sqlite3.IntegrityError as e:
            raise ValidationError(f"Invalid task record: {e}") from e
        return task

    async def get_task(self, task_id: str) -> Task | None:
        row = await self.db.fetch_one("SELECT * FROM tasks WHERE id = ?", (task_id,))
        return Task.from_db_row(row) if row else None

    async def update_task(self, task_id: str, **updates: Any) -> Task | None:
        data = _check_updates(updates, TASK_UPDATABLE)
        data["updated_at"] = datetime.now().isoformat()
        changed = await self.db.update("tasks", task_id, data)
        if not changed:
            return None
        return await self.get_task(task_id)

    async def delete_task(self, task_id: str) -> bool:
        deleted = await self.db.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        return deleted > 0

    async def get_tasks_by_user(self, user_id: str) -> list[Task]:
        rows = await self.db.fetch_all(
            "SELECT * FROM tasks WHERE user_id = ? ORDER BY created_at DESC",
            (user_id,),
        )
        return [Task.from_db_row(row) for row in rows]

    # Distractions
    async def create_distraction(self, distraction: Distraction) -> Distraction:
        try:
            await self.db.insert("distractions", distraction.to_db_dict())
        except sqlite3.IntegrityError as e:
            raise ValidationError(f"Invalid distraction record: {e}") from e
        return distraction

    async def get_distractions_by_session(self, session_id: str) -> list[Distraction]:
        rows = await self.db.fetch_all(
            "SELECT * FROM distractions WHERE session_id = ? ORDER BY timestamp DESC",
            (session_id,),
        )
        return [Distraction.from_db_row(row) for row in rows]

    async def get_distractions_by_user(self, user_id: str) -> list[Distraction]:
        rows = await self.db.fetch_all(
            """
            SELECT d.* FROM distractions d
            JOIN sessions s ON s.id = d.session_id
            WHERE s.user_id = ?
            ORDER BY d.timestamp DESC
            """,
            (user_id,),
        )
        return [Distraction.from_db_row(row) for row in rows]
