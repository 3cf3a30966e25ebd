"""Session history routes."""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query

from focusflow.auth.session import current_user
from focusflow.core.errors import NotFoundError
from focusflow.storage.base import Storage
from focusflow.storage.models import FocusSession, User
from focusflow.web.dependencies import get_synced_storage
from focusflow.web.schemas import (
    SessionCreateRequest,
    SessionResponse,
    SessionUpdateRequest,
    to_local_naive,
)

router = APIRouter(prefix="/sessions", tags=["sessions"])


async def _owned_task(storage: Storage, user: User, task_id: str | None) -> None:
    if task_id is None:
        return
    task = await storage.get_task(task_id)
    if task is None or task.user_id != user.id:
        raise NotFoundError("Task not found")


@router.post("", response_model=SessionResponse)
async def create_session(
    body: SessionCreateRequest,
    user: User = Depends(current_user),
    storage: Storage = Depends(get_synced_storage),
) -> SessionResponse:
    """Record a session directly, outside the timer."""
    await _owned_task(storage, user, body.task_id)
    session = await storage.create_session(FocusSession(
        id=str(uuid.uuid4()),
        user_id=user.id,
        **body.model_dump(),
    ))
    return SessionResponse.model_validate(session)


@router.get("", response_model=list[SessionResponse])
async def list_sessions(
    start: datetime | None = Query(None, description="Earliest start time"),
    end: datetime | None = Query(None, description="Latest start time"),
    user: User = Depends(current_user),
    storage: Storage = Depends(get_synced_storage),
) -> list[SessionResponse]:
    sessions = await storage.get_sessions_by_user(user.id, to_local_naive(start), to_local_naive(end))
    return [SessionResponse.model_validate(s) for s in sessions]


@router.get("/active", response_model=SessionResponse | None)
async def active_session(
    user: User = Depends(current_user),
    storage: Storage = Depends(get_synced_storage),
) -> SessionResponse | None:
    """Most recent session still in progress, or null."""
    session = await storage.get_active_session(user.id)
    return SessionResponse.model_validate(session) if session else None


@router.patch("/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: str,
    body: SessionUpdateRequest,
    user: User = Depends(current_user),
    storage: Storage = Depends(get_synced_storage),
) -> SessionResponse:
    existing = await storage.get_session(session_id)
    if existing is None or existing.user_id != user.id:
        raise NotFoundError("Session not found")

    updates = body.model_dump(exclude_unset=True)
    if "task_id" in updates:
        await _owned_task(storage, user, updates["task_id"])

    session = await storage.update_session(session_id, **updates)
    if session is None:
        raise NotFoundError("Session not found")
    return SessionResponse.model_validate(session)
