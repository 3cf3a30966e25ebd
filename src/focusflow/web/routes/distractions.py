"""Distraction log routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from focusflow.auth.session import current_user
from focusflow.core.errors import NotFoundError, ValidationError
from focusflow.focus.manager import TimerManager
from focusflow.storage.base import Storage
from focusflow.storage.models import Distraction, FocusSession, User
from focusflow.web.dependencies import get_synced_storage, get_timers
from focusflow.web.schemas import DistractionCreateRequest, DistractionResponse

router = APIRouter(prefix="/distractions", tags=["distractions"])


async def _get_owned_session(storage: Storage, user: User, session_id: str) -> FocusSession:
    session = await storage.get_session(session_id)
    if session is None or session.user_id != user.id:
        raise NotFoundError("Session not found")
    return session


@router.post("", response_model=DistractionResponse)
async def log_distraction(
    body: DistractionCreateRequest,
    user: User = Depends(current_user),
    storage: Storage = Depends(get_synced_storage),
    timers: TimerManager = Depends(get_timers),
) -> DistractionResponse:
    """Log a distraction against a session, by default the one in progress."""
    session_id = body.session_id or await timers.current_session_id(user.id)
    if session_id is None:
        raise ValidationError("No active session. Start a timer session first to log distractions.")

    await _get_owned_session(storage, user, session_id)
    distraction = await storage.create_distraction(Distraction(
        id=str(uuid.uuid4()),
        session_id=session_id,
        description=body.description,
    ))
    return DistractionResponse.model_validate(distraction)


@router.get("/{session_id}", response_model=list[DistractionResponse])
async def list_distractions(
    session_id: str,
    user: User = Depends(current_user),
    storage: Storage = Depends(get_synced_storage),
) -> list[DistractionResponse]:
    await _get_owned_session(storage, user, session_id)
    distractions = await storage.get_distractions_by_session(session_id)
    return [DistractionResponse.model_validate(d) for d in distractions]
