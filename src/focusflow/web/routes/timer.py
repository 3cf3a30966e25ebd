"""Timer command routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from focusflow.auth.session import current_user
from focusflow.core.errors import NotFoundError, ValidationError
from focusflow.focus.engine import EnginePhase, RotationEngine
from focusflow.focus.manager import TimerManager
from focusflow.storage.base import Storage
from focusflow.storage.models import User
from focusflow.web.dependencies import get_storage, get_timers
from focusflow.web.schemas import (
    TimerEventResponse,
    TimerModeRequest,
    TimerStartRequest,
    TimerStateResponse,
)

router = APIRouter(prefix="/timer", tags=["timer"])


def _state(engine: RotationEngine) -> TimerStateResponse:
    return TimerStateResponse(**engine.state.to_dict())


@router.get("", response_model=TimerStateResponse)
async def get_timer(
    user: User = Depends(current_user),
    timers: TimerManager = Depends(get_timers),
) -> TimerStateResponse:
    """Current timer state for polling clients."""
    return _state(await timers.get_engine(user.id))


@router.post("/start", response_model=TimerStateResponse)
async def start_timer(
    body: TimerStartRequest | None = None,
    user: User = Depends(current_user),
    timers: TimerManager = Depends(get_timers),
    storage: Storage = Depends(get_storage),
) -> TimerStateResponse:
    """Start the next interval, or resume a paused one."""
    task_id = body.task_id if body else None
    if task_id is not None:
        task = await storage.get_task(task_id)
        if task is None or task.user_id != user.id:
            raise NotFoundError("Task not found")

    engine = await timers.get_engine(user.id)
    interval = engine.current_interval
    # Resuming keeps the interval's task
    if engine.phase == EnginePhase.PAUSED and task_id is not None and task_id != interval.task_id:
        raise ValidationError("Cannot change the task of a paused session. Reset the timer first.")

    engine.start(task_id=task_id)
    return _state(engine)


@router.post("/pause", response_model=TimerStateResponse)
async def pause_timer(
    user: User = Depends(current_user),
    timers: TimerManager = Depends(get_timers),
) -> TimerStateResponse:
    engine = await timers.get_engine(user.id)
    engine.pause()
    return _state(engine)


@router.post("/skip", response_model=TimerStateResponse)
async def skip_timer(
    user: User = Depends(current_user),
    timers: TimerManager = Depends(get_timers),
) -> TimerStateResponse:
    """Move to the next interval without completing this one."""
    engine = await timers.get_engine(user.id)
    engine.skip()
    return _state(engine)


@router.post("/reset", response_model=TimerStateResponse)
async def reset_timer(
    user: User = Depends(current_user),
    timers: TimerManager = Depends(get_timers),
) -> TimerStateResponse:
    engine = await timers.get_engine(user.id)
    engine.reset()
    return _state(engine)


@router.post("/mode", response_model=TimerStateResponse)
async def switch_mode(
    body: TimerModeRequest,
    user: User = Depends(current_user),
    timers: TimerManager = Depends(get_timers),
) -> TimerStateResponse:
    """Switch to a preset or custom durations; the rotation restarts at work."""
    engine = await timers.get_engine(user.id)
    engine.switch_mode(body.resolve(engine.mode, user.timer_settings))
    return _state(engine)


@router.get("/events", response_model=list[TimerEventResponse])
async def timer_events(
    user: User = Depends(current_user),
    timers: TimerManager = Depends(get_timers),
) -> list[TimerEventResponse]:
    """Completion notifications since the last call, oldest first."""
    return [TimerEventResponse(**event.to_dict()) for event in timers.drain_events(user.id)]
