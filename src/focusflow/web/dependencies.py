"""FastAPI dependencies for application state."""

from __future__ import annotations

from fastapi import Request

from focusflow.core.config import Config
from focusflow.focus.manager import TimerManager
from focusflow.storage.base import Storage


def get_config_dep(request: Request) -> Config:
    return request.app.state.config


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


async def get_synced_storage(request: Request) -> Storage:
    """Storage after writing out pending timer commands.

    Session reads go through this so users see their own timer activity.
    """
    await request.app.state.outbox_worker.flush()
    return request.app.state.storage


def get_timers(request: Request) -> TimerManager:
    return request.app.state.timers
