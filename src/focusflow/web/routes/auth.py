"""Registration, login and user settings routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from focusflow.auth.passwords import hash_password_async, verify_password_async
from focusflow.auth.session import current_user, login_session, logout_session
from focusflow.core.config import Config
from focusflow.core.errors import AuthError, NotFoundError, ValidationError
from focusflow.focus.manager import TimerManager, mode_from_settings
from focusflow.storage.base import Storage
from focusflow.storage.models import TimerSettings, User
from focusflow.web.dependencies import get_config_dep, get_storage, get_timers
from focusflow.web.schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse)
async def register(
    body: RegisterRequest,
    request: Request,
    storage: Storage = Depends(get_storage),
    config: Config = Depends(get_config_dep),
) -> AuthResponse:
    """Create an account and sign it in."""
    if await storage.get_user_by_email(body.email):
        raise ValidationError("User already exists")

    password_hash = await hash_password_async(body.password, config.auth.bcrypt_rounds)
    user = await storage.create_user(
        email=body.email,
        password_hash=password_hash,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    login_session(request, user)
    logger.info(f"Registered user {user.id}")
    return AuthResponse(user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    request: Request,
    storage: Storage = Depends(get_storage),
) -> AuthResponse:
    user = await storage.get_user_by_email(body.email)
    if user is None or not await verify_password_async(body.password, user.password_hash):
        raise AuthError("Invalid credentials")

    login_session(request, user)
    return AuthResponse(user=UserResponse.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
async def logout(request: Request) -> MessageResponse:
    logout_session(request)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=AuthResponse)
async def me(user: User = Depends(current_user)) -> AuthResponse:
    return AuthResponse(user=UserResponse.model_validate(user))


@router.get("/settings", response_model=TimerSettings)
async def get_settings(user: User = Depends(current_user)) -> TimerSettings:
    return user.timer_settings


@router.put("/settings", response_model=TimerSettings)
async def update_settings(
    body: TimerSettings,
    user: User = Depends(current_user),
    storage: Storage = Depends(get_storage),
    timers: TimerManager = Depends(get_timers),
) -> TimerSettings:
    """Save timer preferences. A changed mode resets the user's timer."""
    updated = await storage.update_user_settings(user.id, body.model_dump())
    if updated is None:
        raise NotFoundError("User not found")

    engine = await timers.get_engine(user.id)
    mode = mode_from_settings(body)
    if mode != engine.mode:
        engine.switch_mode(mode)

    return updated.timer_settings
