"""Cookie session handling and the current-user dependency."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from starlette.middleware.sessions import SessionMiddleware

from focusflow.core.config import AuthConfig
from focusflow.core.errors import AuthError
from focusflow.storage.models import User

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"


def install_session_middleware(app: FastAPI, config: AuthConfig) -> None:
    """Sign the session cookie with the configured secret."""
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.session_secret,
        session_cookie=config.cookie_name,
        max_age=config.max_age_days * 24 * 60 * 60,
        same_site="lax",
        https_only=config.https_only,
    )


def login_session(request: Request, user: User) -> None:
    """Bind the request's cookie session to a user."""
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id


def logout_session(request: Request) -> None:
    request.session.clear()


async def current_user(request: Request) -> User:
    """FastAPI dependency resolving the signed-in user.

    A cookie naming a user that no longer exists is cleared.
    """
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        raise AuthError("Not authenticated")

    user = await request.app.state.storage.get_user_by_id(user_id)
    if user is None:
        logger.warning(f"Session cookie references unknown user {user_id}")
        request.session.clear()
        raise AuthError("User not found")
    return user
