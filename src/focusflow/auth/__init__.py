"""Password hashing and cookie session authentication."""

from focusflow.auth.passwords import hash_password, verify_password
from focusflow.auth.session import current_user, login_session, logout_session

__all__ = ["hash_password", "verify_password", "current_user", "login_session", "logout_session"]
