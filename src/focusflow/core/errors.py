"""Exception types shared by the storage, auth and web layers."""

from __future__ import annotations


class FocusFlowError(Exception):
    """Base class for application errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FocusFlowError):
    """Malformed mode configuration, record shape or request data."""

    status_code = 400


class NotFoundError(FocusFlowError):
    """A user, session or task is absent (or not owned by the caller)."""

    status_code = 404


class AuthError(FocusFlowError):
    """Missing or invalid credential or session cookie."""

    status_code = 401
