"""Core configuration and error types."""

from focusflow.core.config import Config, get_config
from focusflow.core.errors import AuthError, FocusFlowError, NotFoundError, ValidationError

__all__ = [
    "Config",
    "get_config",
    "FocusFlowError",
    "ValidationError",
    "NotFoundError",
    "AuthError",
]
