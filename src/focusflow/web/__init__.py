"""HTTP API for FocusFlow."""

from focusflow.web.app import create_app, run_server

__all__ = ["create_app", "run_server"]
