"""Storage layer for users, sessions, tasks and distractions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from focusflow.storage.base import Storage
from focusflow.storage.memory import MemoryStorage
from focusflow.storage.sqlite import SQLiteStorage

if TYPE_CHECKING:
    from focusflow.core.config import Config

__all__ = ["Storage", "MemoryStorage", "SQLiteStorage", "create_storage"]


def create_storage(config: Config) -> Storage:
    """Build the backend selected by ``storage.backend``."""
    if config.storage.backend == "memory":
        return MemoryStorage()
    return SQLiteStorage(config.db_path)
