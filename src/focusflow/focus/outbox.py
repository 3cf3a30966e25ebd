"""Outbound persistence commands queued by timer engines."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Union

from focusflow.storage.models import FocusSession

if TYPE_CHECKING:
    from focusflow.storage.base import Storage

logger = logging.getLogger(__name__)


@dataclass
class CreateSession:
    """Persist a newly started interval."""

    session_id: str
    user_id: str
    session_type: str
    duration_minutes: int
    start_time: datetime
    task_id: str | None = None
    attempts: int = field(default=0, compare=False)


@dataclass
class UpdateSession:
    """Persist the outcome of a finished or abandoned interval."""

    session_id: str
    completed: bool
    end_time: datetime
    attempts: int = field(default=0, compare=False)


PersistenceCommand = Union[CreateSession, UpdateSession]


class SessionOutbox:
    """FIFO queue of persistence commands.

    Engines append synchronously; an ``OutboxWorker`` drains the queue.
    Order is preserved so an update never reaches storage before the
    create it refers to.
    """

    def __init__(self) -> None:
        self._commands: list[PersistenceCommand] = []
        self._lock = threading.Lock()

    def put(self, command: PersistenceCommand) -> None:
        with self._lock:
            self._commands.append(command)
        logger.debug(f"Queued {type(command).__name__} for {command.session_id}")

    def take_all(self) -> list[PersistenceCommand]:
        """Remove and return every pending command."""
        with self._lock:
            commands = self._commands.copy()
            self._commands.clear()
        return commands

    def requeue(self, commands: list[PersistenceCommand]) -> None:
        """Put commands back at the front of the queue."""
        with self._lock:
            self._commands = commands + self._commands

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._commands)

    def __len__(self) -> int:
        return self.pending_count


class OutboxWorker:
    """Drains a ``SessionOutbox`` into storage.

    Writes are best-effort: a failing command is retried on later flushes
    up to ``max_retries`` attempts, then dropped with an error log. Once a
    command fails, the rest of that flush is deferred so ordering holds.
    """

    DEFAULT_FLUSH_INTERVAL = 1.0  # seconds
    DEFAULT_MAX_RETRIES = 3

    def __init__(
        self,
        outbox: SessionOutbox,
        storage: Storage,
        flush_interval: float = DEFAULT_FLUSH_INTERVAL,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ):
        self._outbox = outbox
        self._storage = storage
        self._flush_interval = flush_interval
        self._max_retries = max_retries

        self._flush_task: asyncio.Task | None = None
        self._flush_lock = asyncio.Lock()
        self._running = False

    async def flush(self) -> int:
        """Write pending commands to storage.

        Returns the number of commands applied.
        """
        async with self._flush_lock:
            commands = self._outbox.take_all()
            applied = 0

            for index, command in enumerate(commands):
                try:
                    await self._apply(command)
                    applied += 1
                except Exception as e:
                    command.attempts += 1
                    remaining = commands[index + 1:]
                    if command.attempts >= self._max_retries:
                        logger.error(
                            f"Dropping {type(command).__name__} for {command.session_id} "
                            f"after {command.attempts} attempts: {e}"
                        )
                    else:
                        logger.error(f"Failed to persist {command.session_id}, will retry: {e}")
                        remaining = [command] + remaining
                    self._outbox.requeue(remaining)
                    break

            if applied:
                logger.debug(f"Flushed {applied} persistence commands")
            return applied

    async def _apply(self, command: PersistenceCommand) -> None:
        if isinstance(command, CreateSession):
            await self._storage.create_session(FocusSession(
                id=command.session_id,
                user_id=command.user_id,
                type=command.session_type,
                duration=command.duration_minutes,
                start_time=command.start_time,
                task_id=command.task_id,
            ))
            return

        session = await self._storage.update_session(
            command.session_id,
            completed=command.completed,
            end_time=command.end_time,
        )
        if session is None:
            logger.warning(f"Session {command.session_id} not found, update skipped")
            return

        if session.completed and session.type == "work" and session.task_id:
            task = await self._storage.increment_task_sessions(session.task_id)
            if task is None:
                logger.warning(f"Task {session.task_id} not found for session {session.id}")

    async def start(self) -> None:
        """Start the periodic flush task."""
        if self._running:
            return

        self._running = True
        self._flush_task = asyncio.create_task(self._periodic_flush())
        logger.info(f"Outbox worker started (flush every {self._flush_interval}s)")

    async def stop(self) -> None:
        """Stop the periodic flush task and flush remaining commands."""
        if not self._running:
            return

        self._running = False

        if self._flush_task:
            self._flush_task.cancel()
            try:
                await self._flush_task
            except asyncio.CancelledError:
                pass
            self._flush_task = None

        await self.flush()
        logger.info("Outbox worker stopped")

    async def _periodic_flush(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._flush_interval)
                if self._running:
                    await self.flush()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in periodic flush: {e}")

    @property
    def pending_count(self) -> int:
        return self._outbox.pending_count

    @property
    def is_running(self) -> bool:
        return self._running
