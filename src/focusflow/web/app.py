"""FastAPI application for the FocusFlow API."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from focusflow import __version__
from focusflow.auth.session import install_session_middleware
from focusflow.core.config import Config, get_config
from focusflow.core.errors import FocusFlowError
from focusflow.focus.engine import TimerMode
from focusflow.focus.manager import EventFeed, TimerManager
from focusflow.focus.outbox import OutboxWorker, SessionOutbox
from focusflow.focus.runner import TimerRunner
from focusflow.storage import create_storage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    config: Config = app.state.config
    logger.info("Starting FocusFlow API...")

    storage = create_storage(config)
    await storage.connect()

    outbox = SessionOutbox()
    worker = OutboxWorker(
        outbox,
        storage,
        flush_interval=config.outbox.flush_interval_seconds,
        max_retries=config.outbox.max_retries,
    )
    timers = TimerManager(
        storage,
        outbox=outbox,
        feed=EventFeed(config.outbox.max_events_per_user),
        default_mode=TimerMode(
            work_minutes=config.timer.work_minutes,
            short_break_minutes=config.timer.short_break_minutes,
            long_break_minutes=config.timer.long_break_minutes,
            sessions_per_cycle=config.timer.sessions_per_cycle,
        ),
    )
    runner = TimerRunner(timers, interval=config.timer.tick_interval_seconds)

    app.state.storage = storage
    app.state.outbox_worker = worker
    app.state.timers = timers
    app.state.runner = runner

    await worker.start()
    if config.timer.autotick:
        await runner.start()

    yield

    # Shutdown
    await runner.stop()
    await worker.stop()
    await storage.close()
    logger.info("FocusFlow API shutdown complete")


async def handle_app_error(request: Request, exc: FocusFlowError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request data", "errors": jsonable_encoder(exc.errors())},
    )


def create_app(config: Config | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or get_config()

    app = FastAPI(
        title="FocusFlow",
        description="Focus sessions, task board and distraction log",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_session_middleware(app, config.auth)

    app.add_exception_handler(FocusFlowError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)

    from focusflow.web.routes import analytics, auth, distractions, health, sessions, tasks, timer

    app.include_router(health.router, prefix="/api")
    app.include_router(auth.router, prefix="/api")
    app.include_router(timer.router, prefix="/api")
    app.include_router(sessions.router, prefix="/api")
    app.include_router(tasks.router, prefix="/api")
    app.include_router(distractions.router, prefix="/api")
    app.include_router(analytics.router, prefix="/api")

    return app


def run_server(host: str | None = None, port: int | None = None, log_level: str = "info") -> None:
    """Run the web server."""
    import uvicorn

    config = get_config()
    host = host or config.web.host
    port = port or config.web.port

    logger.info(f"Starting API at http://{host}:{port}")

    uvicorn.run(
        "focusflow.web.app:create_app",
        host=host,
        port=port,
        factory=True,
        log_level=log_level,
    )
