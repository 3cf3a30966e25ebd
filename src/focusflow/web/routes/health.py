"""Health check route."""

from __future__ import annotations

from fastapi import APIRouter, Request

from focusflow.web.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """API health check."""
    state = request.app.state
    return HealthResponse(
        status="healthy",
        storage_backend=state.config.storage.backend,
        pending_writes=state.outbox_worker.pending_count,
        active_timers=state.timers.engine_count,
    )
