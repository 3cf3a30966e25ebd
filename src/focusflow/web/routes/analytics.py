"""Analytics routes: stats and heatmap."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from focusflow.auth.session import current_user
from focusflow.storage.base import Storage
from focusflow.storage.models import User
from focusflow.web.dependencies import get_synced_storage
from focusflow.web.schemas import StatsResponse, to_local_naive

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    start: datetime | None = Query(None, description="Earliest session start"),
    end: datetime | None = Query(None, description="Latest session start"),
    user: User = Depends(current_user),
    storage: Storage = Depends(get_synced_storage),
) -> StatsResponse:
    """Totals, completion rate and streaks."""
    stats = await storage.get_session_stats(user.id, to_local_naive(start), to_local_naive(end))
    return StatsResponse.model_validate(stats)


@router.get("/heatmap")
async def get_heatmap(
    year: int | None = Query(None, ge=1970, le=9999, description="Defaults to the current year"),
    user: User = Depends(current_user),
    storage: Storage = Depends(get_synced_storage),
) -> dict[str, int]:
    """Completed sessions per day, keyed YYYY-MM-DD."""
    return await storage.get_heatmap_data(user.id, year or datetime.now().year)
