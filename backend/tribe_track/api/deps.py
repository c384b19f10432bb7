"""
Shared FastAPI dependencies.
"""
from datetime import date
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tribe_track.core.database import get_db
from tribe_track.services.track import (
    SqlWorkoutStore,
    StatsAggregator,
    WorkoutLogService,
    WorkoutStore,
)


async def get_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    """
    User id resolved by the session gateway.

    Authentication happens upstream; this service only reads the result.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id


def get_today() -> date:
    """Current date used as the anchor for streaks and windows."""
    return date.today()


async def get_store(db: AsyncSession = Depends(get_db)) -> WorkoutStore:
    return SqlWorkoutStore(db)


async def get_aggregator(store: WorkoutStore = Depends(get_store)) -> StatsAggregator:
    return StatsAggregator(store)


async def get_log_service(store: WorkoutStore = Depends(get_store)) -> WorkoutLogService:
    return WorkoutLogService(store)
