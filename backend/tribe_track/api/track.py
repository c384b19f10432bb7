"""
Workout Tracking API endpoints.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from tribe_track.api.deps import get_aggregator, get_log_service, get_today, get_user_id
from tribe_track.core.logging import get_logger
from tribe_track.schemas.track import (
    CreateWorkoutLogRequest,
    CreateWorkoutLogResponse,
    SharePostResponse,
    ShareWorkoutLogRequest,
    TrackStatsResponse,
    WorkoutLogListResponse,
    WorkoutLogResponse,
)
from tribe_track.services.track import StatsAggregator, WorkoutLogService

logger = get_logger(__name__)
router = APIRouter()


# ========================================
# Stats
# ========================================

@router.get("/stats", response_model=TrackStatsResponse)
async def get_stats(
    user_id: str = Depends(get_user_id),
    today: date = Depends(get_today),
    aggregator: StatsAggregator = Depends(get_aggregator),
):
    """
    Get the user's workout stats and this week's progress.
    """
    return await aggregator.get_stats(user_id, today)


# ========================================
# Workout Logs
# ========================================

@router.get("/logs", response_model=WorkoutLogListResponse)
async def list_logs(
    cursor: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    user_id: str = Depends(get_user_id),
    service: WorkoutLogService = Depends(get_log_service),
):
    """
    List the user's workout logs, newest first.
    """
    logs, next_cursor = await service.list_logs(
        user_id,
        cursor=cursor,
        limit=limit,
        start_date=startDate,
        end_date=endDate,
    )

    return WorkoutLogListResponse(
        logs=[WorkoutLogResponse(**log.to_dict()) for log in logs],
        nextCursor=next_cursor,
        hasMore=next_cursor is not None,
    )


@router.post("/logs", response_model=CreateWorkoutLogResponse)
async def create_log(
    request: CreateWorkoutLogRequest,
    user_id: str = Depends(get_user_id),
    today: date = Depends(get_today),
    service: WorkoutLogService = Depends(get_log_service),
):
    """
    Create a workout log.

    Resubmitting a known clientId returns the stored log with created=false.
    """
    logger.info("Creating workout log", user_id=user_id, client_id=request.clientId)

    log, created = await service.create_log(user_id, request, today)

    return CreateWorkoutLogResponse(
        created=created,
        log=WorkoutLogResponse(**log.to_dict()),
    )


@router.get("/logs/{log_id}", response_model=WorkoutLogResponse)
async def get_log(
    log_id: str,
    user_id: str = Depends(get_user_id),
    service: WorkoutLogService = Depends(get_log_service),
):
    """
    Get a specific workout log by ID.
    """
    log = await service.get_log(user_id, log_id)
    return WorkoutLogResponse(**log.to_dict())


@router.delete("/logs/{log_id}")
async def delete_log(
    log_id: str,
    user_id: str = Depends(get_user_id),
    today: date = Depends(get_today),
    service: WorkoutLogService = Depends(get_log_service),
):
    """
    Delete a workout log.
    """
    await service.delete_log(user_id, log_id, today)
    return {"success": True, "message": "Workout log deleted"}


# ========================================
# Community Sharing
# ========================================

@router.post("/logs/{log_id}/share", response_model=SharePostResponse)
async def share_log(
    log_id: str,
    request: Optional[ShareWorkoutLogRequest] = None,
    user_id: str = Depends(get_user_id),
    service: WorkoutLogService = Depends(get_log_service),
):
    """
    Share a workout log to the community.
    """
    caption = request.caption if request else None
    post = await service.share_log(user_id, log_id, caption)

    return SharePostResponse(
        post=post.to_dict(),
        message="Workout shared to Community!",
    )


@router.delete("/logs/{log_id}/share")
async def unshare_log(
    log_id: str,
    user_id: str = Depends(get_user_id),
    service: WorkoutLogService = Depends(get_log_service),
):
    """
    Remove a workout log from the community.
    """
    await service.unshare_log(user_id, log_id)
    return {"success": True, "message": "Workout unshared from Community"}
