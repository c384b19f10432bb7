"""
Workout Log Service - create, list, delete and share workout logs.

Every change to the set of logs refreshes the user's cached stats.
"""
from datetime import date
from typing import Optional, Tuple

from tribe_track.core.config import settings
from tribe_track.core.errors import ConflictError, NotFoundError, ValidationError
from tribe_track.core.logging import get_logger
from tribe_track.models.community_post import CommunityPost
from tribe_track.models.workout_log import WorkoutLog
from tribe_track.schemas.track import CreateWorkoutLogRequest
from tribe_track.services.track.aggregator import StatsAggregator
from tribe_track.services.track.calories import estimate_calories
from tribe_track.services.track.store import WorkoutStore
from tribe_track.services.track.types import DateWindow, LogFilters
from tribe_track.services.track.validation import validate_workout_log

logger = get_logger(__name__)


def _parse_filter_date(value: Optional[str], field: str) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValidationError(f"Invalid date: {value}", field=field)


class WorkoutLogService:
    """
    Workout log operations for a single store.

    Usage:
        service = WorkoutLogService(store)
        log, created = await service.create_log(user_id, request, today)
    """

    def __init__(self, store: WorkoutStore, aggregator: Optional[StatsAggregator] = None):
        self.store = store
        self.aggregator = aggregator or StatsAggregator(store)

    async def create_log(
        self,
        user_id: str,
        request: CreateWorkoutLogRequest,
        today: date
    ) -> Tuple[WorkoutLog, bool]:
        """
        Validate and store a workout log.

        A request whose clientId was already stored returns the existing
        log and leaves stats untouched, even once its date has left the
        backfill window. A missing or zero calorieEstimate is replaced by
        the MET estimate.

        Returns:
            (log, created)

        Raises:
            ValidationError: Invalid payload
        """
        if request.clientId:
            existing = await self.store.find_by_client_id(user_id, request.clientId)
            if existing is not None:
                logger.info(
                    "Replayed workout log",
                    user_id=user_id,
                    client_id=request.clientId,
                    log_id=str(existing.id)
                )
                return existing, False

        fields = validate_workout_log(request, today)
        calories = fields.calorie_estimate or estimate_calories(
            fields.duration_minutes,
            fields.workout_type,
            fields.rpe,
        )

        log, created = await self.store.create_workout_log(
            user_id,
            fields,
            calories,
            client_id=request.clientId,
        )

        if created:
            logger.info(
                "Workout log created",
                user_id=user_id,
                log_id=str(log.id),
                workout_type=log.workout_type,
                duration_minutes=log.duration_minutes
            )
            await self.aggregator.refresh(user_id, today)

        return log, created

    async def list_logs(
        self,
        user_id: str,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> Tuple[list[WorkoutLog], Optional[str]]:
        """
        One page of logs, newest first.

        Returns:
            (logs, next_cursor); next_cursor is None on the last page
        """
        page_size = limit or settings.LOGS_PAGE_SIZE
        page_size = max(1, min(page_size, settings.LOGS_MAX_PAGE_SIZE))

        window = DateWindow(
            start=_parse_filter_date(start_date, "startDate"),
            end=_parse_filter_date(end_date, "endDate"),
        )
        # Fetch one extra row to learn whether another page exists
        logs = await self.store.query_logs(
            user_id,
            LogFilters(window=window, cursor=cursor, limit=page_size + 1),
        )

        if len(logs) > page_size:
            logs = logs[:page_size]
            return logs, str(logs[-1].id)
        return logs, None

    async def get_log(self, user_id: str, log_id: str) -> WorkoutLog:
        """Get a log owned by the user; other users' logs are not found."""
        log = await self.store.get_log(user_id, log_id)
        if log is None:
            raise NotFoundError("Workout log not found")
        return log

    async def delete_log(self, user_id: str, log_id: str, today: date) -> None:
        """Delete a log; a linked post survives as a general post."""
        log = await self.get_log(user_id, log_id)

        if log.shared_post_id is not None:
            await self.store.demote_post(log)

        await self.store.delete_log(log)
        logger.info("Workout log deleted", user_id=user_id, log_id=log_id)

        await self.aggregator.refresh(user_id, today)

    async def share_log(
        self,
        user_id: str,
        log_id: str,
        caption: Optional[str] = None
    ) -> CommunityPost:
        """
        Share a log to the community as a workout recap.

        Raises:
            NotFoundError: Unknown log
            ConflictError: Log is already shared
        """
        log = await self.get_log(user_id, log_id)

        if log.is_shared and log.shared_post_id is not None:
            raise ConflictError("This workout has already been shared")

        if not caption:
            caption = await self._default_caption(log)

        post = await self.store.attach_post(log, caption)
        logger.info("Workout log shared", user_id=user_id, log_id=log_id, post_id=str(post.id))
        return post

    async def unshare_log(self, user_id: str, log_id: str) -> None:
        """
        Remove a log's community post.

        Raises:
            NotFoundError: Unknown log
            ConflictError: Log was never shared
        """
        log = await self.get_log(user_id, log_id)

        if not log.is_shared or log.shared_post_id is None:
            raise ConflictError("This workout has not been shared")

        await self.store.detach_post(log)
        logger.info("Workout log unshared", user_id=user_id, log_id=log_id)

    async def _default_caption(self, log: WorkoutLog) -> str:
        caption = f"{log.duration_minutes}-min {log.workout_type} workout"
        if log.custom_studio_name:
            caption += f" at {log.custom_studio_name}"

        stats = await self.store.get_stats(log.user_id)
        if stats is not None and stats.current_streak > 1:
            caption += f"\n\n{stats.current_streak}-day streak"

        return caption
