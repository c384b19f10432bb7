"""
Workout Store - persistence interface for workout logs and cached stats.

The stats aggregator and the log service only talk to WorkoutStore, so
any backend (SQL, key-value, in-memory) can sit behind them.
"""
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date
from typing import Dict, Iterator, List, Optional, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from tribe_track.core.database import utc_now
from tribe_track.core.errors import TransientError, ValidationError
from tribe_track.core.logging import get_logger
from tribe_track.models.community_post import CommunityPost
from tribe_track.models.user_stats import UserWorkoutStats
from tribe_track.models.workout_log import WorkoutLog
from tribe_track.services.track.types import DateWindow, LogAggregate, LogFilters, StatsSnapshot
from tribe_track.services.track.validation import ValidatedWorkoutLog

logger = get_logger(__name__)


class WorkoutStore(ABC):
    """Abstract persistence API for workout tracking."""

    # ========================================
    # Workout logs
    # ========================================

    @abstractmethod
    async def create_workout_log(
        self,
        user_id: str,
        fields: ValidatedWorkoutLog,
        calorie_estimate: int,
        client_id: Optional[str] = None
    ) -> Tuple[WorkoutLog, bool]:
        """
        Insert a workout log.

        Must be idempotent on (user_id, client_id): a replay returns the
        stored log and False instead of inserting a duplicate.

        Returns:
            (log, created)
        """

    @abstractmethod
    async def find_by_client_id(self, user_id: str, client_id: str) -> Optional[WorkoutLog]:
        """Log previously submitted under client_id, or None."""

    @abstractmethod
    async def get_log(self, user_id: str, log_id: str) -> Optional[WorkoutLog]:
        """Get a log owned by user_id, or None."""

    @abstractmethod
    async def delete_log(self, log: WorkoutLog) -> None:
        """Delete a log."""

    @abstractmethod
    async def query_logs(self, user_id: str, filters: LogFilters) -> List[WorkoutLog]:
        """List logs newest first (workout_date, then created_at)."""

    @abstractmethod
    async def workout_dates(self, user_id: str, window: Optional[DateWindow] = None) -> List[date]:
        """Distinct workout dates, ascending."""

    @abstractmethod
    async def aggregate_logs(self, user_id: str, window: Optional[DateWindow] = None) -> LogAggregate:
        """Count, duration sum and calorie sum over a window."""

    @abstractmethod
    async def average_rpe(self, user_id: str) -> Optional[float]:
        """Mean RPE across all logs, None without logs."""

    @abstractmethod
    async def count_by_type(self, user_id: str) -> Dict[str, int]:
        """Number of logs per workout type."""

    # ========================================
    # Cached stats
    # ========================================

    @abstractmethod
    async def get_stats(self, user_id: str) -> Optional[StatsSnapshot]:
        """Cached snapshot, or None if never computed."""

    @abstractmethod
    async def upsert_stats(self, user_id: str, snapshot: StatsSnapshot) -> None:
        """Write the snapshot; the last writer wins."""

    # ========================================
    # Community sharing
    # ========================================

    @abstractmethod
    async def attach_post(self, log: WorkoutLog, caption: str) -> CommunityPost:
        """Create a recap post and link it to the log."""

    @abstractmethod
    async def detach_post(self, log: WorkoutLog) -> None:
        """Delete the linked post and clear the link."""

    @abstractmethod
    async def demote_post(self, log: WorkoutLog) -> None:
        """Turn the linked post into a general post so it outlives the log."""


_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _parse_uuid(value: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        return None


class SqlWorkoutStore(WorkoutStore):
    """
    SQLAlchemy-backed workout store.

    Connection level failures surface as TransientError so callers can
    report them as retryable.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except (OperationalError, InterfaceError, PoolTimeoutError) as e:
            logger.error("Database unavailable", operation=operation, error=str(e))
            raise TransientError("Workout data is temporarily unavailable") from e

    def _window_clauses(self, user_id: str, window: Optional[DateWindow]) -> list:
        clauses = [WorkoutLog.user_id == user_id]
        if window is not None:
            if window.start is not None:
                clauses.append(WorkoutLog.workout_date >= window.start)
            if window.end is not None:
                clauses.append(WorkoutLog.workout_date <= window.end)
        return clauses

    async def _get_by_client_id(self, user_id: str, client_id: str) -> Optional[WorkoutLog]:
        result = await self.db.execute(
            select(WorkoutLog).where(
                WorkoutLog.user_id == user_id,
                WorkoutLog.client_id == client_id,
            )
        )
        return result.scalar_one_or_none()

    async def find_by_client_id(self, user_id: str, client_id: str) -> Optional[WorkoutLog]:
        with self._translate_errors("find_by_client_id"):
            return await self._get_by_client_id(user_id, client_id)

    async def create_workout_log(
        self,
        user_id: str,
        fields: ValidatedWorkoutLog,
        calorie_estimate: int,
        client_id: Optional[str] = None
    ) -> Tuple[WorkoutLog, bool]:
        with self._translate_errors("create_workout_log"):
            if client_id:
                existing = await self._get_by_client_id(user_id, client_id)
                if existing:
                    logger.info(
                        "Duplicate workout log submission",
                        user_id=user_id,
                        client_id=client_id,
                        log_id=str(existing.id)
                    )
                    return existing, False

            log = WorkoutLog(
                user_id=user_id,
                client_id=client_id,
                workout_date=fields.workout_date,
                duration_minutes=fields.duration_minutes,
                workout_type=fields.workout_type,
                rpe=fields.rpe,
                notes=fields.notes,
                focus_areas=list(fields.focus_areas),
                calorie_estimate=calorie_estimate,
                studio_id=fields.studio_id,
                custom_studio_name=fields.custom_studio_name,
                session_id=fields.session_id,
                image_url=fields.image_url,
                is_shared=False,
            )
            self.db.add(log)
            try:
                await self.db.flush()
            except IntegrityError:
                # A concurrent replay with the same client_id won the insert
                await self.db.rollback()
                if client_id:
                    existing = await self._get_by_client_id(user_id, client_id)
                    if existing:
                        return existing, False
                raise
            await self.db.refresh(log)

        return log, True

    async def get_log(self, user_id: str, log_id: str) -> Optional[WorkoutLog]:
        log_uuid = _parse_uuid(log_id)
        if log_uuid is None:
            logger.warning("Invalid log_id format", log_id=log_id)
            return None

        with self._translate_errors("get_log"):
            result = await self.db.execute(
                select(WorkoutLog).where(
                    WorkoutLog.id == log_uuid,
                    WorkoutLog.user_id == user_id,
                )
            )
            return result.scalar_one_or_none()

    async def delete_log(self, log: WorkoutLog) -> None:
        with self._translate_errors("delete_log"):
            await self.db.delete(log)
            await self.db.flush()

    async def query_logs(self, user_id: str, filters: LogFilters) -> List[WorkoutLog]:
        clauses = self._window_clauses(user_id, filters.window)

        with self._translate_errors("query_logs"):
            if filters.cursor:
                anchor = await self.get_log(user_id, filters.cursor)
                if anchor is None:
                    raise ValidationError("Invalid cursor", field="cursor")
                clauses.append(
                    or_(
                        WorkoutLog.workout_date < anchor.workout_date,
                        and_(
                            WorkoutLog.workout_date == anchor.workout_date,
                            WorkoutLog.created_at < anchor.created_at,
                        ),
                        and_(
                            WorkoutLog.workout_date == anchor.workout_date,
                            WorkoutLog.created_at == anchor.created_at,
                            WorkoutLog.id < anchor.id,
                        ),
                    )
                )

            query = (
                select(WorkoutLog)
                .where(*clauses)
                .order_by(
                    WorkoutLog.workout_date.desc(),
                    WorkoutLog.created_at.desc(),
                    WorkoutLog.id.desc(),
                )
            )
            if filters.limit is not None:
                query = query.limit(filters.limit)

            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def workout_dates(self, user_id: str, window: Optional[DateWindow] = None) -> List[date]:
        with self._translate_errors("workout_dates"):
            result = await self.db.execute(
                select(WorkoutLog.workout_date)
                .where(*self._window_clauses(user_id, window))
                .distinct()
                .order_by(WorkoutLog.workout_date)
            )
            return list(result.scalars().all())

    async def aggregate_logs(self, user_id: str, window: Optional[DateWindow] = None) -> LogAggregate:
        with self._translate_errors("aggregate_logs"):
            result = await self.db.execute(
                select(
                    func.count(WorkoutLog.id),
                    func.coalesce(func.sum(WorkoutLog.duration_minutes), 0),
                    func.coalesce(func.sum(WorkoutLog.calorie_estimate), 0),
                ).where(*self._window_clauses(user_id, window))
            )
            count, duration_sum, calorie_sum = result.one()

        return LogAggregate(
            count=int(count),
            duration_sum=int(duration_sum),
            calorie_sum=int(calorie_sum),
        )

    async def average_rpe(self, user_id: str) -> Optional[float]:
        with self._translate_errors("average_rpe"):
            result = await self.db.execute(
                select(func.avg(WorkoutLog.rpe)).where(WorkoutLog.user_id == user_id)
            )
            value = result.scalar_one_or_none()
        return float(value) if value is not None else None

    async def count_by_type(self, user_id: str) -> Dict[str, int]:
        with self._translate_errors("count_by_type"):
            result = await self.db.execute(
                select(WorkoutLog.workout_type, func.count(WorkoutLog.id))
                .where(WorkoutLog.user_id == user_id)
                .group_by(WorkoutLog.workout_type)
            )
            return {workout_type: int(count) for workout_type, count in result.all()}

    async def get_stats(self, user_id: str) -> Optional[StatsSnapshot]:
        with self._translate_errors("get_stats"):
            # Upserts bypass the identity map, so always reload the row
            result = await self.db.execute(
                select(UserWorkoutStats)
                .where(UserWorkoutStats.user_id == user_id)
                .execution_options(populate_existing=True)
            )
            row = result.scalar_one_or_none()

        if row is None:
            return None

        return StatsSnapshot(
            current_streak=row.current_streak,
            longest_streak=row.longest_streak,
            last_workout_date=row.last_workout_date,
            streak_start_date=row.streak_start_date,
            total_workouts=row.total_workouts,
            total_minutes=row.total_minutes,
            weekly_minutes=row.weekly_minutes,
            monthly_minutes=row.monthly_minutes,
            focus_area_counts=dict(row.focus_area_counts or {}),
        )

    async def upsert_stats(self, user_id: str, snapshot: StatsSnapshot) -> None:
        values = {
            "current_streak": snapshot.current_streak,
            "longest_streak": snapshot.longest_streak,
            "last_workout_date": snapshot.last_workout_date,
            "streak_start_date": snapshot.streak_start_date,
            "total_workouts": snapshot.total_workouts,
            "total_minutes": snapshot.total_minutes,
            "weekly_minutes": snapshot.weekly_minutes,
            "monthly_minutes": snapshot.monthly_minutes,
            "focus_area_counts": dict(snapshot.focus_area_counts),
            "computed_at": utc_now(),
        }

        with self._translate_errors("upsert_stats"):
            dialect = self.db.get_bind().dialect.name
            insert = _UPSERT_INSERTS.get(dialect)
            if insert is None:
                raise RuntimeError(f"Stats upsert is not supported on {dialect}")

            # Insert or update on conflict, so concurrent writers never collide
            stmt = insert(UserWorkoutStats).values(user_id=user_id, **values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[UserWorkoutStats.user_id],
                set_=values
            )

            await self.db.execute(stmt)
            await self.db.flush()

        logger.debug("Saved workout stats", user_id=user_id)

    async def attach_post(self, log: WorkoutLog, caption: str) -> CommunityPost:
        with self._translate_errors("attach_post"):
            post = CommunityPost(
                user_id=log.user_id,
                caption=caption,
                post_type="workout_recap",
                status="approved",
                media_url=log.image_url,
            )
            self.db.add(post)
            await self.db.flush()
            await self.db.refresh(post)

            log.is_shared = True
            log.shared_post_id = post.id
            await self.db.flush()

        return post

    async def detach_post(self, log: WorkoutLog) -> None:
        with self._translate_errors("detach_post"):
            post_id = log.shared_post_id
            log.is_shared = False
            log.shared_post_id = None
            await self.db.flush()

            if post_id is not None:
                post = await self.db.get(CommunityPost, post_id)
                if post is not None:
                    await self.db.delete(post)
                    await self.db.flush()

    async def demote_post(self, log: WorkoutLog) -> None:
        if log.shared_post_id is None:
            return

        with self._translate_errors("demote_post"):
            post = await self.db.get(CommunityPost, log.shared_post_id)
            if post is not None:
                post.post_type = "general"
                await self.db.flush()
