"""
Stats Aggregator - builds the per-user workout stats read model.

Combines:
- Aggregate queries over raw workout logs
- The streak calculator
- The cached per-user snapshot
"""
import math
from collections import Counter
from datetime import date, timedelta
from typing import Dict, Optional

from tribe_track.core.config import settings
from tribe_track.core.logging import get_logger, log_timing
from tribe_track.schemas.track import TrackStatsResponse, WorkoutStatsResponse
from tribe_track.services.track.store import WorkoutStore
from tribe_track.services.track.streak import (
    calculate_streak,
    is_streak_active,
    start_of_week,
    weekly_progress,
)
from tribe_track.services.track.types import DateWindow, LogFilters, StatsSnapshot

logger = get_logger(__name__)


def rolling_window(today: date, days: int) -> DateWindow:
    """Window from `days` days before today through today."""
    return DateWindow(start=today - timedelta(days=days), end=today)


def round_rpe(value: Optional[float]) -> Optional[float]:
    """One decimal, half up."""
    if value is None:
        return None
    return math.floor(value * 10 + 0.5) / 10


class StatsAggregator:
    """
    Workout stats engine.

    Cold path (no snapshot): aggregate everything, persist the snapshot.
    Warm path: lifetime counters come from the snapshot; rolling windows,
    weekly progress, calories, RPE and type breakdown are always fresh.

    Persistence errors propagate; a stale snapshot is never served in
    their place.

    Usage:
        aggregator = StatsAggregator(store)
        response = await aggregator.get_stats(user_id, today)
    """

    def __init__(self, store: WorkoutStore):
        self.store = store

    async def compute_snapshot(self, user_id: str, today: date) -> StatsSnapshot:
        """
        Compute a full snapshot from raw logs.

        Args:
            user_id: Owner of the logs
            today: Anchor for streak and rolling windows

        Returns:
            StatsSnapshot
        """
        totals = await self.store.aggregate_logs(user_id)
        weekly = await self.store.aggregate_logs(
            user_id, rolling_window(today, settings.WEEKLY_WINDOW_DAYS)
        )
        monthly = await self.store.aggregate_logs(
            user_id, rolling_window(today, settings.MONTHLY_WINDOW_DAYS)
        )
        focus_area_counts = await self._focus_area_counts(user_id)
        streak = calculate_streak(await self.store.workout_dates(user_id), today)

        return StatsSnapshot(
            current_streak=streak.current_streak,
            longest_streak=streak.longest_streak,
            last_workout_date=streak.last_workout_date,
            streak_start_date=streak.streak_start_date,
            total_workouts=totals.count,
            total_minutes=totals.duration_sum,
            weekly_minutes=weekly.duration_sum,
            monthly_minutes=monthly.duration_sum,
            focus_area_counts=focus_area_counts,
        )

    async def refresh(self, user_id: str, today: date) -> StatsSnapshot:
        """Recompute and persist the snapshot after logs changed."""
        with log_timing(logger, "Workout stats refreshed", user_id=user_id) as fields:
            snapshot = await self.compute_snapshot(user_id, today)
            await self.store.upsert_stats(user_id, snapshot)
            fields["total_workouts"] = snapshot.total_workouts
            fields["current_streak"] = snapshot.current_streak
        return snapshot

    async def get_snapshot(self, user_id: str, today: date) -> StatsSnapshot:
        """
        Cached snapshot with time-dependent fields brought up to date.

        Creates the snapshot on first request.
        """
        cached = await self.store.get_stats(user_id)
        if cached is None:
            logger.info("No cached stats, computing", user_id=user_id)
            return await self.refresh(user_id, today)

        weekly = await self.store.aggregate_logs(
            user_id, rolling_window(today, settings.WEEKLY_WINDOW_DAYS)
        )
        monthly = await self.store.aggregate_logs(
            user_id, rolling_window(today, settings.MONTHLY_WINDOW_DAYS)
        )

        current_streak = cached.current_streak
        streak_start_date = cached.streak_start_date
        if not is_streak_active(cached.last_workout_date, today):
            # Two full days without a log since the snapshot was written
            current_streak = 0
            streak_start_date = None

        return StatsSnapshot(
            current_streak=current_streak,
            longest_streak=max(cached.longest_streak, current_streak),
            last_workout_date=cached.last_workout_date,
            streak_start_date=streak_start_date,
            total_workouts=cached.total_workouts,
            total_minutes=cached.total_minutes,
            weekly_minutes=weekly.duration_sum,
            monthly_minutes=monthly.duration_sum,
            focus_area_counts=dict(cached.focus_area_counts),
        )

    async def get_weekly_progress(self, user_id: str, today: date) -> list[bool]:
        """Monday-first workout flags for the week containing today."""
        monday = start_of_week(today)
        dates = await self.store.workout_dates(
            user_id, DateWindow(start=monday, end=monday + timedelta(days=6))
        )
        return weekly_progress(dates, today)

    async def get_stats(self, user_id: str, today: date) -> TrackStatsResponse:
        """
        Full stats read model for a user.

        Args:
            user_id: User from the session provider
            today: Caller's current date

        Returns:
            TrackStatsResponse with stats and weekly progress
        """
        with log_timing(logger, "Workout stats read", user_id=user_id):
            snapshot = await self.get_snapshot(user_id, today)
            totals = await self.store.aggregate_logs(user_id)
            average_rpe = await self.store.average_rpe(user_id)
            type_breakdown = await self.store.count_by_type(user_id)
            progress = await self.get_weekly_progress(user_id, today)

        stats = WorkoutStatsResponse(
            **snapshot.to_dict(),
            totalCalories=totals.calorie_sum,
            averageRpe=round_rpe(average_rpe),
            workoutTypeBreakdown=type_breakdown,
        )
        return TrackStatsResponse(stats=stats, weeklyProgress=progress)

    async def _focus_area_counts(self, user_id: str) -> Dict[str, int]:
        counts: Counter = Counter()
        for log in await self.store.query_logs(user_id, LogFilters()):
            counts.update(log.focus_areas or [])
        return dict(counts)
