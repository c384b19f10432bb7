"""
Workout tracking module - streaks, stats and workout logs.

This module provides:
- Calorie estimation and payload validation
- Streak and weekly progress calculation
- Workout store interface with SQL and in-memory backends
- Stats aggregator and workout log service
"""
from tribe_track.services.track.aggregator import StatsAggregator
from tribe_track.services.track.calories import estimate_calories, rpe_label
from tribe_track.services.track.logs import WorkoutLogService
from tribe_track.services.track.memory import InMemoryWorkoutStore
from tribe_track.services.track.store import SqlWorkoutStore, WorkoutStore
from tribe_track.services.track.streak import StreakResult, calculate_streak, weekly_progress
from tribe_track.services.track.types import DateWindow, LogAggregate, LogFilters, StatsSnapshot
from tribe_track.services.track.validation import ValidatedWorkoutLog, validate_workout_log

__all__ = [
    # Pure functions
    "estimate_calories",
    "rpe_label",
    "calculate_streak",
    "weekly_progress",
    "validate_workout_log",
    # Data structures
    "StreakResult",
    "DateWindow",
    "LogAggregate",
    "LogFilters",
    "StatsSnapshot",
    "ValidatedWorkoutLog",
    # Stores
    "WorkoutStore",
    "SqlWorkoutStore",
    "InMemoryWorkoutStore",
    # Services
    "StatsAggregator",
    "WorkoutLogService",
]
