"""
Value types shared by the workout stores and the stats aggregator.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class DateWindow:
    """Inclusive workout_date range; an open end is unbounded."""
    start: Optional[date] = None
    end: Optional[date] = None

    def contains(self, value: date) -> bool:
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True


@dataclass(frozen=True)
class LogFilters:
    """Filters for listing logs, newest first."""
    window: DateWindow = field(default_factory=DateWindow)
    cursor: Optional[str] = None  # id of the last log of the previous page
    limit: Optional[int] = None


@dataclass(frozen=True)
class LogAggregate:
    """Sums over a set of logs."""
    count: int = 0
    duration_sum: int = 0
    calorie_sum: int = 0


@dataclass
class StatsSnapshot:
    """
    Cached per-user statistics.

    Lifetime totals are safe to serve from cache; the weekly and monthly
    minute windows are refreshed on every read.
    """
    current_streak: int = 0
    longest_streak: int = 0
    last_workout_date: Optional[date] = None
    streak_start_date: Optional[date] = None
    total_workouts: int = 0
    total_minutes: int = 0
    weekly_minutes: int = 0
    monthly_minutes: int = 0
    focus_area_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase read model fields."""
        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "lastWorkoutDate": self.last_workout_date.isoformat() if self.last_workout_date else None,
            "streakStartDate": self.streak_start_date.isoformat() if self.streak_start_date else None,
            "totalWorkouts": self.total_workouts,
            "totalMinutes": self.total_minutes,
            "weeklyMinutes": self.weekly_minutes,
            "monthlyMinutes": self.monthly_minutes,
            "focusAreaCounts": dict(self.focus_area_counts),
        }
