"""
Streak Calculator - consecutive workout days from a set of log dates.

Rules:
- A streak day is a calendar day with at least one logged workout
- Multiple logs on the same day count once
- The current run stays active while its last day is today or yesterday
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class StreakResult:
    """Streak summary for a user."""
    current_streak: int = 0
    longest_streak: int = 0
    last_workout_date: Optional[date] = None
    streak_start_date: Optional[date] = None


def is_streak_active(last_date: Optional[date], today: date) -> bool:
    """A run ending today or yesterday is still alive."""
    if last_date is None:
        return False
    return timedelta(0) <= today - last_date <= timedelta(days=1)


def calculate_streak(workout_dates: Iterable[date], today: date) -> StreakResult:
    """
    Compute current and longest streaks.

    Args:
        workout_dates: Dates with at least one workout, any order, duplicates allowed
        today: Anchor date for deciding whether the latest run is current

    Returns:
        StreakResult
    """
    dates = sorted(set(workout_dates))
    if not dates:
        return StreakResult()

    longest = 1
    run_start = dates[0]
    run_length = 1

    for prev, curr in zip(dates, dates[1:]):
        if curr - prev == timedelta(days=1):
            run_length += 1
        else:
            run_start = curr
            run_length = 1
        longest = max(longest, run_length)

    # After the walk, run_start/run_length describe the latest run
    last_date = dates[-1]
    if is_streak_active(last_date, today):
        return StreakResult(
            current_streak=run_length,
            longest_streak=longest,
            last_workout_date=last_date,
            streak_start_date=run_start,
        )

    return StreakResult(
        current_streak=0,
        longest_streak=longest,
        last_workout_date=last_date,
        streak_start_date=None,
    )


def start_of_week(today: date) -> date:
    """Monday of the week containing today."""
    return today - timedelta(days=today.weekday())


def weekly_progress(workout_dates: Iterable[date], today: date) -> List[bool]:
    """
    Monday-first flags for the current week.

    Entry i is True when a workout falls on that weekday of the week
    containing today.
    """
    monday = start_of_week(today)
    sunday = monday + timedelta(days=6)

    progress = [False] * 7
    for workout_date in workout_dates:
        if monday <= workout_date <= sunday:
            progress[workout_date.weekday()] = True
    return progress
