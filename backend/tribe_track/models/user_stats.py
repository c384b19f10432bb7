"""
User Workout Stats database model.

Derived cache, one row per user. Every value can be rebuilt from
workout_logs at any time, so concurrent writers may overwrite each other.
"""
from datetime import date, datetime
from sqlalchemy import JSON, Date, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from tribe_track.core.database import Base, utc_now


class UserWorkoutStats(Base):
    """Cached workout statistics for a user."""

    __tablename__ = "user_workout_stats"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Streak
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_workout_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    streak_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Totals
    total_workouts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    weekly_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    monthly_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    focus_area_counts: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict
    )
    computed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now
    )
