"""
Workout Log database model.

Logs are append-only events; only the share link changes after creation.
"""
import uuid
from datetime import date, datetime
from enum import Enum
from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from tribe_track.core.database import Base, epoch_ms, utc_now


class WorkoutType(str, Enum):
    """Pilates workout types."""
    REFORMER = "reformer"
    MAT = "mat"
    TOWER = "tower"
    OTHER = "other"


class FocusArea(str, Enum):
    """Body areas a workout can target."""
    CORE = "core"
    GLUTES = "glutes"
    LEGS = "legs"
    ARMS = "arms"
    BACK = "back"
    POSTURE = "posture"
    MOBILITY = "mobility"


class WorkoutLog(Base):
    """Workout log stored in database."""

    __tablename__ = "workout_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True
    )
    # Id generated by an offline client; replays with the same id are no-ops
    client_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True
    )
    workout_date: Mapped[date] = mapped_column(Date, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    workout_type: Mapped[str] = mapped_column(String(20), nullable=False)
    rpe: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    focus_areas: Mapped[list] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list
    )
    calorie_estimate: Mapped[int] = mapped_column(Integer, nullable=False)
    studio_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    custom_studio_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_shared: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    shared_post_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("community_posts.id", ondelete="SET NULL"),
        nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint("user_id", "client_id", name="uq_workout_logs_user_client"),
        Index("ix_workout_logs_user_date", "user_id", "workout_date"),
    )

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "id": str(self.id),
            "clientId": self.client_id,
            "userId": self.user_id,
            "workoutDate": self.workout_date.isoformat(),
            "durationMinutes": self.duration_minutes,
            "workoutType": self.workout_type,
            "rpe": self.rpe,
            "notes": self.notes,
            "calorieEstimate": self.calorie_estimate,
            "focusAreas": list(self.focus_areas or []),
            "studioId": self.studio_id,
            "customStudioName": self.custom_studio_name,
            "sessionId": self.session_id,
            "imageUrl": self.image_url,
            "isShared": self.is_shared,
            "sharedPostId": str(self.shared_post_id) if self.shared_post_id else None,
            "createdAt": epoch_ms(self.created_at),
        }
