"""
Community Post database model.

Only the fields a shared workout recap needs; feed, moderation and
media handling live outside this service.
"""
import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tribe_track.core.database import Base, epoch_ms, utc_now


class CommunityPost(Base):
    """Post a workout log can be shared to."""

    __tablename__ = "community_posts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    caption: Mapped[str] = mapped_column(Text, nullable=False)
    post_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="workout_recap"
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="approved")
    media_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now
    )

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "id": str(self.id),
            "userId": self.user_id,
            "caption": self.caption,
            "postType": self.post_type,
            "status": self.status,
            "mediaUrl": self.media_url,
            "createdAt": epoch_ms(self.created_at),
        }
