"""
Sync Queue Store - durable local storage for offline workout logs.

Every state change is committed before the call returns, so a crash
never loses a queued workout.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
    and_,
    delete,
    func,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from tribe_track.core.config import settings
from tribe_track.core.database import create_session_factory, utc_now
from tribe_track.core.logging import get_logger

logger = get_logger(__name__)


class LocalBase(DeclarativeBase):
    """Declarative base for the on-device database."""


class QueueStatus(str, Enum):
    """Lifecycle of a queued mutation."""
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    COMMITTED = "committed"  # never stored, committed entries are deleted
    FAILED = "failed"


class SyncQueueEntry(LocalBase):
    """A workout log waiting to reach the server."""

    __tablename__ = "sync_queue"

    # Insertion order is the replay order
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    local_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=QueueStatus.PENDING.value
    )
    attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now
    )
    last_attempted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "local_id", name="uq_sync_queue_user_local"),
    )


class SyncQueueStore:
    """
    SQLite-backed store for SyncQueueEntry rows.

    Usage:
        store = SyncQueueStore("sqlite+aiosqlite:///queue.db")
        await store.init()
        await store.add(user_id, local_id, payload)
    """

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.SYNC_DB_URL
        self.engine, self._session = create_session_factory(self.url)

    async def init(self) -> None:
        """
        Create the table and recover from an interrupted pass.

        Entries left in-flight by a crash go back to pending; the server
        de-duplicates them by local id if the first attempt landed.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(LocalBase.metadata.create_all)

        async with self._session() as session:
            result = await session.execute(
                update(SyncQueueEntry)
                .where(SyncQueueEntry.status == QueueStatus.IN_FLIGHT.value)
                .values(status=QueueStatus.PENDING.value)
            )
            await session.commit()

        if result.rowcount:
            logger.info("Recovered interrupted sync entries", count=result.rowcount)

    async def close(self) -> None:
        await self.engine.dispose()

    @staticmethod
    def _entry_clause(user_id: str, local_id: str):
        return and_(SyncQueueEntry.user_id == user_id, SyncQueueEntry.local_id == local_id)

    async def add(self, user_id: str, local_id: str, payload: Dict[str, Any]) -> SyncQueueEntry:
        """
        Append a pending entry.

        The local id is unique per user; adding it again returns the
        entry already queued under it.
        """
        async with self._session() as session:
            entry = SyncQueueEntry(
                local_id=local_id,
                user_id=user_id,
                payload=payload,
                status=QueueStatus.PENDING.value,
                attempt_count=0,
                created_at=utc_now(),
            )
            session.add(entry)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                existing = await self.get(user_id, local_id)
                if existing is None:
                    raise
                logger.info("Workout already queued", user_id=user_id, local_id=local_id)
                return existing
            await session.refresh(entry)
            return entry

    async def get(self, user_id: str, local_id: str) -> Optional[SyncQueueEntry]:
        async with self._session() as session:
            result = await session.execute(
                select(SyncQueueEntry).where(self._entry_clause(user_id, local_id))
            )
            return result.scalar_one_or_none()

    async def list_entries(self, user_id: str) -> List[SyncQueueEntry]:
        """All queued entries for a user in replay order."""
        async with self._session() as session:
            result = await session.execute(
                select(SyncQueueEntry)
                .where(SyncQueueEntry.user_id == user_id)
                .order_by(SyncQueueEntry.seq)
            )
            return list(result.scalars().all())

    async def pending_entries(self, user_id: str) -> List[SyncQueueEntry]:
        """Pending entries for a user in replay order."""
        async with self._session() as session:
            result = await session.execute(
                select(SyncQueueEntry)
                .where(
                    SyncQueueEntry.user_id == user_id,
                    SyncQueueEntry.status == QueueStatus.PENDING.value,
                )
                .order_by(SyncQueueEntry.seq)
            )
            return list(result.scalars().all())

    async def requeue_failed(self, user_id: str) -> int:
        """Move failed entries back to pending for the next pass."""
        async with self._session() as session:
            result = await session.execute(
                update(SyncQueueEntry)
                .where(
                    SyncQueueEntry.user_id == user_id,
                    SyncQueueEntry.status == QueueStatus.FAILED.value,
                )
                .values(status=QueueStatus.PENDING.value)
            )
            await session.commit()
            return result.rowcount or 0

    async def mark_in_flight(self, user_id: str, local_id: str) -> None:
        async with self._session() as session:
            await session.execute(
                update(SyncQueueEntry)
                .where(self._entry_clause(user_id, local_id))
                .values(
                    status=QueueStatus.IN_FLIGHT.value,
                    attempt_count=SyncQueueEntry.attempt_count + 1,
                    last_attempted_at=utc_now(),
                )
            )
            await session.commit()

    async def mark_failed(self, user_id: str, local_id: str, error: str) -> None:
        async with self._session() as session:
            await session.execute(
                update(SyncQueueEntry)
                .where(self._entry_clause(user_id, local_id))
                .values(status=QueueStatus.FAILED.value, last_error=error)
            )
            await session.commit()

    async def remove(self, user_id: str, local_id: str) -> bool:
        """Delete a user's entry; True if it existed."""
        async with self._session() as session:
            result = await session.execute(
                delete(SyncQueueEntry).where(self._entry_clause(user_id, local_id))
            )
            await session.commit()
            return (result.rowcount or 0) > 0

    async def count(self, user_id: str) -> int:
        """Entries still waiting for the server, whatever their state."""
        async with self._session() as session:
            result = await session.execute(
                select(func.count(SyncQueueEntry.seq)).where(SyncQueueEntry.user_id == user_id)
            )
            return int(result.scalar_one())
