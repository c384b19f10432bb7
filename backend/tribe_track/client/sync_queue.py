"""
Offline Sync Queue - replays workout logs created while offline.

Entry lifecycle:
    pending -> in_flight -> committed (entry deleted)
    in_flight -> failed -> pending (next pass)

Delivery is at-least-once; the local id travels as clientId so the
server stores each workout exactly once.
"""
import inspect
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, List, Optional

from tribe_track.client.api import TrackApiClient
from tribe_track.client.context import ClientContext
from tribe_track.client.queue_store import SyncQueueEntry, SyncQueueStore
from tribe_track.core.errors import ConflictError, NotFoundError, TransientError, ValidationError
from tribe_track.core.logging import get_logger, log_timing
from tribe_track.schemas.track import CreateWorkoutLogRequest
from tribe_track.services.track.validation import validate_workout_log

logger = get_logger(__name__)


@dataclass
class CommittedEntry:
    """A queued workout that reached the server."""
    local_id: str
    server_id: str


@dataclass
class RejectedEntry:
    """A queued workout the server refused for good."""
    local_id: str
    error_type: str
    message: str


@dataclass
class SyncResult:
    """Outcome of one or more sync passes."""
    synced: int = 0
    failed: int = 0
    rejected: int = 0
    committed: List[CommittedEntry] = field(default_factory=list)
    rejections: List[RejectedEntry] = field(default_factory=list)

    def merge(self, other: "SyncResult") -> None:
        self.synced += other.synced
        self.failed += other.failed
        self.rejected += other.rejected
        self.committed.extend(other.committed)
        self.rejections.extend(other.rejections)


SyncListener = Callable[[SyncResult], Any]


class SyncQueue:
    """
    Durable FIFO of workout logs for the signed-in user.

    At most one pass runs at a time. A sync() call that arrives during a
    pass is folded into a single follow-up pass.

    Usage:
        queue = SyncQueue(context, store, api)
        await queue.enqueue(request)
        result = await queue.sync()
    """

    def __init__(self, context: ClientContext, store: SyncQueueStore, api: TrackApiClient):
        self.context = context
        self.store = store
        self.api = api
        self._running = False
        self._rerun_requested = False
        self._listeners: List[SyncListener] = []

    @property
    def is_syncing(self) -> bool:
        return self._running

    # ========================================
    # Queue operations
    # ========================================

    async def enqueue(
        self,
        request: CreateWorkoutLogRequest,
        today: Optional[date] = None
    ) -> SyncQueueEntry:
        """
        Validate and durably queue a workout log.

        Queueing a clientId that is already waiting returns the existing
        entry, so a double submit stores the workout once.

        Args:
            request: Workout log fields; clientId is assigned if missing
            today: Current local date, defaults to date.today()

        Returns:
            The stored entry

        Raises:
            ValidationError: Invalid payload; nothing is queued
        """
        user_id = self.context.user_id
        if request.clientId:
            existing = await self.store.get(user_id, request.clientId)
            if existing is not None:
                logger.info("Workout already queued", user_id=user_id, local_id=existing.local_id)
                return existing

        validate_workout_log(request, today or date.today())

        local_id = request.clientId or str(uuid.uuid4())
        payload = request.model_copy(update={"clientId": local_id}).model_dump(exclude_none=True)

        entry = await self.store.add(self.context.user_id, local_id, payload)
        logger.info("Workout queued for sync", user_id=self.context.user_id, local_id=local_id)
        return entry

    async def abandon(self, local_id: str) -> bool:
        """Drop one of the signed-in user's entries at their request."""
        removed = await self.store.remove(self.context.user_id, local_id)
        if removed:
            logger.info("Queued workout abandoned", user_id=self.context.user_id, local_id=local_id)
        return removed

    async def pending_count(self) -> int:
        return await self.store.count(self.context.user_id)

    async def entries(self) -> List[SyncQueueEntry]:
        """Queued entries in replay order, for showing unsynced workouts."""
        return await self.store.list_entries(self.context.user_id)

    # ========================================
    # Listeners
    # ========================================

    def subscribe(self, listener: SyncListener) -> Callable[[], None]:
        """
        Call listener after a sync that committed at least one entry.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _notify(self, result: SyncResult) -> None:
        for listener in list(self._listeners):
            try:
                outcome = listener(result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.warning("Sync listener failed", error=str(e))

    # ========================================
    # Sync passes
    # ========================================

    async def sync(self) -> Optional[SyncResult]:
        """
        Drain the queue.

        Returns:
            Combined result of the passes run, or None when a pass was
            already running and this call was folded into it
        """
        if self._running:
            self._rerun_requested = True
            logger.debug("Sync already running, scheduling follow-up pass")
            return None

        self._running = True
        total = SyncResult()
        try:
            while True:
                self._rerun_requested = False
                total.merge(await self._run_pass())
                if not self._rerun_requested:
                    break
        finally:
            self._running = False

        if total.synced > 0:
            await self._notify(total)

        return total

    async def _run_pass(self) -> SyncResult:
        result = SyncResult()
        user_id = self.context.user_id

        if await self.store.count(user_id) == 0:
            return result

        with log_timing(logger, "Sync pass finished", user_id=user_id) as fields:
            await self.store.requeue_failed(user_id)
            for entry in await self.store.pending_entries(user_id):
                await self._process(entry, result)

            fields["synced"] = result.synced
            fields["failed"] = result.failed
            fields["rejected"] = result.rejected

        return result

    async def _process(self, entry: SyncQueueEntry, result: SyncResult) -> None:
        await self.store.mark_in_flight(entry.user_id, entry.local_id)

        try:
            request = CreateWorkoutLogRequest.model_validate(entry.payload)
            response = await self.api.create_log(request)
        except TransientError as e:
            await self.store.mark_failed(entry.user_id, entry.local_id, e.message)
            result.failed += 1
            logger.info("Sync entry will be retried", local_id=entry.local_id, error=e.message)
        except (ValidationError, ConflictError, NotFoundError) as e:
            await self.store.remove(entry.user_id, entry.local_id)
            result.rejected += 1
            result.rejections.append(
                RejectedEntry(local_id=entry.local_id, error_type=type(e).__name__, message=e.message)
            )
            logger.warning(
                "Sync entry rejected by server",
                local_id=entry.local_id,
                error_type=type(e).__name__,
                error=e.message
            )
        except Exception as e:
            await self.store.mark_failed(entry.user_id, entry.local_id, str(e))
            result.failed += 1
            logger.exception("Unexpected sync error", local_id=entry.local_id)
        else:
            await self.store.remove(entry.user_id, entry.local_id)
            result.synced += 1
            result.committed.append(
                CommittedEntry(local_id=entry.local_id, server_id=response.log.id)
            )
