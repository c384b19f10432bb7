"""
Client-side cache of the stats read model.

Invalidated when the sync queue commits workouts so the next read
picks up the server's recomputed numbers.
"""
from datetime import datetime
from typing import Optional

from tribe_track.client.api import TrackApiClient
from tribe_track.client.sync_queue import SyncQueue, SyncResult
from tribe_track.core.database import utc_now
from tribe_track.core.logging import get_logger
from tribe_track.schemas.track import TrackStatsResponse

logger = get_logger(__name__)


class StatsCache:
    """
    Holds the last stats response fetched from the server.

    Usage:
        cache = StatsCache(api)
        unsubscribe = cache.attach(queue)
        stats = await cache.get()
    """

    def __init__(self, api: TrackApiClient):
        self.api = api
        self._value: Optional[TrackStatsResponse] = None
        self._fetched_at: Optional[datetime] = None
        self._stale = True
        # Bumped on every invalidate so a fetch started earlier cannot clear it
        self._generation = 0

    @property
    def is_stale(self) -> bool:
        return self._stale

    @property
    def value(self) -> Optional[TrackStatsResponse]:
        """Last fetched value, possibly stale; None before the first fetch."""
        return self._value

    @property
    def fetched_at(self) -> Optional[datetime]:
        return self._fetched_at

    def invalidate(self) -> None:
        self._stale = True
        self._generation += 1

    def attach(self, queue: SyncQueue):
        """Invalidate whenever the queue commits workouts; returns the unsubscribe function."""
        def on_synced(result: SyncResult) -> None:
            logger.debug("Stats cache invalidated by sync", synced=result.synced)
            self.invalidate()

        return queue.subscribe(on_synced)

    async def get(self) -> TrackStatsResponse:
        """Cached stats, refetched when stale."""
        if self._stale or self._value is None:
            generation = self._generation
            self._value = await self.api.get_stats()
            self._fetched_at = utc_now()
            if generation == self._generation:
                self._stale = False
            else:
                logger.debug("Stats cache invalidated during fetch")
        return self._value
