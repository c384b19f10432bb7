import asyncio

import pytest

from tribe_track.client import ClientContext, StatsCache, SyncQueue
from tribe_track.schemas.track import TrackStatsResponse, WorkoutStatsResponse

from conftest import TODAY, USER_ID
from test_sync_queue import FakeApi


class StatsApi(FakeApi):
    def __init__(self):
        super().__init__()
        self.stats_calls = 0

    async def get_stats(self):
        self.stats_calls += 1
        return TrackStatsResponse(
            stats=WorkoutStatsResponse(totalWorkouts=len(self.server_ids)),
            weeklyProgress=[False] * 7,
        )


@pytest.mark.asyncio
async def test_get_fetches_once_until_invalidated():
    api = StatsApi()
    cache = StatsCache(api)
    assert cache.is_stale
    assert cache.value is None

    await cache.get()
    await cache.get()
    assert api.stats_calls == 1
    assert not cache.is_stale
    assert cache.fetched_at is not None

    cache.invalidate()
    await cache.get()
    assert api.stats_calls == 2


@pytest.mark.asyncio
async def test_invalidate_during_fetch_keeps_cache_stale():
    api = StatsApi()
    cache = StatsCache(api)
    fetch_started = asyncio.Event()
    release = asyncio.Event()
    get_stats = api.get_stats

    async def slow_get_stats():
        fetch_started.set()
        await release.wait()
        return await get_stats()

    api.get_stats = slow_get_stats

    fetch = asyncio.create_task(cache.get())
    await asyncio.wait_for(fetch_started.wait(), timeout=1)
    # A sync commits while the old numbers are still in flight
    cache.invalidate()
    release.set()
    await fetch

    assert cache.value is not None
    assert cache.is_stale

    await cache.get()
    assert api.stats_calls == 2
    assert not cache.is_stale


@pytest.mark.asyncio
async def test_successful_sync_invalidates(queue_store, make_request):
    api = StatsApi()
    queue = SyncQueue(ClientContext(user_id=USER_ID, api_base_url="http://test"), queue_store, api)
    cache = StatsCache(api)
    detach = cache.attach(queue)

    assert (await cache.get()).stats.totalWorkouts == 0

    await queue.enqueue(make_request(clientId="A"), today=TODAY)
    await queue.sync()
    assert cache.is_stale
    assert (await cache.get()).stats.totalWorkouts == 1

    # Nothing committed, nothing to invalidate
    await queue.sync()
    assert not cache.is_stale

    detach()
    await queue.enqueue(make_request(clientId="B"), today=TODAY)
    await queue.sync()
    assert not cache.is_stale
