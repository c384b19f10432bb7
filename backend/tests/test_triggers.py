import asyncio

import pytest

from tribe_track.client import AppStateMonitor, ConnectivityMonitor, SyncTriggers


class CountingQueue:
    def __init__(self, error=None):
        self.calls = 0
        self.error = error

    async def sync(self):
        self.calls += 1
        if self.error is not None:
            raise self.error


async def settle():
    for _ in range(3):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_cold_start_runs_one_pass():
    queue = CountingQueue()

    async with SyncTriggers(queue, ConnectivityMonitor(True), AppStateMonitor("active")):
        await settle()

    assert queue.calls == 1


@pytest.mark.asyncio
async def test_connectivity_restored_triggers_sync():
    queue = CountingQueue()
    connectivity = ConnectivityMonitor(False)

    async with SyncTriggers(queue, connectivity, AppStateMonitor("active")):
        await settle()
        connectivity.emit(True)
        await settle()
        assert queue.calls == 2

        # Still online, not a transition
        connectivity.emit(True)
        await settle()
        assert queue.calls == 2

        connectivity.emit(False)
        connectivity.emit(True)
        await settle()

    assert queue.calls == 3


@pytest.mark.asyncio
async def test_foreground_triggers_sync():
    queue = CountingQueue()
    app_state = AppStateMonitor("active")

    async with SyncTriggers(queue, ConnectivityMonitor(True), app_state):
        await settle()
        app_state.emit("active")
        await settle()
        assert queue.calls == 1

        app_state.emit("background")
        await settle()
        assert queue.calls == 1

        app_state.emit("active")
        await settle()

    assert queue.calls == 2


@pytest.mark.asyncio
async def test_exit_removes_listeners():
    queue = CountingQueue()
    connectivity = ConnectivityMonitor(False)
    app_state = AppStateMonitor("background")

    async with SyncTriggers(queue, connectivity, app_state):
        assert connectivity.listener_count == 1
        assert app_state.listener_count == 1

    assert connectivity.listener_count == 0
    assert app_state.listener_count == 0

    connectivity.emit(True)
    app_state.emit("active")
    await settle()
    assert queue.calls == 1


@pytest.mark.asyncio
async def test_failed_pass_does_not_escape():
    queue = CountingQueue(error=RuntimeError("queue database locked"))

    async with SyncTriggers(queue, ConnectivityMonitor(True), AppStateMonitor("active")):
        await settle()

    assert queue.calls == 1
