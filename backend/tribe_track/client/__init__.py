"""
Offline client for workout tracking.

Queues workout logs on the device and replays them to the API once the
device is back online.
"""
from tribe_track.client.api import TrackApiClient
from tribe_track.client.cache import StatsCache
from tribe_track.client.context import ClientContext
from tribe_track.client.queue_store import QueueStatus, SyncQueueEntry, SyncQueueStore
from tribe_track.client.sync_queue import SyncQueue, SyncResult
from tribe_track.client.triggers import AppStateMonitor, ConnectivityMonitor, SyncTriggers

__all__ = [
    "AppStateMonitor",
    "ClientContext",
    "ConnectivityMonitor",
    "QueueStatus",
    "StatsCache",
    "SyncQueue",
    "SyncQueueEntry",
    "SyncQueueStore",
    "SyncResult",
    "SyncTriggers",
    "TrackApiClient",
]
