"""
Sync Triggers - start sync passes from device events.

A pass runs on:
- entering the context (cold start)
- connectivity going from unavailable to available
- the app returning to the foreground
"""
import asyncio
from typing import Callable, Generic, List, Optional, Set, TypeVar

from tribe_track.client.sync_queue import SyncQueue
from tribe_track.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

APP_STATE_ACTIVE = "active"


class EventSource(Generic[T]):
    """
    Minimal observable for platform events.

    The platform bridge calls emit() on the event loop thread.
    """

    def __init__(self, initial: Optional[T] = None):
        self.current: Optional[T] = initial
        self._listeners: List[Callable[[T], None]] = []

    def subscribe(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register a listener; returns its unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, value: T) -> None:
        self.current = value
        for listener in list(self._listeners):
            listener(value)


class ConnectivityMonitor(EventSource[bool]):
    """Emits True when the network is reachable, False otherwise."""


class AppStateMonitor(EventSource[str]):
    """Emits app states such as "active", "background", "inactive"."""


class SyncTriggers:
    """
    Wires device events to SyncQueue.sync for the lifetime of a context.

    Usage:
        async with SyncTriggers(queue, connectivity, app_state):
            ...  # app running
    """

    def __init__(
        self,
        queue: SyncQueue,
        connectivity: ConnectivityMonitor,
        app_state: AppStateMonitor
    ):
        self.queue = queue
        self.connectivity = connectivity
        self.app_state = app_state
        self._online = bool(connectivity.current)
        self._foreground = app_state.current == APP_STATE_ACTIVE
        self._unsubscribers: List[Callable[[], None]] = []
        self._tasks: Set[asyncio.Task] = set()

    async def __aenter__(self) -> "SyncTriggers":
        self._online = bool(self.connectivity.current)
        self._foreground = self.app_state.current == APP_STATE_ACTIVE
        self._unsubscribers = [
            self.connectivity.subscribe(self._on_connectivity),
            self.app_state.subscribe(self._on_app_state),
        ]
        logger.debug("Sync triggers registered")
        self._schedule("cold_start")
        return self

    async def __aexit__(self, *exc_info) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        logger.debug("Sync triggers released")

    def _on_connectivity(self, online: bool) -> None:
        was_online = self._online
        self._online = bool(online)
        if self._online and not was_online:
            self._schedule("connectivity_restored")

    def _on_app_state(self, state: str) -> None:
        was_foreground = self._foreground
        self._foreground = state == APP_STATE_ACTIVE
        if self._foreground and not was_foreground:
            self._schedule("app_foreground")

    def _schedule(self, reason: str) -> None:
        logger.debug("Sync triggered", reason=reason)
        task = asyncio.get_running_loop().create_task(self.queue.sync())
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Sync pass failed", error_type=type(error).__name__, error=str(error))
