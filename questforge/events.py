"""Push subscriptions for document snapshots.

An EventSource hands every published snapshot to its subscribers. A
Subscription is the handle returned by subscribe(); detaching it is final. A
callback already running on another thread finishes first, and detach() waits
for it, so no callback runs once detach() has returned.

SnapshotStream adapts a subscription to ``async for`` so an asyncio consumer
(the server-sent events endpoint) can read snapshots as they arrive.

Usage:
    source = EventSource(current=lambda: store.load_character(uid))
    sub = source.subscribe(render)      # render(current) is called right away
    source.publish(new_character)       # render(new_character)
    sub.detach()
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Callback = Callable[[T], None]


class Subscription(Generic[T]):
    """Handle for one subscriber. Use detach() or a ``with`` block to stop."""

    def __init__(self, source: EventSource[T], callback: Callback[T]) -> None:
        self._source = source
        self._callback = callback
        self._active = True
        # Held across the active check and the callback; reentrant so a
        # callback may detach its own subscription.
        self._lock = threading.RLock()

    @property
    def active(self) -> bool:
        return self._active

    def detach(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._source._remove(self)

    def _deliver(self, snapshot: T) -> None:
        with self._lock:
            if not self._active:
                return
            try:
                self._callback(snapshot)
            except Exception:
                logger.exception("Subscriber callback failed; keeping subscription")

    def __enter__(self) -> Subscription[T]:
        return self

    def __exit__(self, *exc: object) -> None:
        self.detach()


class EventSource(Generic[T]):
    """Fan-out of snapshots to subscribers.

    Args:
        current: Optional provider of the latest snapshot. When given, each new
                 subscriber receives it immediately, so a view can render
                 without waiting for the next write. If it raises, the new
                 subscription is detached and the error propagates.
        on_idle: Optional hook called after the last subscriber detaches.
    """

    def __init__(
        self,
        current: Callable[[], T] | None = None,
        on_idle: Callable[[], None] | None = None,
    ) -> None:
        self._current = current
        self._on_idle = on_idle
        self._subscriptions: list[Subscription[T]] = []
        self._lock = threading.Lock()

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def subscribe(self, callback: Callback[T]) -> Subscription[T]:
        sub = Subscription(self, callback)
        with self._lock:
            self._subscriptions.append(sub)
        if self._current is not None:
            try:
                snapshot = self._current()
            except Exception:
                sub.detach()
                raise
            sub._deliver(snapshot)
        return sub

    def publish(self, snapshot: T) -> None:
        with self._lock:
            subscribers = list(self._subscriptions)
        for sub in subscribers:
            sub._deliver(snapshot)

    def _remove(self, sub: Subscription[T]) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)
            idle = not self._subscriptions
        if idle and self._on_idle is not None:
            self._on_idle()


_CLOSED = object()


class SnapshotStream(Generic[T]):
    """Async iterator over the snapshots of one subscription.

    Must be created inside a running event loop. Snapshots published from other
    threads are handed to the loop with call_soon_threadsafe. close() detaches
    the subscription and ends iteration.
    """

    def __init__(self, subscribe: Callable[[Callback[T]], Subscription[T]]) -> None:
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._subscription = subscribe(self._push)

    def _push(self, snapshot: T) -> None:
        self._loop.call_soon_threadsafe(self._queue.put_nowait, snapshot)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._subscription.detach()
        self._loop.call_soon_threadsafe(self._queue.put_nowait, _CLOSED)

    def __aiter__(self) -> SnapshotStream[T]:
        return self

    async def __anext__(self) -> T:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED or self._closed:
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> SnapshotStream[T]:
        return self

    async def __aexit__(self, *exc: object) -> None:
        self.close()
