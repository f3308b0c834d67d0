"""
In-process broadcast of note change events.

Each subscription owns an unbounded asyncio.Queue, so publishing never waits
for a consumer and a slow watcher cannot hold back a fast one. There is no
history: a subscription only sees events published after it was created.

Usage:
    channel = ChangeChannel()

    async with channel.subscribe() as subscription:
        async for event in subscription:
            ...

    channel.publish(event)   # from the event loop thread
    channel.close()          # ends every subscription
"""

import asyncio
import threading
from typing import Optional, Set

from notehub.entities import ChangeEvent
from notehub.logging_config import get_logger

logger = get_logger(__name__)

# Marks the end of a subscription's sequence
_END = object()


class ChannelClosedError(RuntimeError):
    pass


class Subscription:
    """One subscriber's view of the channel: an async iterator of ChangeEvent."""

    def __init__(self, channel: "ChangeChannel"):
        self._channel = channel
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, event: ChangeEvent) -> None:
        self._queue.put_nowait(event)

    def _end(self) -> None:
        # Channel teardown: events already queued are still delivered first.
        self._queue.put_nowait(_END)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> ChangeEvent:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _END or self._closed:
            self._closed = True
            raise StopAsyncIteration
        return item

    def close(self) -> None:
        """Unsubscribe. Idempotent; the sequence ends immediately."""
        if self._closed:
            return
        self._closed = True
        self._channel._remove(self)
        # wake a consumer blocked in __anext__
        self._queue.put_nowait(_END)

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class ChangeChannel:
    """Registry of subscriptions with fire-and-forget fan-out."""

    def __init__(self, name: Optional[str] = None):
        self.name = name or "changes"
        # Guards the registry only; never held while awaiting.
        self._lock = threading.Lock()
        self._subscribers: Set[Subscription] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        subscription = Subscription(self)
        with self._lock:
            if self._closed:
                raise ChannelClosedError(f"channel {self.name!r} is closed")
            self._subscribers.add(subscription)
            count = len(self._subscribers)
        logger.debug("channel_subscribed", channel=self.name, subscribers=count)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscribers.discard(subscription)
            count = len(self._subscribers)
        logger.debug("channel_unsubscribed", channel=self.name, subscribers=count)

    def publish(self, event: ChangeEvent) -> int:
        """
        Deliver ``event`` to every active subscription.

        Must be called from the event loop thread that owns the subscriptions.
        Returns the number of subscriptions the event was queued for.
        """
        with self._lock:
            if self._closed:
                return 0
            # put_nowait on an unbounded queue never blocks
            for subscription in self._subscribers:
                subscription._deliver(event)
            return len(self._subscribers)

    def close(self) -> None:
        """End every subscription cleanly. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            subscribers = list(self._subscribers)
            self._subscribers.clear()
        for subscription in subscribers:
            subscription._end()
        logger.debug("channel_closed", channel=self.name, ended=len(subscribers))
