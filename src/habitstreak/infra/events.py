"""In-process change feed delivering store notifications to subscribers."""

from __future__ import annotations

import queue
import threading
from typing import Iterable, Optional

from ..domain.events import ChangeEvent, channel_for
from ..logging_config import get_logger

logger = get_logger(__name__)


class Subscription:
    """Inbound message queue for one subscriber on one or more collections."""

    def __init__(self, feed: "ChangeFeed", collections: Iterable[str]):
        self._feed = feed
        self.channels = frozenset(channel_for(name) for name in collections)
        self._queue: "queue.Queue[ChangeEvent]" = queue.Queue()
        self.closed = False

    def wants(self, event: ChangeEvent) -> bool:
        return not self.closed and event.channel in self.channels

    def deliver(self, event: ChangeEvent) -> None:
        self._queue.put(event)

    def get(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        """Block for the next event; return None on timeout."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[ChangeEvent]:
        """Return every pending event without blocking."""
        events: list[ChangeEvent] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self.closed = True
        self._feed.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class ChangeFeed:
    """Fan-out of store change events to collection-scoped subscriptions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    def subscribe(self, *collections: str) -> Subscription:
        if not collections:
            raise ValueError("subscribe() needs at least one collection")
        subscription = Subscription(self, collections)
        with self._lock:
            self._subscriptions.append(subscription)
        logger.debug("Subscribed", extra={"channels": sorted(subscription.channels)})
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def publish(self, event: ChangeEvent) -> int:
        """Deliver an event to every matching subscription; return the count."""
        with self._lock:
            targets = [sub for sub in self._subscriptions if sub.wants(event)]
        for subscription in targets:
            subscription.deliver(event)
        logger.debug("Published %s", event.name, extra={"subscribers": len(targets)})
        return len(targets)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)
