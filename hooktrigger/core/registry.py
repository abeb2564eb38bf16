"""Thread-safe subscription registry and event interest counter."""

from __future__ import annotations

import threading
from collections.abc import Iterator

from hooktrigger.core.events import GitHubEvent
from hooktrigger.core.subscription import Subscription
from hooktrigger.utils.logging import get_logger

log = get_logger(__name__)


class InterestCounter:
    """Counts active subscriptions per event type.

    The transport only listens for event types with a positive count.
    """

    def __init__(self) -> None:
        self._counts: dict[GitHubEvent, int] = {}
        self._lock = threading.Lock()

    def _increment(self, event: GitHubEvent) -> int:
        with self._lock:
            count = self._counts.get(event, 0) + 1
            self._counts[event] = count
            return count

    def _decrement(self, event: GitHubEvent) -> int | None:
        """Returns the new count, or None if ``event`` was not watched."""
        with self._lock:
            current = self._counts.get(event)
            if current is None:
                return None
            current -= 1
            if current > 0:
                self._counts[event] = current
            else:
                del self._counts[event]
            return current

    def _log_change(self, event: GitHubEvent, count: int | None) -> None:
        if count is None:
            log.warning("unwatch_unknown_event", event_type=event.value)
        elif count == 0:
            log.info("event_unwatched", event_type=event.value)

    def watch(self, event: GitHubEvent) -> int:
        count = self._increment(event)
        if count == 1:
            log.info("event_watched", event_type=event.value)
        return count

    def unwatch(self, event: GitHubEvent) -> int:
        count = self._decrement(event)
        self._log_change(event, count)
        return count or 0

    def count(self, event: GitHubEvent) -> int:
        with self._lock:
            return self._counts.get(event, 0)

    def watched(self) -> frozenset[GitHubEvent]:
        with self._lock:
            return frozenset(self._counts)


class SubscriptionRegistry:
    """Maps source keys to the subscriptions currently listening on them.

    Each key's set is a frozenset replaced wholesale under the lock, so
    ``lookup`` hands out a snapshot that later changes never touch. Nothing
    is logged while the lock is held.
    """

    def __init__(self, counter: InterestCounter | None = None) -> None:
        self._subscriptions: dict[str, frozenset[Subscription]] = {}
        self._lock = threading.Lock()
        self.counter = counter if counter is not None else InterestCounter()

    def register(self, key: str, subscription: Subscription) -> bool:
        """Add ``subscription`` under ``key``. Returns False if already present."""
        key = key.lower()
        with self._lock:
            current = self._subscriptions.get(key, frozenset())
            if subscription in current:
                return False
            self._subscriptions[key] = current | {subscription}
            # Counter moves under the registry lock so set and count never diverge
            count = self.counter._increment(subscription.event)
        if count == 1:
            log.info("event_watched", event_type=subscription.event.value)
        log.debug(
            "subscription_registered",
            key=key,
            event_type=subscription.event.value,
            trigger=subscription.trigger_name,
        )
        return True

    def unregister(self, key: str, subscription: Subscription) -> bool:
        """Remove ``subscription`` from ``key``. Non-members log a warning and are a no-op."""
        key = key.lower()
        with self._lock:
            current = self._subscriptions.get(key, frozenset())
            member = subscription in current
            if member:
                remaining = current - {subscription}
                if remaining:
                    self._subscriptions[key] = remaining
                else:
                    del self._subscriptions[key]
                count = self.counter._decrement(subscription.event)
        if not member:
            log.warning(
                "unregister_unknown_subscription",
                key=key,
                event_type=subscription.event.value,
                trigger=subscription.trigger_name,
            )
            return False
        self.counter._log_change(subscription.event, count)
        log.debug(
            "subscription_unregistered",
            key=key,
            event_type=subscription.event.value,
            trigger=subscription.trigger_name,
        )
        return True

    def lookup(self, key: str) -> frozenset[Subscription]:
        with self._lock:
            return self._subscriptions.get(key.lower(), frozenset())

    def watched_event_types(self) -> frozenset[GitHubEvent]:
        return self.counter.watched()

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._subscriptions)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(subs) for subs in self._subscriptions.values())

    def __iter__(self) -> Iterator[Subscription]:
        with self._lock:
            snapshot = list(self._subscriptions.values())
        for subs in snapshot:
            yield from subs
