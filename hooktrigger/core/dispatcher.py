"""Route decoded webhook events to matching subscriptions."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from hooktrigger.core.registry import SubscriptionRegistry
from hooktrigger.core.subscription import Subscription
from hooktrigger.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class EventCause:
    """Why a job was triggered: the matching event and the trigger that fired."""

    event_name: str
    payload: Mapping[str, Any]
    trigger_name: str | None = None

    @property
    def short_description(self) -> str:
        if self.trigger_name is not None:
            return f"[{self.trigger_name}] Received matching event: {self.event_name}"
        return f"Received matching event: {self.event_name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_name": self.event_name,
            "payload": self.payload,
            "trigger_name": self.trigger_name,
            "description": self.short_description,
        }


@dataclass(frozen=True)
class Match:
    subscription: Subscription
    cause: EventCause


class Dispatcher:
    """Looks up candidate subscriptions and notifies the ones whose filter matches.

    The dispatcher only reads the registry.
    """

    def __init__(self, registry: SubscriptionRegistry) -> None:
        self._registry = registry

    def handle(
        self,
        event_type: str,
        payload: Mapping[str, Any],
        source_keys: Iterable[str],
    ) -> list[Match]:
        event_type = event_type.lower()
        matched: list[Match] = []
        seen: set[int] = set()

        for key in source_keys:
            for subscription in self._registry.lookup(key):
                if id(subscription) in seen:
                    continue
                seen.add(id(subscription))
                if not subscription.accepts(event_type):
                    continue
                if not subscription.matches(payload):
                    continue
                cause = EventCause(
                    event_name=event_type,
                    payload=payload,
                    trigger_name=subscription.trigger_name,
                )
                matched.append(Match(subscription, cause))
                self._notify(subscription, cause)

        log.info(
            "event_dispatched",
            event_type=event_type,
            matched=len(matched),
        )
        return matched

    def _notify(self, subscription: Subscription, cause: EventCause) -> None:
        if subscription.consumer is None:
            return
        try:
            subscription.consumer(cause)
        except Exception:
            log.exception(
                "consumer_error",
                job=subscription.job_name,
                trigger=subscription.trigger_name,
            )
