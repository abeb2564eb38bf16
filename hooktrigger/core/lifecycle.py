"""Job lifecycle: start and stop the event triggers a job declares."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from hooktrigger.core.events import GitHubEvent, resolve_event
from hooktrigger.core.matcher import canonical_string
from hooktrigger.core.registry import SubscriptionRegistry
from hooktrigger.core.subscription import Consumer, Subscription, source_key
from hooktrigger.utils.logging import get_logger

log = get_logger(__name__)


class TriggerDeclaration(BaseModel):
    # YAML filters often carry bare numbers such as repository ids
    model_config = ConfigDict(coerce_numbers_to_str=True)

    event_name: str
    payload_filter: dict[str, str | None] | None = None
    trigger_name: str | None = None

    @field_validator("payload_filter", mode="before")
    @classmethod
    def _booleans_as_json(cls, value: Any) -> Any:
        # YAML reads `draft: false` as a bool; compare it the way payload booleans are
        if isinstance(value, dict):
            return {
                path: canonical_string(expected) if isinstance(expected, bool) else expected
                for path, expected in value.items()
            }
        return value

    def resolve(self) -> GitHubEvent:
        return resolve_event(self.event_name)


@dataclass(eq=False)
class Job:
    name: str
    owner: str | None = None
    repository: str | None = None
    consumer: Consumer | None = field(default=None, repr=False)

    @property
    def has_source(self) -> bool:
        return bool(self.owner) and bool(self.repository)


class TriggerManager:
    """Registers a job's subscriptions when it starts and removes them when it stops."""

    def __init__(self, registry: SubscriptionRegistry) -> None:
        self._registry = registry
        # Job -> subscriptions it registered, so stop() can undo exactly those
        self._active: dict[Job, list[Subscription]] = {}
        self._lock = threading.Lock()

    def start(self, job: Job, declaration: TriggerDeclaration) -> Subscription | None:
        event = declaration.resolve()
        subscription = Subscription(
            event=event,
            payload_filter=declaration.payload_filter,
            trigger_name=declaration.trigger_name,
            consumer=job.consumer,
            job_name=job.name,
        )

        if not job.has_source:
            log.info("trigger_skipped_no_source", job=job.name, event_type=declaration.event_name)
            return None

        if subscription.dormant:
            log.warning(
                "trigger_dormant",
                job=job.name,
                event_type=declaration.event_name,
                trigger=declaration.trigger_name,
            )
            return subscription

        subscription.source_key = source_key(job.owner, job.repository, event)
        # Recorded before registering so stop() always sees it
        with self._lock:
            self._active.setdefault(job, []).append(subscription)
        self._registry.register(subscription.source_key, subscription)
        log.info(
            "trigger_started",
            job=job.name,
            key=subscription.source_key,
            trigger=declaration.trigger_name,
        )
        return subscription

    def stop(self, job: Job) -> int:
        """Unregister every subscription ``job`` started. Returns how many were removed."""
        with self._lock:
            subscriptions = self._active.pop(job, [])
        removed = 0
        for subscription in subscriptions:
            if self._registry.unregister(subscription.source_key, subscription):
                removed += 1
        if subscriptions:
            log.info("trigger_stopped", job=job.name, removed=removed)
        return removed

    def active(self, job: Job) -> list[Subscription]:
        with self._lock:
            return list(self._active.get(job, []))
