"""Subscription: one job's registered interest in a GitHub event."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping

from hooktrigger.core import matcher
from hooktrigger.core.events import GitHubEvent

if TYPE_CHECKING:
    from hooktrigger.core.dispatcher import EventCause

Consumer = Callable[["EventCause"], None]


def source_key(owner: str, repository: str, event: GitHubEvent) -> str:
    """Build the registry key for a repository and event type."""
    return f"{owner}/{repository}/{event.value}".lower()


# eq=False keeps identity hashing: two jobs declaring the same trigger are
# still distinct members of a registry set
@dataclass(eq=False)
class Subscription:
    event: GitHubEvent
    payload_filter: dict[str, str | None] | None = None
    trigger_name: str | None = None
    source_key: str = ""
    consumer: Consumer | None = field(default=None, repr=False)
    job_name: str = ""

    def __post_init__(self) -> None:
        self.source_key = self.source_key.lower()
        if self.payload_filter is not None:
            self.payload_filter = dict(self.payload_filter)

    @property
    def dormant(self) -> bool:
        return not self.event.resolved

    def accepts(self, event_type: str) -> bool:
        return not self.dormant and self.event.value == event_type.lower()

    def matches(self, payload: Mapping[str, Any]) -> bool:
        return matcher.matches(self.payload_filter, payload)
