"""Core routing: event taxonomy, payload matching, registry and dispatch."""

from .dispatcher import Dispatcher, EventCause, Match
from .events import GitHubEvent, resolve_event
from .matcher import matches
from .registry import InterestCounter, SubscriptionRegistry
from .subscription import Subscription, source_key

__all__ = [
    "Dispatcher",
    "EventCause",
    "GitHubEvent",
    "InterestCounter",
    "Match",
    "Subscription",
    "SubscriptionRegistry",
    "matches",
    "resolve_event",
    "source_key",
]
