"""Webhook event models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class WebhookEvent:
    event_type: str
    payload: dict[str, Any] = field(default_factory=dict)
    delivery_id: str = ""
    owner: str | None = None
    repository: str | None = None

    @property
    def has_repository(self) -> bool:
        return bool(self.owner) and bool(self.repository)
