"""Webhook signature validation and event normalization."""

from __future__ import annotations

import hashlib
import hmac
from typing import Any

from hooktrigger.core.events import resolve_event
from hooktrigger.core.subscription import source_key
from hooktrigger.webhooks.models import WebhookEvent


# ---------------------------------------------------------------------------
# Signature validation
# ---------------------------------------------------------------------------

def validate_github_signature(body: bytes, signature: str, secret: str) -> bool:
    """Validate GitHub webhook HMAC-SHA256 signature.

    Returns False if no secret is configured (rejects unauthenticated requests).
    """
    if not secret:
        return False
    if not signature:
        return False
    expected = "sha256=" + hmac.new(
        secret.encode(), body, hashlib.sha256
    ).hexdigest()
    return hmac.compare_digest(expected, signature)


# ---------------------------------------------------------------------------
# Event normalization
# ---------------------------------------------------------------------------

def _repository_coordinates(payload: dict[str, Any]) -> tuple[str | None, str | None]:
    repo = payload.get("repository")
    if not isinstance(repo, dict):
        return None, None
    owner_info = repo.get("owner")
    owner = None
    if isinstance(owner_info, dict):
        # Organization payloads carry "login", legacy push payloads "name"
        owner = owner_info.get("login") or owner_info.get("name")
    name = repo.get("name")
    if owner is None and isinstance(repo.get("full_name"), str) and "/" in repo["full_name"]:
        owner, name = repo["full_name"].split("/", 1)
    return owner, name


def normalize_github_event(
    event_type: str, payload: dict[str, Any], delivery_id: str = ""
) -> WebhookEvent:
    """Normalize a GitHub webhook payload into a WebhookEvent."""
    owner, repository = _repository_coordinates(payload)
    return WebhookEvent(
        event_type=event_type.strip().lower(),
        payload=payload,
        delivery_id=delivery_id,
        owner=owner,
        repository=repository,
    )


def candidate_keys(event: WebhookEvent) -> list[str]:
    """Registry keys that jobs on the event's repository would be listening on."""
    if not event.has_repository:
        return []
    resolved = resolve_event(event.event_type)
    if not resolved.resolved:
        return []
    return [source_key(event.owner, event.repository, resolved)]
