"""GitHub webhook transport: signature checks, normalization and the HTTP server."""

from .handlers import candidate_keys, normalize_github_event, validate_github_signature
from .models import WebhookEvent

__all__ = [
    "WebhookEvent",
    "candidate_keys",
    "normalize_github_event",
    "validate_github_signature",
]
