"""Tests for webhook config, handlers, and server."""

import asyncio
import hashlib
import hmac
import json

import pytest
from aiohttp.test_utils import TestClient, TestServer

from hooktrigger.config import WebhooksConfig
from hooktrigger.core.bus import EventBus, EventType
from hooktrigger.core.events import GitHubEvent
from hooktrigger.core.registry import SubscriptionRegistry
from hooktrigger.core.subscription import Subscription
from hooktrigger.webhooks.handlers import (
    candidate_keys,
    normalize_github_event,
    validate_github_signature,
)
from hooktrigger.webhooks.models import WebhookEvent
from hooktrigger.webhooks.server import WebhookServer

SECRET = "gh-secret"


def _sign(body: bytes, secret: str = SECRET) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


# ---------------------------------------------------------------------------
# Model and config tests
# ---------------------------------------------------------------------------

class TestWebhookEvent:
    def test_defaults(self):
        event = WebhookEvent(event_type="ping")
        assert event.payload == {}
        assert event.delivery_id == ""
        assert not event.has_repository


class TestWebhooksConfig:
    def test_defaults(self):
        cfg = WebhooksConfig()
        assert cfg.enabled is False
        assert cfg.port == 8420
        assert cfg.bind == "0.0.0.0"
        assert cfg.path == "/github-webhook"
        assert cfg.secret == ""


# ---------------------------------------------------------------------------
# Validation tests
# ---------------------------------------------------------------------------

class TestGitHubSignature:
    def test_valid_signature(self):
        body = b'{"action": "created"}'
        assert validate_github_signature(body, _sign(body, "my-secret"), "my-secret") is True

    def test_invalid_signature(self):
        body = b'{"action": "created"}'
        assert validate_github_signature(body, "sha256=bad", "my-secret") is False

    def test_missing_signature(self):
        body = b'{"action": "created"}'
        assert validate_github_signature(body, "", "my-secret") is False

    def test_no_secret_configured_rejects(self):
        body = b'{"action": "created"}'
        assert validate_github_signature(body, _sign(body, "x"), "") is False


# ---------------------------------------------------------------------------
# Normalization tests
# ---------------------------------------------------------------------------

class TestNormalizeGitHub:
    def test_owner_login(self):
        payload = {"repository": {"name": "widgets", "owner": {"login": "Octo"}}}
        event = normalize_github_event("Issue_Comment", payload, "d-1")
        assert event.event_type == "issue_comment"
        assert event.owner == "Octo"
        assert event.repository == "widgets"
        assert event.delivery_id == "d-1"
        assert event.payload is payload

    def test_owner_name_fallback(self):
        payload = {"repository": {"name": "widgets", "owner": {"name": "octo"}}}
        event = normalize_github_event("push", payload)
        assert event.owner == "octo"

    def test_full_name_fallback(self):
        payload = {"repository": {"full_name": "octo/widgets"}}
        event = normalize_github_event("push", payload)
        assert (event.owner, event.repository) == ("octo", "widgets")

    def test_no_repository(self):
        event = normalize_github_event("organization", {"action": "member_added"})
        assert event.owner is None
        assert event.repository is None


class TestCandidateKeys:
    def test_key_for_repository_event(self):
        event = WebhookEvent(event_type="label", owner="Octo", repository="Widgets")
        assert candidate_keys(event) == ["octo/widgets/label"]

    def test_no_repository_no_keys(self):
        assert candidate_keys(WebhookEvent(event_type="label")) == []

    def test_unknown_event_no_keys(self):
        event = WebhookEvent(event_type="bogus", owner="o", repository="r")
        assert candidate_keys(event) == []


# ---------------------------------------------------------------------------
# Server tests
# ---------------------------------------------------------------------------

@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def registry():
    reg = SubscriptionRegistry()
    reg.register("octo/widgets/label", Subscription(event=GitHubEvent.LABEL))
    return reg


@pytest.fixture
def webhook_config():
    return WebhooksConfig(enabled=True, port=0, path="github-webhook", secret=SECRET)


@pytest.fixture
def server(webhook_config, bus, registry):
    return WebhookServer(webhook_config, bus, registry)


@pytest.fixture
async def client(server):
    app = server._build_app()
    async with TestClient(TestServer(app)) as c:
        yield c


LABEL_PAYLOAD = {
    "action": "created",
    "label": {"name": "new-label"},
    "repository": {"name": "widgets", "owner": {"login": "octo"}},
}


async def _post(client, event_name, payload, sign=True):
    body = json.dumps(payload).encode()
    headers = {
        "Content-Type": "application/json",
        "X-GitHub-Event": event_name,
        "X-GitHub-Delivery": "delivery-1",
    }
    if sign:
        headers["X-Hub-Signature-256"] = _sign(body)
    return await client.post("/github-webhook", data=body, headers=headers)


class TestWebhookServer:
    def test_path_normalized(self, server):
        assert server.path == "/github-webhook"

    async def test_malformed_payload_returns_400(self, client):
        resp = await client.post(
            "/github-webhook",
            data=b"not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status == 400

    async def test_non_object_payload_returns_400(self, client):
        resp = await client.post("/github-webhook", json=[1, 2, 3])
        assert resp.status == 400

    async def test_invalid_signature_returns_401(self, client):
        resp = await client.post(
            "/github-webhook",
            json=LABEL_PAYLOAD,
            headers={"X-Hub-Signature-256": "sha256=invalid", "X-GitHub-Event": "label"},
        )
        assert resp.status == 401

    async def test_unsigned_returns_401(self, client):
        resp = await _post(client, "label", LABEL_PAYLOAD, sign=False)
        assert resp.status == 401

    async def test_unknown_path_returns_404(self, client):
        resp = await client.post("/webhooks/unknown", json={"test": True})
        assert resp.status == 404

    async def test_ping(self, client):
        resp = await _post(client, "ping", {"zen": "Keep it logically awesome."})
        assert resp.status == 200
        assert await resp.text() == "pong"

    async def test_unwatched_event_ignored(self, client, bus):
        received = []

        async def handler(event):
            received.append(event)

        bus.subscribe(EventType.WEBHOOK_RECEIVED, handler)
        await bus.start()

        resp = await _post(client, "push", {"ref": "refs/heads/main"})
        assert resp.status == 202
        await asyncio.sleep(0.1)
        assert received == []

        await bus.stop()

    async def test_watched_event_published(self, client, bus):
        received = []

        async def handler(event):
            received.append(event)

        bus.subscribe(EventType.WEBHOOK_RECEIVED, handler)
        await bus.start()

        resp = await _post(client, "label", LABEL_PAYLOAD)
        assert resp.status == 200

        await asyncio.sleep(0.1)
        assert len(received) == 1
        data = received[0].data
        assert data["event_type"] == "label"
        assert data["owner"] == "octo"
        assert data["repository"] == "widgets"
        assert data["delivery_id"] == "delivery-1"
        assert data["payload"] == LABEL_PAYLOAD

        await bus.stop()
