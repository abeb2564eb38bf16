"""End-to-end tests: configured jobs, webhook delivery and trigger matching."""

import asyncio
import hashlib
import hmac
import json

import pytest
from aiohttp.test_utils import TestClient, TestServer

from hooktrigger.config import JobConfig, Settings, WebhooksConfig
from hooktrigger.core.bus import EventType
from hooktrigger.core.events import GitHubEvent
from hooktrigger.main import HookTrigger

SECRET = "gh-secret"

PAYLOAD = {
    "action": "created",
    "repository": {
        "id": 123456,
        "name": "pipeline-github-plugin",
        "owner": {"login": "notMe"},
    },
    "label": {"name": "new-label"},
}


@pytest.fixture
def settings():
    return Settings(
        webhooks=WebhooksConfig(enabled=False, secret=SECRET),
        jobs=[
            JobConfig(
                name="label-build",
                owner="notMe",
                repository="pipeline-github-plugin",
                triggers=[
                    {
                        "event_name": "label",
                        "trigger_name": "new-labels",
                        "payload_filter": {
                            "repository.owner.login": "notMe",
                            "label.name": "new-label",
                        },
                    },
                ],
            ),
            JobConfig(
                name="wrong-label",
                owner="notMe",
                repository="pipeline-github-plugin",
                triggers=[
                    {
                        "event_name": "label",
                        "payload_filter": {
                            "repository.owner.login": "notMe",
                            "label.name": "WRONG",
                        },
                    },
                ],
            ),
            JobConfig(
                name="unbound",
                triggers=[{"event_name": "issues"}],
            ),
        ],
    )


@pytest.fixture
async def app(settings):
    hook = HookTrigger(settings)
    triggered = []

    async def record(event):
        triggered.append(event)

    hook.bus.subscribe(EventType.TRIGGER_MATCHED, record)
    await hook.start()
    hook.triggered = triggered
    yield hook
    await hook.stop()


@pytest.fixture
async def client(app):
    async with TestClient(TestServer(app.server._build_app())) as c:
        yield c


async def _deliver(client, event_name, payload):
    body = json.dumps(payload).encode()
    sig = "sha256=" + hmac.new(SECRET.encode(), body, hashlib.sha256).hexdigest()
    return await client.post(
        "/github-webhook",
        data=body,
        headers={
            "Content-Type": "application/json",
            "X-Hub-Signature-256": sig,
            "X-GitHub-Event": event_name,
        },
    )


class TestHookTrigger:
    async def test_jobs_registered(self, app):
        assert app.registry.watched_event_types() == {GitHubEvent.LABEL}
        assert len(app.registry.lookup("notme/pipeline-github-plugin/label")) == 2

    async def test_matching_job_triggered(self, app, client):
        resp = await _deliver(client, "label", PAYLOAD)
        assert resp.status == 200

        for _ in range(30):
            if app.triggered:
                break
            await asyncio.sleep(0.1)
        await asyncio.sleep(0.1)

        assert len(app.triggered) == 1
        data = app.triggered[0].data
        assert data["job"] == "label-build"
        assert data["event_name"] == "label"
        assert data["trigger_name"] == "new-labels"
        assert data["description"] == "[new-labels] Received matching event: label"
        assert data["payload"] == PAYLOAD

    async def test_other_repository_not_triggered(self, app, client):
        payload = dict(PAYLOAD, repository={"name": "other", "owner": {"login": "notMe"}})
        resp = await _deliver(client, "label", payload)
        assert resp.status == 200
        await asyncio.sleep(0.3)
        assert app.triggered == []

    async def test_unwatched_event_ignored(self, app, client):
        resp = await _deliver(client, "issues", PAYLOAD)
        assert resp.status == 202

    async def test_stop_unregisters_everything(self, settings):
        hook = HookTrigger(settings)
        await hook.start()
        await hook.stop()
        assert len(hook.registry) == 0
        assert hook.registry.watched_event_types() == frozenset()
