"""Webhook HTTP server using aiohttp."""

from __future__ import annotations

from typing import Any

from aiohttp import web

from hooktrigger.config import WebhooksConfig
from hooktrigger.core.bus import EventBus, WebhookReceived
from hooktrigger.core.events import GitHubEvent, resolve_event
from hooktrigger.core.registry import SubscriptionRegistry
from hooktrigger.utils.logging import get_logger
from hooktrigger.webhooks.handlers import (
    normalize_github_event,
    validate_github_signature,
)

log = get_logger(__name__)


class WebhookServer:
    """Receives GitHub webhooks and publishes the ones jobs listen for to the bus."""

    def __init__(
        self, config: WebhooksConfig, bus: EventBus, registry: SubscriptionRegistry
    ) -> None:
        self._config = config
        self._bus = bus
        self._registry = registry
        self._runner: web.AppRunner | None = None

    @property
    def path(self) -> str:
        path = self._config.path
        return path if path.startswith("/") else f"/{path}"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if not self._config.secret:
            log.warning(
                "webhook_no_secret",
                path=self.path,
                msg="No webhook secret configured. All requests will be rejected.",
            )
        app = self._build_app()
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._config.bind, self._config.port)
        await site.start()
        log.info(
            "webhook_server_started",
            bind=self._config.bind,
            port=self._config.port,
            path=self.path,
        )

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        log.info("webhook_server_stopped")

    # ------------------------------------------------------------------
    # App construction
    # ------------------------------------------------------------------

    def _build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post(self.path, self._handle_webhook)
        return app

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _handle_webhook(self, request: web.Request) -> web.Response:
        body = await request.read()

        try:
            payload: dict[str, Any] = await request.json()
        except Exception:
            return web.Response(status=400, text="Invalid JSON")
        if not isinstance(payload, dict):
            return web.Response(status=400, text="Invalid JSON")

        signature = request.headers.get("X-Hub-Signature-256", "")
        if not validate_github_signature(body, signature, self._config.secret):
            return web.Response(status=401, text="Invalid signature")

        event_name = request.headers.get("X-GitHub-Event", "")
        delivery_id = request.headers.get("X-GitHub-Delivery", "")
        event = resolve_event(event_name)

        if event is GitHubEvent.PING:
            log.info("webhook_ping", delivery=delivery_id)
            return web.Response(status=200, text="pong")

        if event not in self._registry.watched_event_types():
            log.debug("webhook_ignored", event_type=event_name, delivery=delivery_id)
            return web.Response(status=202, text="ignored")

        normalized = normalize_github_event(event.value, payload, delivery_id)
        await self._bus.publish(
            WebhookReceived(
                data={
                    "event_type": normalized.event_type,
                    "delivery_id": normalized.delivery_id,
                    "owner": normalized.owner,
                    "repository": normalized.repository,
                    "payload": normalized.payload,
                }
            )
        )

        log.info(
            "webhook_received",
            event_type=normalized.event_type,
            owner=normalized.owner,
            repository=normalized.repository,
            delivery=delivery_id,
        )

        return web.Response(status=200, text="OK")
