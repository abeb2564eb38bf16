"""hooktrigger entry point: wires the registry, dispatcher and webhook server."""

from __future__ import annotations

import asyncio
import signal
import sys

import click

from hooktrigger.config import JobConfig, Settings, load_settings
from hooktrigger.core.bus import Event, EventBus, EventType, TriggerMatched
from hooktrigger.core.dispatcher import Dispatcher, EventCause
from hooktrigger.core.lifecycle import Job, TriggerManager
from hooktrigger.core.registry import SubscriptionRegistry
from hooktrigger.utils.logging import get_logger, setup_logging
from hooktrigger.webhooks.handlers import candidate_keys
from hooktrigger.webhooks.models import WebhookEvent
from hooktrigger.webhooks.server import WebhookServer

log = get_logger(__name__)


class HookTrigger:
    """Main application orchestrator."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

        self.bus = EventBus()
        self.registry = SubscriptionRegistry()
        self.dispatcher = Dispatcher(self.registry)
        self.triggers = TriggerManager(self.registry)
        self.server = WebhookServer(settings.webhooks, self.bus, self.registry)
        self.jobs: list[Job] = []
        self._loop: asyncio.AbstractEventLoop | None = None

    async def start(self) -> None:
        log.info("hooktrigger_starting", jobs=len(self.settings.jobs))
        self._loop = asyncio.get_running_loop()

        self.bus.subscribe(EventType.WEBHOOK_RECEIVED, self._handle_webhook)
        self.bus.subscribe(EventType.TRIGGER_MATCHED, self._handle_trigger)

        for job_config in self.settings.jobs:
            self.start_job(job_config)

        await self.bus.start()

        if self.settings.webhooks.enabled:
            await self.server.start()

        log.info(
            "hooktrigger_ready",
            watched=sorted(e.value for e in self.registry.watched_event_types()),
        )

    async def stop(self) -> None:
        log.info("hooktrigger_stopping")
        if self.settings.webhooks.enabled:
            await self.server.stop()
        for job in self.jobs:
            self.triggers.stop(job)
        self.jobs.clear()
        await self.bus.stop()
        log.info("hooktrigger_stopped")

    def start_job(self, job_config: JobConfig) -> Job:
        job = Job(
            name=job_config.name,
            owner=job_config.owner,
            repository=job_config.repository,
        )
        job.consumer = lambda cause: self._publish_match(job, cause)
        for declaration in job_config.triggers:
            self.triggers.start(job, declaration)
        self.jobs.append(job)
        return job

    def _publish_match(self, job: Job, cause: EventCause) -> None:
        # Dispatch runs in a worker thread; hand the result back to the loop
        assert self._loop is not None
        self.bus.publish_threadsafe(
            self._loop,
            TriggerMatched(data={"job": job.name, **cause.to_dict()}),
        )

    async def _handle_webhook(self, event: Event) -> None:
        data = event.data
        webhook = WebhookEvent(
            event_type=data["event_type"],
            payload=data["payload"],
            delivery_id=data.get("delivery_id", ""),
            owner=data.get("owner"),
            repository=data.get("repository"),
        )
        keys = candidate_keys(webhook)
        if not keys:
            log.debug("webhook_no_candidates", event_type=webhook.event_type)
            return
        await asyncio.to_thread(
            self.dispatcher.handle, webhook.event_type, webhook.payload, keys
        )

    async def _handle_trigger(self, event: Event) -> None:
        data = event.data
        log.info(
            "job_triggered",
            job=data["job"],
            event_name=data["event_name"],
            trigger=data.get("trigger_name"),
            description=data["description"],
        )


async def run(settings: Settings) -> None:
    app = HookTrigger(settings)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    await app.start()

    try:
        if sys.platform == "win32":
            while not stop_event.is_set():
                await asyncio.sleep(1)
        else:
            await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        await app.stop()


@click.command()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
def cli(config_path: str | None, log_level: str | None) -> None:
    """Start the hooktrigger webhook router."""
    settings = load_settings(config_path)
    if log_level:
        settings.log_level = log_level
    setup_logging(level=settings.log_level, json_output=settings.log_json)
    asyncio.run(run(settings))


if __name__ == "__main__":
    cli()
