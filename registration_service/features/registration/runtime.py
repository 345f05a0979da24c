"""Process-wide state of the registration feature.

The runtime owns the retry queues and everything that touches them. It is
built once in the application lifespan, stored on ``app.state.registration``
and handed to request handlers through dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

from registration_service.features.registration.queues import PendingQueue
from registration_service.features.registration.replay import ReplayWorker
from registration_service.features.registration.schemas import CloseRequest, RegistrationRequest
from registration_service.features.registration.service import RegistrationService
from registration_service.infra.tasks import (
    add_interval_job,
    create_scheduler,
    start_scheduler,
    stop_scheduler,
)

if TYPE_CHECKING:
    from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore[import-untyped]

    from registration_service.core.settings.registration import RegistrationSettings
    from registration_service.infra.discovery.protocols import ServiceResolver
    from registration_service.infra.external.customers import CustomersAPI

logger = logging.getLogger(__name__)

REPLAY_JOB_ID = "registration_replay"


@dataclass
class RegistrationRuntime:
    """Queues, handlers and the replay job for one application instance."""

    settings: RegistrationSettings
    customers: CustomersAPI
    service: RegistrationService
    worker: ReplayWorker
    resolver: ServiceResolver | None = None
    scheduler: AsyncIOScheduler | None = None

    @classmethod
    def create(
        cls,
        settings: RegistrationSettings,
        customers: CustomersAPI,
        resolver: ServiceResolver | None = None,
    ) -> RegistrationRuntime:
        """Wire queues, service and replay worker from settings."""
        register_queue: PendingQueue[RegistrationRequest] = PendingQueue(
            "register", dead_letter_capacity=settings.dead_letter_capacity,
        )
        close_queue: PendingQueue[CloseRequest] = PendingQueue(
            "close", dead_letter_capacity=settings.dead_letter_capacity,
        )
        service = RegistrationService(
            customers,
            register_queue,
            close_queue,
            guard_timeout=settings.guard_timeout,
            guard_max_concurrent=settings.guard_max_concurrent,
            cancel_on_timeout=settings.cancel_on_timeout,
        )
        worker = ReplayWorker(
            service,
            terminal_policy=settings.terminal_policy,
            max_attempts=settings.replay_max_attempts,
        )
        return cls(
            settings=settings,
            customers=customers,
            service=service,
            worker=worker,
            resolver=resolver,
        )

    @property
    def replay_running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def start(self) -> None:
        """Schedule the replay job when replay is enabled.

        Must be called from the event loop the job should run on.
        """
        if not self.settings.replay_enabled:
            logger.info("Queue replay disabled, queued requests will not be retried")
            return
        self.scheduler = create_scheduler()
        add_interval_job(
            self.scheduler,
            self.worker.run_once,
            seconds=self.settings.replay_interval_seconds,
            job_id=REPLAY_JOB_ID,
            name="Replay queued registration requests",
        )
        start_scheduler(self.scheduler)

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """Stop replay, wait briefly for running work, release clients.

        Requests still queued are lost; queues are not persisted.
        """
        if self.scheduler is not None:
            stop_scheduler(self.scheduler)
            self.scheduler = None

        if not await self.worker.wait_idle(timeout=drain_timeout):
            logger.warning("Replay pass still running at shutdown")

        for guard in (self.service.register_guard, self.service.close_guard):
            remaining = await guard.wait_abandoned(timeout=drain_timeout)
            if remaining:
                logger.warning(
                    "Abandoned downstream calls still running at shutdown",
                    extra={"guard": guard.name, "abandoned": remaining},
                )

        pending = {
            queue.name: queue.depth()
            for queue in (self.service.register_queue, self.service.close_queue)
        }
        if any(pending.values()):
            logger.warning("Discarding queued requests at shutdown", extra={"pending": pending})

        await self.customers.close()
        if self.resolver is not None:
            await self.resolver.close()
