"""APScheduler integration for in-process periodic jobs.

Jobs run on the application's event loop. Every job defaults to
``max_instances=1`` and ``coalesce=True``: a tick that fires while the
previous run is still going is skipped, and missed ticks collapse into one.

Usage:
    scheduler = create_scheduler()
    add_interval_job(scheduler, worker.run_once, seconds=10, job_id="replay")
    start_scheduler(scheduler)
    ...
    stop_scheduler(scheduler)
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from apscheduler.schedulers.asyncio import (
    AsyncIOScheduler,  # type: ignore[import-untyped]
)
from apscheduler.triggers.interval import (
    IntervalTrigger,  # type: ignore[import-untyped]
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


def create_scheduler(misfire_grace_time: int = 60) -> AsyncIOScheduler:
    """Create a scheduler bound to the running event loop.

    Must be called from within the loop the jobs should run on.
    """
    return AsyncIOScheduler(
        timezone="UTC",
        event_loop=asyncio.get_running_loop(),
        job_defaults={
            "coalesce": True,  # Combine multiple pending executions into one
            "max_instances": 1,  # Only one instance of each job at a time
            "misfire_grace_time": misfire_grace_time,
        },
    )


def add_interval_job(
    scheduler: AsyncIOScheduler,
    func: Callable[[], Awaitable[Any]],
    *,
    seconds: float,
    job_id: str,
    name: str | None = None,
) -> None:
    """Run ``func`` every ``seconds`` seconds, first run one interval from now."""
    scheduler.add_job(
        func=func,
        trigger=IntervalTrigger(seconds=seconds, timezone="UTC"),
        id=job_id,
        name=name or job_id,
        replace_existing=True,
    )
    logger.info("Interval job scheduled", extra={"job_id": job_id, "interval_seconds": seconds})


def start_scheduler(scheduler: AsyncIOScheduler) -> None:
    """Start the scheduler. Call during application startup."""
    if not scheduler.running:
        logger.info("Starting APScheduler")
        scheduler.start()
        logger.info(f"APScheduler started with {len(scheduler.get_jobs())} jobs")
    else:
        logger.warning("APScheduler is already running")


def stop_scheduler(scheduler: AsyncIOScheduler) -> None:
    """Stop the scheduler. Jobs already running are not interrupted."""
    if scheduler.running:
        logger.info("Stopping APScheduler")
        scheduler.shutdown(wait=False)
        logger.info("APScheduler stopped")
    else:
        logger.debug("APScheduler is not running")


def get_job_status(scheduler: AsyncIOScheduler) -> list[dict[str, Any]]:
    """Get status of all scheduled jobs.

    Returns:
        List of job information dictionaries.
    """
    return [
        {
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
            "trigger": str(job.trigger),
        }
        for job in scheduler.get_jobs()
    ]
