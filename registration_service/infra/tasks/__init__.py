"""In-process scheduling of periodic jobs."""

from registration_service.infra.tasks.scheduler import (
    add_interval_job,
    create_scheduler,
    get_job_status,
    start_scheduler,
    stop_scheduler,
)

__all__ = [
    "add_interval_job",
    "create_scheduler",
    "get_job_status",
    "start_scheduler",
    "stop_scheduler",
]
