"""Core lifespan services: logging and application metrics.

These run first and have no dependencies.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from registration_service.infra.logging.config import setup_logging
from registration_service.infra.logging.config import shutdown as shutdown_logging
from registration_service.infra.metrics.prometheus import application_info

from .registry import lifespan_registry

if TYPE_CHECKING:
    from registration_service.core.settings import AppSettings, LoggingSettings

logger = logging.getLogger(__name__)


@lifespan_registry.register(name="core", startup_order=1)
async def startup_core(
    app_settings: AppSettings,
    log_settings: LoggingSettings,
    **kwargs: object,
) -> None:
    """Configure logging and publish the application info metric."""
    setup_logging(log_settings=log_settings, force=True)
    logger.info(
        "Application starting",
        extra={"service": app_settings.service_name, "environment": app_settings.environment},
    )

    application_info.labels(
        version=app_settings.version,
        service=app_settings.service_name,
        environment=app_settings.environment,
    ).set(1)
    logger.info("Application metrics initialized", extra={"metrics_endpoint": "/metrics"})


@lifespan_registry.register(name="core")
async def shutdown_core(**kwargs: object) -> None:
    """Flush queued log records and stop the log listener."""
    logger.debug("Core services shutting down")
    shutdown_logging()
