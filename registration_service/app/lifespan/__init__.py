"""Application lifespan management.

The lifespan context manager runs the registered startup hooks in order,
serves, then runs the shutdown hooks in reverse order.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

# Import lifespan modules to register their hooks
from registration_service.app.lifespan import core, registration
from registration_service.app.lifespan.registry import lifespan_registry
from registration_service.core.settings import get_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

    from registration_service.core.settings import Settings

_ = (core, registration)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    Uses ``app.state.settings`` when present (set by ``create_app``),
    otherwise the cached unified settings.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()
    app_settings = settings.app

    hook_kwargs = {
        "app": app,
        "app_settings": app_settings,
        "log_settings": settings.logging,
        "customers_settings": settings.customers,
        "consul_settings": settings.consul,
        "registration_settings": settings.registration,
    }

    await lifespan_registry.startup(**hook_kwargs)

    logger.info(
        "Application is LIVE and ready to serve requests on http://%s:%s",
        app_settings.host,
        app_settings.port,
        extra={
            "service": app_settings.service_name,
            "environment": app_settings.environment,
            "version": app_settings.version,
            "service_discovery_enabled": settings.consul.is_configured,
            "customers_mock": settings.customers.mock,
        },
    )

    yield

    logger.info("Application shutting down", extra={"service": app_settings.service_name})
    await lifespan_registry.shutdown(**hook_kwargs)


__all__ = ["lifespan", "lifespan_registry"]
