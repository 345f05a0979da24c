"""Router registry and setup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from registration_service.features.health.router import router as health_router
from registration_service.features.metrics.router import router as metrics_router
from registration_service.features.registration.router import router as registration_router
from registration_service.features.version.router import router as version_router

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)


def setup_routers(app: FastAPI) -> None:
    """Register all feature routers with the application.

    Routes have no prefix: /register, /active and /close are the public
    paths clients already use.
    """
    app.include_router(metrics_router)
    app.include_router(health_router)
    app.include_router(version_router)
    app.include_router(registration_router)

    logger.info(
        "Routers configured",
        extra={"routes": sorted({r.path for r in app.routes if hasattr(r, "methods")})},
    )
