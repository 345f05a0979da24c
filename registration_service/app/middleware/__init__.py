"""Middleware configuration for FastAPI application.

The middleware stack, outermost first:
- Request ID: request tracking and log correlation
- Metrics: request metrics collection
- CORS: Cross-Origin Resource Sharing (debug mode only)

Example Usage:
    from registration_service.app.middleware import configure_middleware
    from registration_service.core.settings import get_settings

    configure_middleware(app, get_settings())
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware

from registration_service.app.middleware.base import HeaderContextMiddleware
from registration_service.app.middleware.metrics import MetricsMiddleware
from registration_service.app.middleware.request_id import RequestIDMiddleware

if TYPE_CHECKING:
    from fastapi import FastAPI

    from registration_service.core.settings import Settings

logger = logging.getLogger(__name__)

__all__ = [
    "HeaderContextMiddleware",
    "MetricsMiddleware",
    "RequestIDMiddleware",
    "configure_middleware",
]


def configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure all middleware for the FastAPI application.

    Middleware is applied in REVERSE order (last added = first to execute),
    so the request ID middleware is added last to wrap everything else and
    have the ID in the log context for every record.

    Args:
        app: FastAPI application instance
        settings: Unified settings instance with all configuration domains
    """
    app_settings = settings.app

    logger.info(
        "Configuring middleware stack",
        extra={
            "environment": app_settings.environment,
            "debug": app_settings.debug,
            "service": app_settings.service_name,
        },
    )

    if app_settings.debug:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info("CORSMiddleware enabled for development")

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    logger.info("Middleware configured", extra={"middleware": ["RequestID", "Metrics"]})
