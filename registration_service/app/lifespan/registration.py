"""Registration runtime lifespan: Customers client, retry queues and replay."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from registration_service.features.registration.runtime import RegistrationRuntime
from registration_service.infra.discovery import build_resolver
from registration_service.infra.external import CustomersClient, InMemoryCustomersClient

from .registry import lifespan_registry

if TYPE_CHECKING:
    from fastapi import FastAPI

    from registration_service.core.settings import (
        ConsulSettings,
        CustomersSettings,
        RegistrationSettings,
    )

logger = logging.getLogger(__name__)


def build_runtime(
    customers_settings: CustomersSettings,
    consul_settings: ConsulSettings,
    registration_settings: RegistrationSettings,
) -> RegistrationRuntime:
    """Build the runtime against the real or the in-memory Customers service."""
    if customers_settings.mock:
        logger.warning("Using in-memory Customers service, data is not persisted")
        return RegistrationRuntime.create(registration_settings, InMemoryCustomersClient())

    resolver = build_resolver(consul_settings, customers_settings)
    client = CustomersClient(
        resolver=resolver,
        service_name=customers_settings.service_name,
        timeout=customers_settings.request_timeout,
        max_connections=customers_settings.max_connections,
    )
    return RegistrationRuntime.create(registration_settings, client, resolver=resolver)


@lifespan_registry.register(name="registration", startup_order=10, requires=["core"])
async def startup_registration(
    app: FastAPI,
    customers_settings: CustomersSettings,
    consul_settings: ConsulSettings,
    registration_settings: RegistrationSettings,
    **kwargs: object,
) -> None:
    """Create the runtime, start the replay job and publish it on ``app.state``."""
    runtime = build_runtime(customers_settings, consul_settings, registration_settings)
    runtime.start()
    app.state.registration = runtime
    logger.info(
        "Registration runtime started",
        extra={
            "guard_timeout": registration_settings.guard_timeout,
            "replay_enabled": registration_settings.replay_enabled,
            "replay_interval_seconds": registration_settings.replay_interval_seconds,
            "terminal_policy": registration_settings.terminal_policy.value,
        },
    )


@lifespan_registry.register(name="registration")
async def shutdown_registration(app: FastAPI, **kwargs: object) -> None:
    """Stop replay and release downstream clients."""
    runtime: RegistrationRuntime | None = getattr(app.state, "registration", None)
    app.state.registration = None
    if runtime is not None:
        await runtime.stop()
        logger.info("Registration runtime stopped")
