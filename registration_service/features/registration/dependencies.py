"""FastAPI dependencies for the registration feature.

Usage:
    @router.post("/register")
    async def register(body: RegistrationRequest, service: RegistrationServiceDep) -> None:
        await service.register_guarded(body)
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from registration_service.core.exceptions import ServiceUnavailableException
from registration_service.features.registration.replay import ReplayWorker
from registration_service.features.registration.runtime import RegistrationRuntime
from registration_service.features.registration.service import RegistrationService


def get_registration_runtime(request: Request) -> RegistrationRuntime:
    """Return the runtime built by the application lifespan.

    Raises:
        ServiceUnavailableException: The lifespan has not started it.
    """
    runtime = getattr(request.app.state, "registration", None)
    if runtime is None:
        raise ServiceUnavailableException(
            detail="Registration runtime is not running",
            type="registration-unavailable",
        )
    return runtime


def get_registration_service(
    runtime: Annotated[RegistrationRuntime, Depends(get_registration_runtime)],
) -> RegistrationService:
    return runtime.service


def get_replay_worker(
    runtime: Annotated[RegistrationRuntime, Depends(get_registration_runtime)],
) -> ReplayWorker:
    return runtime.worker


RegistrationRuntimeDep = Annotated[RegistrationRuntime, Depends(get_registration_runtime)]
RegistrationServiceDep = Annotated[RegistrationService, Depends(get_registration_service)]
ReplayWorkerDep = Annotated[ReplayWorker, Depends(get_replay_worker)]
