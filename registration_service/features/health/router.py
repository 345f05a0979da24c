"""Health check API endpoints.

Provides Kubernetes-ready health check endpoints for:
- Liveness probes: /health/live - Is the process alive?
- Readiness probes: /health/ready - Can the service accept traffic?
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Request, Response, status

from registration_service.core.settings import get_app_settings
from registration_service.features.health.schemas import LivenessResponse, ReadinessResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get(
    "/live",
    response_model=LivenessResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness probe (Kubernetes)",
    description="Returns 200 if the service process is alive and responsive",
)
async def liveness_check() -> LivenessResponse:
    """Kubernetes liveness probe endpoint.

    Always returns 200 OK while the event loop is responsive.
    """
    return LivenessResponse(
        alive=True,
        timestamp=datetime.now(UTC),
        service=get_app_settings().service_name,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    responses={503: {"description": "Service not ready to accept traffic"}},
    summary="Readiness probe (Kubernetes)",
    description="Returns 200 if ready to accept traffic, 503 if not ready",
)
async def readiness_check(request: Request, response: Response) -> ReadinessResponse:
    """Kubernetes readiness probe endpoint.

    Ready once the registration runtime is started and, when replay is
    enabled, its scheduler is running.
    """
    runtime = getattr(request.app.state, "registration", None)
    checks = {"registration_runtime": runtime is not None}
    queue_depths: dict[str, int] = {}

    if runtime is not None:
        if runtime.settings.replay_enabled:
            checks["replay_scheduler"] = runtime.replay_running
        queue_depths = {
            "register": runtime.service.register_queue.depth(),
            "close": runtime.service.close_queue.depth(),
        }

    ready = all(checks.values())
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        ready=ready,
        timestamp=datetime.now(UTC),
        checks=checks,
        queue_depths=queue_depths,
    )
