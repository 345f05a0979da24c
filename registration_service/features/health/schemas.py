"""Health check response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LivenessResponse(BaseModel):
    """Liveness probe response."""

    alive: bool = Field(description="Whether the process is alive")
    timestamp: datetime = Field(description="Check timestamp")
    service: str = Field(min_length=1, max_length=100, description="Service name")


class ReadinessResponse(BaseModel):
    """Readiness probe response.

    The Customers service is not checked. Writes to it are queued while it
    is unavailable.

    Example:
        ```json
        {
            "ready": true,
            "timestamp": "2025-01-01T00:00:00Z",
            "checks": {"registration_runtime": true, "replay_scheduler": true},
            "queue_depths": {"register": 0, "close": 2}
        }
        ```
    """

    ready: bool = Field(description="Whether the service can accept traffic")
    timestamp: datetime = Field(description="Check timestamp")
    checks: dict[str, bool] = Field(default_factory=dict, description="Individual checks")
    queue_depths: dict[str, int] = Field(
        default_factory=dict, description="Pending requests per retry queue",
    )

    model_config = ConfigDict(str_strip_whitespace=True)
