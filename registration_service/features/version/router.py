"""Version endpoint.

Returns the operator-configured ``custom.api.version`` property as a plain
string (``CUSTOM_API_VERSION``).
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from registration_service.core.settings import get_custom_settings

router = APIRouter(tags=["version"])


@router.get(
    "/version",
    response_class=PlainTextResponse,
    summary="Configured API version",
)
async def get_version() -> PlainTextResponse:
    """Return the configured version string, empty when none is set.

    Example:
        ```bash
        curl http://localhost:8000/version
        ```
    """
    return PlainTextResponse(get_custom_settings().api_version or "")
