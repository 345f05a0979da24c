"""Base HTTP client for downstream service integrations.

Provides a base class for downstream service clients with:
- Connection pooling
- Endpoint resolution by service name on every call
- Request/response logging and tracing
- Timeout configuration
- Mapping of transport and protocol failures to typed errors

There are no retries at this layer.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from opentelemetry import trace

from registration_service.core.exceptions import (
    DownstreamProtocolError,
    DownstreamTransportError,
)
from registration_service.infra.discovery.resolver import ServiceResolutionError
from registration_service.infra.metrics.tracking import (
    track_external_service_call,
    track_external_service_timeout,
)

if TYPE_CHECKING:
    from registration_service.infra.discovery.protocols import ServiceResolver

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class BaseHTTPClient:
    """Base HTTP client for a named downstream service.

    The base URL is not fixed at construction time: before each request the
    ``resolver`` is asked for the current endpoint of ``service_name``.

    Example:
        ```python
        class InventoryClient(BaseHTTPClient):
            def __init__(self, resolver: ServiceResolver):
                super().__init__(service_name="Inventory", resolver=resolver)

            async def list_items(self) -> list[dict]:
                return await self.get_json("/items")
        ```
    """

    def __init__(
        self,
        service_name: str,
        resolver: ServiceResolver,
        timeout: float = 5.0,
        max_connections: int = 100,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize HTTP client.

        Args:
            service_name: Logical name of the downstream service.
            resolver: Resolves ``service_name`` to a base URL.
            timeout: Request timeout in seconds.
            max_connections: Connection pool size.
            headers: Default headers to include in all requests.
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests).
        """
        self.service_name = service_name
        self.resolver = resolver
        self.timeout = timeout

        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json", **(headers or {})},
            limits=httpx.Limits(
                max_keepalive_connections=min(20, max_connections),
                max_connections=max_connections,
            ),
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client and release connections."""
        await self.client.aclose()

    async def __aenter__(self) -> BaseHTTPClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _base_url(self) -> str:
        try:
            return await self.resolver.resolve(self.service_name)
        except ServiceResolutionError as e:
            logger.warning(
                "Downstream endpoint resolution failed",
                extra={"service": self.service_name, "reason": e.reason},
            )
            raise DownstreamTransportError(
                detail=str(e), service=self.service_name, extra={"reason": e.reason},
            ) from e

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
    ) -> httpx.Response:
        """Send a request and return the 2xx response.

        Args:
            method: HTTP method.
            path: Path relative to the service base URL.
            params: Query parameters.
            json: JSON body.

        Returns:
            The response, guaranteed to have a 2xx status.

        Raises:
            DownstreamTransportError: Resolution failure, connect/network error or timeout.
            DownstreamProtocolError: Non-2xx status.
        """
        base_url = await self._base_url()
        url = f"{base_url}{path}"

        with tracer.start_as_current_span(f"{self.service_name} {method} {path}") as span:
            span.set_attribute("http.method", method)
            span.set_attribute("http.url", url)

            async with track_external_service_call(self.service_name, path):
                try:
                    response = await self.client.request(method, url, params=params, json=json)
                except httpx.TimeoutException as e:
                    track_external_service_timeout(self.service_name)
                    span.record_exception(e)
                    logger.warning(
                        "Downstream request timed out",
                        extra={"service": self.service_name, "method": method, "path": path},
                    )
                    raise DownstreamTransportError(
                        detail=f"{method} {path} timed out after {self.timeout}s",
                        service=self.service_name,
                    ) from e
                except httpx.TransportError as e:
                    span.record_exception(e)
                    logger.warning(
                        "Downstream request failed",
                        extra={
                            "service": self.service_name,
                            "method": method,
                            "path": path,
                            "error": str(e),
                        },
                    )
                    raise DownstreamTransportError(
                        detail=f"{method} {path} failed: {type(e).__name__}",
                        service=self.service_name,
                    ) from e

                span.set_attribute("http.status_code", response.status_code)
                logger.debug(
                    "Downstream response",
                    extra={
                        "service": self.service_name,
                        "method": method,
                        "path": path,
                        "status_code": response.status_code,
                        "duration_ms": response.elapsed.total_seconds() * 1000,
                    },
                )

                if not response.is_success:
                    raise DownstreamProtocolError(
                        detail=f"{method} {path} returned {response.status_code}",
                        service=self.service_name,
                        status=response.status_code,
                    )

        return response

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` and decode the JSON body.

        Raises:
            DownstreamProtocolError: If the body is not valid JSON.
        """
        response = await self.request("GET", path, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise DownstreamProtocolError(
                detail=f"GET {path} returned an undecodable body",
                service=self.service_name,
                status=response.status_code,
            ) from e

    async def post(self, path: str, json: Any | None = None) -> httpx.Response:
        """POST ``json`` to ``path``. The response body is not interpreted."""
        return await self.request("POST", path, json=json)

    async def delete(self, path: str) -> httpx.Response:
        """DELETE ``path``. The response body is not interpreted."""
        return await self.request("DELETE", path)
