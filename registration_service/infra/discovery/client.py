"""Consul HTTP API client with observability.

Looks up service instances through the Consul health endpoint:
- Uses httpx for async HTTP operations
- Includes OpenTelemetry tracing for all API calls
- Records Prometheus metrics for monitoring
- Handles errors without raising (an unreachable agent yields no instances)
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import TYPE_CHECKING, Any

import httpx
from opentelemetry import trace

from registration_service.infra.discovery.metrics import (
    service_discovery_errors_total,
    service_discovery_lookups_total,
    service_discovery_operation_duration_seconds,
)

if TYPE_CHECKING:
    from registration_service.core.settings.consul import ConsulSettings

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass(frozen=True)
class ServiceInstance:
    """One registered instance of a service."""

    service_id: str
    address: str
    port: int
    tags: tuple[str, ...] = field(default_factory=tuple)

    def base_url(self, scheme: str = "http") -> str:
        """Build the base URL of this instance."""
        host = f"[{self.address}]" if ":" in self.address else self.address
        return f"{scheme}://{host}:{self.port}"


def parse_health_entries(entries: Any) -> list[ServiceInstance]:
    """Convert a ``/v1/health/service/{name}`` response into instances.

    The service address falls back to the node address when the service
    was registered without one. Malformed entries are skipped.
    """
    if not isinstance(entries, list):
        msg = f"Expected a list of health entries, got {type(entries).__name__}"
        raise ValueError(msg)

    instances: list[ServiceInstance] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        service = entry.get("Service") or {}
        node = entry.get("Node") or {}
        address = service.get("Address") or node.get("Address")
        port = service.get("Port")
        if not address or not isinstance(port, int):
            continue
        instances.append(
            ServiceInstance(
                service_id=str(service.get("ID", "")),
                address=address,
                port=port,
                tags=tuple(service.get("Tags") or ()),
            )
        )
    return instances


class ConsulClient:
    """HTTP client for the Consul health API.

    This client implements ConsulClientProtocol.

    Example:
        client = ConsulClient(get_consul_settings())
        instances = await client.healthy_instances("Customers")
        await client.close()
    """

    def __init__(
        self,
        settings: ConsulSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Consul client.

        Args:
            settings: ConsulSettings instance with connection configuration.
            transport: Optional httpx transport (used by tests).
        """
        self._settings = settings
        self._base_url = settings.base_url

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=settings.get_auth_headers(),
            timeout=httpx.Timeout(settings.connect_timeout),
            verify=settings.verify_ssl,
            transport=transport,
        )

        logger.debug(
            "ConsulClient initialized",
            extra={"base_url": self._base_url, "datacenter": settings.datacenter},
        )

    async def healthy_instances(self, service_name: str) -> list[ServiceInstance]:
        """List instances of ``service_name`` from the Consul health API.

        Args:
            service_name: Logical name of the service.

        Returns:
            Instances reported by Consul; empty on any lookup failure.
        """
        params: dict[str, str] = {}
        if self._settings.only_passing:
            params["passing"] = "true"
        if self._settings.datacenter:
            params["dc"] = self._settings.datacenter

        start_time = time.perf_counter()
        with tracer.start_as_current_span("consul.health_service") as span:
            span.set_attribute("consul.service_name", service_name)
            try:
                response = await self._client.get(
                    f"/v1/health/service/{service_name}", params=params,
                )
            except httpx.TimeoutException as e:
                span.record_exception(e)
                self._record_failure(service_name, "timeout", start_time)
                logger.warning(
                    "Consul lookup timed out",
                    extra={"service_name": service_name, "error": str(e)},
                )
                return []
            except httpx.HTTPError as e:
                span.record_exception(e)
                self._record_failure(service_name, "connection", start_time)
                logger.warning(
                    "Consul lookup connection error",
                    extra={"service_name": service_name, "error": str(e)},
                )
                return []

            if response.status_code != 200:
                span.set_attribute("consul.status_code", response.status_code)
                self._record_failure(service_name, "http_error", start_time)
                logger.warning(
                    "Consul lookup failed",
                    extra={
                        "service_name": service_name,
                        "status_code": response.status_code,
                        "response": response.text[:200],
                    },
                )
                return []

            try:
                instances = parse_health_entries(response.json())
            except ValueError as e:
                span.record_exception(e)
                self._record_failure(service_name, "decode", start_time)
                logger.warning(
                    "Consul lookup returned an unexpected body",
                    extra={"service_name": service_name, "error": str(e)},
                )
                return []

            service_discovery_operation_duration_seconds.labels(operation="lookup").observe(
                time.perf_counter() - start_time
            )
            span.set_attribute("consul.instances", len(instances))
            service_discovery_lookups_total.labels(
                service_name=service_name,
                status="success" if instances else "empty",
            ).inc()
            logger.debug(
                "Consul lookup completed",
                extra={"service_name": service_name, "instances": len(instances)},
            )
            return instances

    def _record_failure(self, service_name: str, error_type: str, start_time: float) -> None:
        service_discovery_operation_duration_seconds.labels(operation="lookup").observe(
            time.perf_counter() - start_time
        )
        service_discovery_lookups_total.labels(service_name=service_name, status="failure").inc()
        service_discovery_errors_total.labels(operation="lookup", error_type=error_type).inc()

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        await self._client.aclose()
        logger.debug("ConsulClient closed")
