"""Service name resolution.

Downstream clients never hold a fixed URL; they ask a ServiceResolver for
the base URL of a named service before each call.
"""

from __future__ import annotations

from collections.abc import Mapping
import itertools
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from registration_service.infra.discovery.protocols import ConsulClientProtocol

logger = logging.getLogger(__name__)


class ServiceResolutionError(Exception):
    """No endpoint is currently available for a service."""

    def __init__(self, service_name: str, reason: str) -> None:
        self.service_name = service_name
        self.reason = reason
        super().__init__(f"Cannot resolve service {service_name!r}: {reason}")


class StaticServiceResolver:
    """Resolves names from a fixed name -> base URL mapping.

    Example:
        resolver = StaticServiceResolver({"Customers": "http://localhost:8081"})
        await resolver.resolve("Customers")  # "http://localhost:8081"
    """

    def __init__(self, endpoints: Mapping[str, str]) -> None:
        self._endpoints = {name: url.rstrip("/") for name, url in endpoints.items()}

    async def resolve(self, service_name: str) -> str:
        try:
            return self._endpoints[service_name]
        except KeyError:
            raise ServiceResolutionError(service_name, "no static endpoint configured") from None

    async def close(self) -> None:
        return None


class ConsulServiceResolver:
    """Resolves names through Consul, rotating between the returned instances.

    Each call queries the agent, so instances that drop out of the catalog
    stop receiving traffic on the next call.
    """

    def __init__(self, client: ConsulClientProtocol, scheme: str = "http") -> None:
        self._client = client
        self._scheme = scheme
        self._counters: dict[str, itertools.count[int]] = {}

    async def resolve(self, service_name: str) -> str:
        instances = await self._client.healthy_instances(service_name)
        if not instances:
            raise ServiceResolutionError(service_name, "no healthy instances in Consul")

        counter = self._counters.setdefault(service_name, itertools.count())
        instance = instances[next(counter) % len(instances)]
        url = instance.base_url(self._scheme)
        logger.debug(
            "Resolved service",
            extra={"service_name": service_name, "url": url, "candidates": len(instances)},
        )
        return url

    async def close(self) -> None:
        await self._client.close()
