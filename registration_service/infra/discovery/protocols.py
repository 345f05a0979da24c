"""Protocol definitions for service discovery.

Two seams are defined:
- ConsulClientProtocol: the Consul health API lookups used for resolution,
  implemented by ConsulClient and MockConsulClient.
- ServiceResolver: turns a logical service name into a base URL, implemented
  by StaticServiceResolver and ConsulServiceResolver.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from registration_service.infra.discovery.client import ServiceInstance


@runtime_checkable
class ConsulClientProtocol(Protocol):
    """Protocol for the Consul catalog operations used by resolution."""

    async def healthy_instances(self, service_name: str) -> list[ServiceInstance]:
        """List instances of a service known to the Consul agent.

        Args:
            service_name: Logical name of the service.

        Returns:
            Instances in the order Consul returned them. An empty list when
            none are registered or the agent could not be queried.
        """
        ...

    async def close(self) -> None:
        """Close the client and release resources."""
        ...


@runtime_checkable
class ServiceResolver(Protocol):
    """Resolves a logical service name to a base URL."""

    async def resolve(self, service_name: str) -> str:
        """Return a base URL (scheme://host:port) for ``service_name``.

        Raises:
            ServiceResolutionError: If no endpoint is available.
        """
        ...

    async def close(self) -> None:
        """Release any resources held by the resolver."""
        ...
