"""Mock Consul client for testing without a real Consul instance.

Usage in tests:
    from registration_service.infra.discovery.mock_client import MockConsulClient

    mock_consul = MockConsulClient()
    mock_consul.add_instance("Customers", "10.0.0.1", 8080)
    resolver = ConsulServiceResolver(mock_consul)
    assert await resolver.resolve("Customers") == "http://10.0.0.1:8080"
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

from registration_service.infra.discovery.client import ServiceInstance

logger = logging.getLogger(__name__)


@dataclass
class CallRecord:
    """Record of a method call for assertion in tests."""

    method: str
    service_name: str | None
    result_count: int


class MockConsulClient:
    """In-memory Consul client implementing ConsulClientProtocol.

    Attributes:
        instances: Registered instances by service name.
        call_history: Every lookup made, in order.
        closed: Whether close() has been called.
    """

    def __init__(self) -> None:
        self.instances: dict[str, list[ServiceInstance]] = {}
        self.call_history: list[CallRecord] = []
        self.closed = False

    def add_instance(self, service_name: str, address: str, port: int) -> ServiceInstance:
        """Register an instance of ``service_name``."""
        entries = self.instances.setdefault(service_name, [])
        instance = ServiceInstance(
            service_id=f"{service_name}-{len(entries) + 1}",
            address=address,
            port=port,
        )
        entries.append(instance)
        return instance

    def remove_service(self, service_name: str) -> None:
        """Drop every instance of ``service_name``."""
        self.instances.pop(service_name, None)

    async def healthy_instances(self, service_name: str) -> list[ServiceInstance]:
        result = list(self.instances.get(service_name, []))
        self.call_history.append(CallRecord("healthy_instances", service_name, len(result)))
        return result

    async def close(self) -> None:
        self.closed = True
        self.call_history.append(CallRecord("close", None, 0))
