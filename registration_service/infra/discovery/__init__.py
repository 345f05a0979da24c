"""Service discovery infrastructure.

Resolves downstream services by name:
- StaticServiceResolver: fixed name -> URL mapping (default)
- ConsulServiceResolver: Consul health API lookups with round-robin
  selection (CONSUL_ENABLED=true)

Usage:
    from registration_service.infra.discovery import build_resolver

    resolver = build_resolver(get_consul_settings(), get_customers_settings())
    base_url = await resolver.resolve("Customers")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from registration_service.infra.discovery.client import ConsulClient, ServiceInstance
from registration_service.infra.discovery.mock_client import MockConsulClient
from registration_service.infra.discovery.protocols import (
    ConsulClientProtocol,
    ServiceResolver,
)
from registration_service.infra.discovery.resolver import (
    ConsulServiceResolver,
    ServiceResolutionError,
    StaticServiceResolver,
)

if TYPE_CHECKING:
    from registration_service.core.settings.consul import ConsulSettings
    from registration_service.core.settings.customers import CustomersSettings

logger = logging.getLogger(__name__)

__all__ = [
    "ConsulClient",
    "ConsulClientProtocol",
    "ConsulServiceResolver",
    "MockConsulClient",
    "ServiceInstance",
    "ServiceResolutionError",
    "ServiceResolver",
    "StaticServiceResolver",
    "build_resolver",
]


def build_resolver(
    consul_settings: ConsulSettings,
    customers_settings: CustomersSettings,
) -> ServiceResolver:
    """Build the resolver selected by configuration.

    Args:
        consul_settings: Consul connection settings.
        customers_settings: Provides the service name and static fallback URL.

    Returns:
        A ConsulServiceResolver when Consul is enabled, otherwise a
        StaticServiceResolver mapping the Customers service name to its base URL.
    """
    if consul_settings.is_configured:
        logger.info(
            "Resolving downstream services through Consul",
            extra={"consul_url": consul_settings.base_url},
        )
        return ConsulServiceResolver(
            ConsulClient(consul_settings), scheme=consul_settings.instance_scheme,
        )

    logger.info(
        "Resolving downstream services from static configuration",
        extra={
            "service_name": customers_settings.service_name,
            "base_url": customers_settings.base_url,
        },
    )
    return StaticServiceResolver({customers_settings.service_name: customers_settings.base_url})
