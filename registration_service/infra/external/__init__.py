"""Downstream service clients.

All HTTP clients inherit from BaseHTTPClient and provide typed interfaces.
"""

from registration_service.infra.external.base_client import BaseHTTPClient
from registration_service.infra.external.customers import CustomersAPI, CustomersClient
from registration_service.infra.external.testing import InMemoryCustomersClient

__all__ = [
    "BaseHTTPClient",
    "CustomersAPI",
    "CustomersClient",
    "InMemoryCustomersClient",
]
