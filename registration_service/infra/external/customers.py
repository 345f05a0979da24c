"""Client for the Customers service.

Downstream surface:
    GET    /customers                                 list all customers
    GET    /customers?firstName={first}&lastName={last}  filter by name
    POST   /customers                                 create a customer
    POST   /updateCustomer                            update a customer
    DELETE /customers/{id}                            delete a customer
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import TypeAdapter, ValidationError

from registration_service.core.exceptions import DownstreamProtocolError
from registration_service.features.registration.schemas import CustomerRecord
from registration_service.infra.external.base_client import BaseHTTPClient

if TYPE_CHECKING:
    import httpx

    from registration_service.infra.discovery.protocols import ServiceResolver

logger = logging.getLogger(__name__)

_RECORDS = TypeAdapter(list[CustomerRecord])


@runtime_checkable
class CustomersAPI(Protocol):
    """Operations the registration handlers need from the Customers service."""

    async def find_customers(
        self, first_name: str | None = None, last_name: str | None = None,
    ) -> list[CustomerRecord]: ...

    async def create_customer(self, record: CustomerRecord) -> None: ...

    async def update_customer(self, record: CustomerRecord) -> None: ...

    async def delete_customer(self, customer_id: int | str) -> None: ...

    async def close(self) -> None: ...


class CustomersClient(BaseHTTPClient):
    """HTTP client for the Customers service.

    Example:
        ```python
        client = CustomersClient(resolver=StaticServiceResolver({"Customers": url}))
        records = await client.find_customers(first_name="Jane", last_name="Doe")
        ```
    """

    def __init__(
        self,
        resolver: ServiceResolver,
        service_name: str = "Customers",
        timeout: float = 5.0,
        max_connections: int = 100,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            service_name=service_name,
            resolver=resolver,
            timeout=timeout,
            max_connections=max_connections,
            transport=transport,
        )

    async def find_customers(
        self, first_name: str | None = None, last_name: str | None = None,
    ) -> list[CustomerRecord]:
        """List customers, optionally filtered server-side by name.

        Args:
            first_name: First name to filter on.
            last_name: Last name to filter on.

        Returns:
            Records in the order the Customers service returned them.

        Raises:
            DownstreamTransportError: Service unreachable or too slow.
            DownstreamProtocolError: Non-2xx status or a body that is not a
                list of customer records.
        """
        params: dict[str, str] | None = None
        if first_name is not None or last_name is not None:
            params = {"firstName": first_name or "", "lastName": last_name or ""}

        body = await self.get_json("/customers", params=params)
        return self._parse_records(body)

    async def create_customer(self, record: CustomerRecord) -> None:
        """Create ``record`` downstream."""
        await self.post("/customers", json=self._dump(record, include_id=False))
        logger.info(
            "Customer created downstream",
            extra={"first_name": record.first_name, "last_name": record.last_name},
        )

    async def update_customer(self, record: CustomerRecord) -> None:
        """Replace the downstream record matching ``record``."""
        await self.post("/updateCustomer", json=self._dump(record, include_id=True))
        logger.info(
            "Customer updated downstream",
            extra={
                "first_name": record.first_name,
                "last_name": record.last_name,
                "active": record.active,
            },
        )

    async def delete_customer(self, customer_id: int | str) -> None:
        """Delete the customer with the downstream-assigned ``customer_id``."""
        await self.delete(f"/customers/{customer_id}")
        logger.info("Customer deleted downstream", extra={"customer_id": customer_id})

    def _parse_records(self, body: Any) -> list[CustomerRecord]:
        try:
            return _RECORDS.validate_python(body)
        except ValidationError as e:
            raise DownstreamProtocolError(
                detail="GET /customers returned an unexpected body",
                service=self.service_name,
                extra={"errors": e.error_count()},
            ) from e

    @staticmethod
    def _dump(record: CustomerRecord, *, include_id: bool) -> dict[str, Any]:
        exclude = None if include_id else {"id"}
        return record.model_dump(mode="json", by_alias=True, exclude=exclude, exclude_none=True)
