"""In-memory Customers service for tests and local development.

Implements CustomersAPI without any network. Enabled for the running app
with CUSTOMERS_MOCK=true; tests construct it directly.

Usage in tests:
    customers = InMemoryCustomersClient()
    customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))
    customers.fail_with(DownstreamTransportError(detail="down", service="Customers"))
    customers.delay = 1.0  # make every call slower than the guard timeout
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import itertools
import logging
from typing import Any

from registration_service.features.registration.schemas import CustomerRecord

logger = logging.getLogger(__name__)


@dataclass
class CallRecord:
    """Record of a downstream call for assertion in tests."""

    method: str
    args: dict[str, Any] = field(default_factory=dict)


class InMemoryCustomersClient:
    """Dict-backed stand-in for the Customers service.

    Attributes:
        records: Stored customers by downstream id.
        calls: Every call made, in order.
        delay: Seconds each call sleeps before doing anything.
    """

    def __init__(self, records: list[CustomerRecord] | None = None) -> None:
        self.records: dict[int, CustomerRecord] = {}
        self.calls: list[CallRecord] = []
        self.delay = 0.0
        self._ids = itertools.count(1)
        self._failures: list[BaseException] = []
        self._persistent_failure: BaseException | None = None
        self.closed = False
        for record in records or []:
            self.seed(record)

    def seed(self, record: CustomerRecord) -> CustomerRecord:
        """Store ``record`` directly, assigning an id when it has none."""
        record_id = int(record.id) if record.id is not None else next(self._ids)
        stored = record.model_copy(update={"id": record_id})
        self.records[record_id] = stored
        return stored

    def fail_with(self, error: BaseException, times: int | None = None) -> None:
        """Make the next ``times`` calls raise ``error`` (every call when None)."""
        if times is None:
            self._persistent_failure = error
        else:
            self._failures.extend([error] * times)

    def recover(self) -> None:
        """Stop injecting failures."""
        self._failures.clear()
        self._persistent_failure = None

    def calls_to(self, method: str) -> list[CallRecord]:
        return [call for call in self.calls if call.method == method]

    async def _enter(self, method: str, **args: Any) -> None:
        self.calls.append(CallRecord(method, args))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self._failures:
            raise self._failures.pop(0)
        if self._persistent_failure is not None:
            raise self._persistent_failure

    async def find_customers(
        self, first_name: str | None = None, last_name: str | None = None,
    ) -> list[CustomerRecord]:
        await self._enter("find_customers", first_name=first_name, last_name=last_name)
        records = list(self.records.values())
        if first_name is None and last_name is None:
            return records
        return [r for r in records if r.matches(first_name or "", last_name or "")]

    async def create_customer(self, record: CustomerRecord) -> None:
        await self._enter("create_customer", record=record)
        self.seed(record.model_copy(update={"id": None}))

    async def update_customer(self, record: CustomerRecord) -> None:
        await self._enter("update_customer", record=record)
        for record_id, existing in self.records.items():
            if existing.matches(record.first_name, record.last_name):
                self.records[record_id] = record.model_copy(update={"id": record_id})
                return

    async def delete_customer(self, customer_id: int | str) -> None:
        await self._enter("delete_customer", customer_id=customer_id)
        self.records.pop(int(customer_id), None)

    async def close(self) -> None:
        self.closed = True
