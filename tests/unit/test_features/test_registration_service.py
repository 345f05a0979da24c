"""Tests for the Register, Activate and Close handlers."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from registration_service.core.exceptions import (
    DownstreamProtocolError,
    DownstreamTransportError,
)
from registration_service.features.registration import (
    ActivationRequest,
    CloseRequest,
    CustomerRecord,
    OperationOutcome,
    RegistrationRequest,
    RegistrationService,
)
from registration_service.infra.external import InMemoryCustomersClient
from registration_service.infra.resilience import GuardOutcome


def _transport_error() -> DownstreamTransportError:
    return DownstreamTransportError(detail="connection refused", service="Customers")


class TestRegister:
    """Test the unguarded Register handler."""

    async def test_creates_inactive_customer(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        outcome = await service.register(RegistrationRequest(first_name="Jane", last_name="Doe"))

        assert outcome is OperationOutcome.OK
        [created] = customers.records.values()
        assert created.first_name == "Jane"
        assert created.last_name == "Doe"
        assert created.active is False
        assert created.addresses == []

    async def test_lists_all_customers_before_creating(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        await service.register(RegistrationRequest(first_name="Jane", last_name="Doe"))

        [lookup] = customers.calls_to("find_customers")
        assert lookup.args == {"first_name": None, "last_name": None}
        assert [c.method for c in customers.calls] == ["find_customers", "create_customer"]

    async def test_existing_customer_conflicts(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        customers.seed(CustomerRecord(first_name="Jane", last_name="Doe", active=True))

        outcome = await service.register(RegistrationRequest(first_name="Jane", last_name="Doe"))

        assert outcome is OperationOutcome.CONFLICT
        assert customers.calls_to("create_customer") == []

    async def test_names_compared_exactly(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        """Case and whitespace differences make a different customer."""
        customers.seed(CustomerRecord(first_name="jane", last_name="doe"))

        outcome = await service.register(RegistrationRequest(first_name="Jane", last_name="Doe"))

        assert outcome is OperationOutcome.OK
        assert len(customers.records) == 2

    async def test_downstream_failure_propagates(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        customers.fail_with(_transport_error(), times=1)

        with pytest.raises(DownstreamTransportError):
            await service.register(RegistrationRequest(first_name="Jane", last_name="Doe"))
        assert service.register_queue.depth() == 0


class TestActivate:
    """Test the Activate handler, which is never queued."""

    async def test_activates_first_match(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        stored = customers.seed(
            CustomerRecord(
                first_name="Jane", last_name="Doe", addresses=[{"street": "1 Main St"}]
            )
        )

        outcome = await service.activate(
            ActivationRequest(first_name="Jane", last_name="Doe", active=False)
        )

        assert outcome is OperationOutcome.OK
        updated = customers.records[stored.id]
        assert updated.active is True
        assert updated.addresses == stored.addresses

    async def test_filters_by_name(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))

        await service.activate(ActivationRequest(first_name="Jane", last_name="Doe"))

        assert customers.calls_to("find_customers")[0].args == {
            "first_name": "Jane",
            "last_name": "Doe",
        }

    async def test_unknown_customer_not_found(self, service: RegistrationService) -> None:
        outcome = await service.activate(ActivationRequest(first_name="Jane", last_name="Doe"))
        assert outcome is OperationOutcome.NOT_FOUND

    async def test_already_active_conflicts(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        customers.seed(CustomerRecord(first_name="Jane", last_name="Doe", active=True))

        outcome = await service.activate(ActivationRequest(first_name="Jane", last_name="Doe"))

        assert outcome is OperationOutcome.CONFLICT
        assert customers.calls_to("update_customer") == []

    async def test_downstream_failure_is_not_queued(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))
        customers.fail_with(_transport_error())

        with pytest.raises(DownstreamTransportError):
            await service.activate(ActivationRequest(first_name="Jane", last_name="Doe"))

        assert service.register_queue.depth() == 0
        assert service.close_queue.depth() == 0


class TestClose:
    """Test the unguarded Close handler."""

    async def test_deletes_first_match_only(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        first = customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))
        second = customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))

        outcome = await service.close(CloseRequest(first_name="Jane", last_name="Doe"))

        assert outcome is OperationOutcome.OK
        assert customers.calls_to("delete_customer")[0].args == {"customer_id": first.id}
        assert list(customers.records) == [second.id]

    async def test_unknown_customer_not_found(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        outcome = await service.close(CloseRequest(first_name="Jane", last_name="Doe"))

        assert outcome is OperationOutcome.NOT_FOUND
        assert customers.calls_to("delete_customer") == []

    async def test_record_without_id_is_protocol_error(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        customers.find_customers = AsyncMock(
            return_value=[CustomerRecord(first_name="Jane", last_name="Doe")]
        )

        with pytest.raises(DownstreamProtocolError, match="no id"):
            await service.close(CloseRequest(first_name="Jane", last_name="Doe"))


class TestGuardedEntryPoints:
    """Test that Register and Close degrade to queueing."""

    async def test_register_completes_directly_when_fast(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        outcome = await service.register_guarded(
            RegistrationRequest(first_name="Jane", last_name="Doe")
        )

        assert outcome is OperationOutcome.OK
        assert len(customers.records) == 1
        assert service.register_queue.depth() == 0
        assert service.register_guard.outcomes[GuardOutcome.SUCCESS] == 1

    async def test_register_conflict_is_not_queued(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))

        outcome = await service.register_guarded(
            RegistrationRequest(first_name="Jane", last_name="Doe")
        )

        assert outcome is OperationOutcome.CONFLICT
        assert service.register_queue.depth() == 0

    async def test_register_queued_on_downstream_failure(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        customers.fail_with(_transport_error())
        request = RegistrationRequest(first_name="Jane", last_name="Doe")

        outcome = await service.register_guarded(request)

        assert outcome is OperationOutcome.OK
        assert service.register_queue.peek().request == request

    async def test_register_queued_when_downstream_slow(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        """The caller is answered at the guard timeout; the abandoned call may still land."""
        customers.delay = 0.3
        request = RegistrationRequest(first_name="Jane", last_name="Doe")

        outcome = await asyncio.wait_for(service.register_guarded(request), timeout=0.25)

        assert outcome is OperationOutcome.OK
        assert service.register_queue.depth() == 1
        assert service.register_guard.outcomes[GuardOutcome.TIMEOUT] == 1

        await service.register_guard.wait_abandoned(timeout=2.0)
        assert len(customers.records) == 1

    async def test_close_not_found_is_not_queued(self, service: RegistrationService) -> None:
        outcome = await service.close_guarded(CloseRequest(first_name="Jane", last_name="Doe"))

        assert outcome is OperationOutcome.NOT_FOUND
        assert service.close_queue.depth() == 0

    async def test_close_queued_on_downstream_failure(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))
        customers.fail_with(_transport_error())

        outcome = await service.close_guarded(CloseRequest(first_name="Jane", last_name="Doe"))

        assert outcome is OperationOutcome.OK
        assert service.close_queue.depth() == 1
        assert len(customers.records) == 1

    async def test_queued_requests_keep_arrival_order(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        customers.fail_with(_transport_error())

        for name in ("Ann", "Bob", "Cid"):
            await service.register_guarded(RegistrationRequest(first_name=name, last_name="Doe"))

        queued = [e.request.first_name for e in service.register_queue.snapshot()]
        assert queued == ["Ann", "Bob", "Cid"]
