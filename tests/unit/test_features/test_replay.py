"""Tests for replaying queued Register and Close requests."""

from __future__ import annotations

import asyncio

import pytest

from registration_service.core.exceptions import DownstreamTransportError
from registration_service.core.settings import TerminalPolicy
from registration_service.features.registration import (
    CloseRequest,
    CustomerRecord,
    RegistrationRequest,
    RegistrationService,
    ReplayResult,
    ReplayWorker,
)
from registration_service.infra.external import InMemoryCustomersClient


def _register(first: str, last: str = "Doe") -> RegistrationRequest:
    return RegistrationRequest(first_name=first, last_name=last)


def _down() -> DownstreamTransportError:
    return DownstreamTransportError(detail="connection refused", service="Customers")


class TestReplayPass:
    """Test a single replay pass over both queues."""

    async def test_empty_queues(self, worker: ReplayWorker) -> None:
        report = await worker.run_once()

        assert [(r.queue, r.result) for r in report.results] == [
            ("register", ReplayResult.EMPTY),
            ("close", ReplayResult.EMPTY),
        ]
        assert worker.passes == 1

    async def test_successful_replay_removes_head(
        self,
        worker: ReplayWorker,
        service: RegistrationService,
        customers: InMemoryCustomersClient,
    ) -> None:
        service.register_queue.enqueue(_register("Jane"))

        report = await worker.run_once()

        result = report.results[0]
        assert result.result is ReplayResult.REPLAYED
        assert result.depth == 0
        assert result.request == {"firstName": "Jane", "lastName": "Doe"}
        assert [c.first_name for c in customers.records.values()] == ["Jane"]

    async def test_one_entry_per_queue_per_pass(
        self, worker: ReplayWorker, service: RegistrationService
    ) -> None:
        service.register_queue.enqueue(_register("Ann"))
        service.register_queue.enqueue(_register("Bob"))

        await worker.run_once()

        assert service.register_queue.depth() == 1
        assert service.register_queue.peek().request.first_name == "Bob"

    async def test_register_replayed_before_close(
        self,
        worker: ReplayWorker,
        service: RegistrationService,
        customers: InMemoryCustomersClient,
    ) -> None:
        """A queued register and close of the same customer both resolve in one pass."""
        service.register_queue.enqueue(_register("Jane"))
        service.close_queue.enqueue(CloseRequest(first_name="Jane", last_name="Doe"))

        report = await worker.run_once()

        assert [r.result for r in report.results] == [ReplayResult.REPLAYED] * 2
        assert customers.records == {}

    async def test_failed_replay_keeps_head_and_order(
        self,
        worker: ReplayWorker,
        service: RegistrationService,
        customers: InMemoryCustomersClient,
    ) -> None:
        """Later entries are never attempted while the head keeps failing."""
        service.register_queue.enqueue(_register("Ann"))
        service.register_queue.enqueue(_register("Bob"))
        customers.fail_with(_down())

        for _ in range(3):
            report = await worker.run_once()
            assert report.results[0].result is ReplayResult.FAILED

        head = service.register_queue.peek()
        assert head.request.first_name == "Ann"
        assert head.attempts == 3
        assert head.last_error == "DownstreamTransportError: connection refused"
        assert customers.calls_to("create_customer") == []

        customers.recover()
        await worker.run_once()
        await worker.run_once()

        assert [c.first_name for c in customers.records.values()] == ["Ann", "Bob"]
        assert service.register_queue.depth() == 0

    async def test_close_queue_replays_while_register_fails(
        self,
        worker: ReplayWorker,
        service: RegistrationService,
        customers: InMemoryCustomersClient,
    ) -> None:
        """Queues are independent: one blocked head does not stall the other queue."""
        customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))
        service.register_queue.enqueue(_register("Ann"))
        service.close_queue.enqueue(CloseRequest(first_name="Jane", last_name="Doe"))
        customers.fail_with(_down(), times=1)

        report = await worker.run_once()

        assert report.results[0].result is ReplayResult.FAILED
        assert report.results[1].result is ReplayResult.REPLAYED


class TestTerminalPolicy:
    """Test entries whose replay can never report OK."""

    async def test_resolve_drops_entry(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))
        service.register_queue.enqueue(_register("Jane"))
        worker = ReplayWorker(service, terminal_policy=TerminalPolicy.RESOLVE)

        report = await worker.run_once()

        assert report.results[0].result is ReplayResult.RESOLVED
        assert service.register_queue.depth() == 0
        assert service.register_queue.dead_letters() == []

    async def test_resolve_drops_close_of_missing_customer(
        self, service: RegistrationService
    ) -> None:
        service.close_queue.enqueue(CloseRequest(first_name="Jane", last_name="Doe"))
        worker = ReplayWorker(service, terminal_policy=TerminalPolicy.RESOLVE)

        report = await worker.run_once()

        assert report.results[1].result is ReplayResult.RESOLVED
        assert service.close_queue.depth() == 0

    async def test_dead_letter_keeps_entry_for_inspection(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))
        service.register_queue.enqueue(_register("Jane"))
        service.register_queue.enqueue(_register("Bob"))
        worker = ReplayWorker(service, terminal_policy=TerminalPolicy.DEAD_LETTER)

        report = await worker.run_once()

        assert report.results[0].result is ReplayResult.DEAD_LETTERED
        [letter] = service.register_queue.dead_letters()
        assert letter.reason == "conflict"
        assert letter.entry.request.first_name == "Jane"
        assert service.register_queue.peek().request.first_name == "Bob"

    async def test_retain_blocks_queue(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))
        service.register_queue.enqueue(_register("Jane"))
        service.register_queue.enqueue(_register("Bob"))
        worker = ReplayWorker(service, terminal_policy=TerminalPolicy.RETAIN)

        for _ in range(2):
            report = await worker.run_once()
            assert report.results[0].result is ReplayResult.RETAINED

        head = service.register_queue.peek()
        assert head.request.first_name == "Jane"
        assert head.attempts == 2
        assert head.last_error == "conflict"
        assert service.register_queue.depth() == 2


class TestMaxAttempts:
    """Test dead-lettering after repeated failures."""

    async def test_failing_entry_dead_lettered_after_max_attempts(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        service.register_queue.enqueue(_register("Ann"))
        service.register_queue.enqueue(_register("Bob"))
        customers.fail_with(_down())
        worker = ReplayWorker(service, max_attempts=2)

        first = await worker.run_once()
        second = await worker.run_once()

        assert first.results[0].result is ReplayResult.FAILED
        assert second.results[0].result is ReplayResult.DEAD_LETTERED
        [letter] = service.register_queue.dead_letters()
        assert letter.reason == "max_attempts"
        assert letter.entry.attempts == 2
        assert service.register_queue.peek().request.first_name == "Bob"

    async def test_retained_terminal_entry_counts_attempts(
        self, service: RegistrationService, customers: InMemoryCustomersClient
    ) -> None:
        customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))
        service.register_queue.enqueue(_register("Jane"))
        worker = ReplayWorker(service, terminal_policy=TerminalPolicy.RETAIN, max_attempts=1)

        report = await worker.run_once()

        assert report.results[0].result is ReplayResult.DEAD_LETTERED
        assert service.register_queue.depth() == 0

    def test_max_attempts_must_be_positive(self, service: RegistrationService) -> None:
        with pytest.raises(ValueError, match="max_attempts"):
            ReplayWorker(service, max_attempts=0)


class TestReplaySerialization:
    """Test that overlapping replay passes run one after the other."""

    async def test_concurrent_passes_replay_head_once(
        self,
        worker: ReplayWorker,
        service: RegistrationService,
        customers: InMemoryCustomersClient,
    ) -> None:
        service.register_queue.enqueue(_register("Jane"))
        customers.delay = 0.05

        first, second = await asyncio.gather(worker.run_once(), worker.run_once())

        assert len(customers.calls_to("create_customer")) == 1
        assert first.results[0].result is ReplayResult.REPLAYED
        assert second.results[0].result is ReplayResult.EMPTY
        assert worker.passes == 2

    async def test_wait_idle_reports_running_pass(
        self,
        worker: ReplayWorker,
        service: RegistrationService,
        customers: InMemoryCustomersClient,
    ) -> None:
        service.register_queue.enqueue(_register("Jane"))
        customers.delay = 0.1
        running = asyncio.create_task(worker.run_once())
        await asyncio.sleep(0)

        assert worker.running is True
        assert await worker.wait_idle(timeout=0.01) is False

        await running
        assert worker.running is False
        assert await worker.wait_idle(timeout=0.1) is True
