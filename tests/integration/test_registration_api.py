"""Integration tests for the registration endpoints.

Requests go through the full middleware and exception handler stack;
the Customers service is the in-memory client from the conftest.
"""

from __future__ import annotations

import asyncio

from httpx import AsyncClient
import pytest

from registration_service.core.exceptions import DownstreamTransportError
from registration_service.features.registration import (
    CustomerRecord,
    RegistrationRequest,
    RegistrationRuntime,
)
from registration_service.infra.external import InMemoryCustomersClient

pytestmark = pytest.mark.integration

JANE = {"firstName": "Jane", "lastName": "Doe"}
PROBLEM_JSON = "application/problem+json"


def _down() -> DownstreamTransportError:
    return DownstreamTransportError(detail="connection refused", service="Customers")


class TestRegisterEndpoint:
    async def test_register_returns_empty_200(
        self, client: AsyncClient, customers: InMemoryCustomersClient
    ) -> None:
        response = await client.post("/register", json=JANE)

        assert response.status_code == 200
        assert response.content == b""
        [created] = customers.records.values()
        assert (created.first_name, created.last_name, created.active) == ("Jane", "Doe", False)

    async def test_register_accepts_snake_case(self, client: AsyncClient) -> None:
        response = await client.post("/register", json={"first_name": "Jane", "last_name": "Doe"})
        assert response.status_code == 200

    async def test_duplicate_register_conflicts(
        self, client: AsyncClient, customers: InMemoryCustomersClient
    ) -> None:
        customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))

        response = await client.post("/register", json=JANE)

        assert response.status_code == 409
        assert response.headers["content-type"].startswith(PROBLEM_JSON)
        body = response.json()
        assert body["type"] == "customer-exists"
        assert body["instance"] == "/register"
        assert body["request_id"] == response.headers["x-request-id"]

    async def test_register_queued_when_downstream_fails(
        self,
        client: AsyncClient,
        customers: InMemoryCustomersClient,
        runtime: RegistrationRuntime,
    ) -> None:
        customers.fail_with(_down())

        response = await client.post("/register", json=JANE)

        assert response.status_code == 200
        assert runtime.service.register_queue.depth() == 1

    @pytest.mark.parametrize(
        "body",
        [
            {"firstName": "Jane"},
            {"firstName": "", "lastName": "Doe"},
            {"firstName": 1, "lastName": ["Doe"]},
        ],
    )
    async def test_invalid_body_is_problem_422(
        self, client: AsyncClient, customers: InMemoryCustomersClient, body: dict
    ) -> None:
        response = await client.post("/register", json=body)

        assert response.status_code == 422
        assert response.headers["content-type"].startswith(PROBLEM_JSON)
        problem = response.json()
        assert problem["type"] == "validation-error"
        assert problem["errors"]
        assert customers.calls == []

    async def test_malformed_json_is_422(self, client: AsyncClient) -> None:
        response = await client.post(
            "/register", content=b"{not json", headers={"content-type": "application/json"}
        )
        assert response.status_code == 422


class TestActivateEndpoint:
    async def test_activate_returns_empty_200(
        self, client: AsyncClient, customers: InMemoryCustomersClient
    ) -> None:
        stored = customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))

        response = await client.post("/active", json={**JANE, "active": False})

        assert response.status_code == 200
        assert response.content == b""
        assert customers.records[stored.id].active is True

    async def test_activate_unknown_is_404(self, client: AsyncClient) -> None:
        response = await client.post("/active", json=JANE)

        assert response.status_code == 404
        assert response.json()["type"] == "customer-not-found"

    async def test_activate_twice_is_409(
        self, client: AsyncClient, customers: InMemoryCustomersClient
    ) -> None:
        customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))

        assert (await client.post("/active", json=JANE)).status_code == 200
        response = await client.post("/active", json=JANE)

        assert response.status_code == 409
        assert response.json()["type"] == "customer-already-active"

    async def test_activate_downstream_failure_is_reported(
        self,
        client: AsyncClient,
        customers: InMemoryCustomersClient,
        runtime: RegistrationRuntime,
    ) -> None:
        """Activation is not queued, so the caller sees the downstream error."""
        customers.fail_with(_down())

        response = await client.post("/active", json=JANE)

        assert response.status_code == 504
        body = response.json()
        assert body["type"] == "downstream-unavailable"
        assert body["service"] == "Customers"
        assert runtime.service.register_queue.depth() == 0


class TestCloseEndpoint:
    async def test_close_returns_empty_200(
        self, client: AsyncClient, customers: InMemoryCustomersClient
    ) -> None:
        customers.seed(CustomerRecord(first_name="Jane", last_name="Doe"))

        response = await client.post("/close", json=JANE)

        assert response.status_code == 200
        assert response.content == b""
        assert customers.records == {}

    async def test_close_unknown_is_404(self, client: AsyncClient) -> None:
        response = await client.post("/close", json=JANE)
        assert response.status_code == 404

    async def test_close_queued_when_downstream_fails(
        self,
        client: AsyncClient,
        customers: InMemoryCustomersClient,
        runtime: RegistrationRuntime,
    ) -> None:
        customers.fail_with(_down())

        response = await client.post("/close", json=JANE)

        assert response.status_code == 200
        assert runtime.service.close_queue.depth() == 1


class TestQueueEndpoints:
    async def test_queues_show_head_and_depth(
        self, client: AsyncClient, customers: InMemoryCustomersClient
    ) -> None:
        customers.fail_with(_down())
        await client.post("/register", json=JANE)
        await client.post("/register", json={"firstName": "John", "lastName": "Roe"})

        response = await client.get("/queues")

        assert response.status_code == 200
        body = response.json()
        assert body["register"]["depth"] == 2
        assert body["register"]["head"]["request"] == JANE
        assert body["register"]["head"]["attempts"] == 0
        assert body["close"] == {"name": "close", "depth": 0, "head": None, "deadLetters": []}

    async def test_manual_replay_drains_head(
        self,
        client: AsyncClient,
        customers: InMemoryCustomersClient,
        runtime: RegistrationRuntime,
    ) -> None:
        runtime.service.register_queue.enqueue(
            RegistrationRequest(first_name="Jane", last_name="Doe")
        )

        response = await client.post("/queues/replay")

        assert response.status_code == 200
        body = response.json()
        assert "startedAt" in body
        assert body["results"][0] == {
            "queue": "register",
            "request": JANE,
            "result": "replayed",
            "depth": 0,
        }
        assert body["results"][1]["result"] == "empty"
        assert len(customers.records) == 1

    async def test_failed_replay_visible_in_queues(
        self,
        client: AsyncClient,
        customers: InMemoryCustomersClient,
        runtime: RegistrationRuntime,
    ) -> None:
        runtime.service.register_queue.enqueue(
            RegistrationRequest(first_name="Jane", last_name="Doe")
        )
        customers.fail_with(_down())

        replay = await client.post("/queues/replay")
        queues = await client.get("/queues")

        assert replay.json()["results"][0]["result"] == "failed"
        head = queues.json()["register"]["head"]
        assert head["attempts"] == 1
        assert head["lastError"] == "DownstreamTransportError: connection refused"

    async def test_manual_replay_waits_for_running_pass(
        self,
        client: AsyncClient,
        customers: InMemoryCustomersClient,
        runtime: RegistrationRuntime,
    ) -> None:
        runtime.service.register_queue.enqueue(
            RegistrationRequest(first_name="Jane", last_name="Doe")
        )
        customers.delay = 0.05
        scheduled = asyncio.create_task(runtime.worker.run_once())
        await asyncio.sleep(0)

        response = await client.post("/queues/replay")
        await scheduled

        assert response.status_code == 200
        assert response.json()["results"][0]["result"] == "empty"
        assert scheduled.result().results[0].result == "replayed"
        assert len(customers.calls_to("create_customer")) == 1


class TestRuntimeUnavailable:
    async def test_endpoints_503_without_runtime(self, app, client: AsyncClient) -> None:
        app.state.registration = None

        response = await client.post("/register", json=JANE)

        assert response.status_code == 503
        assert response.json()["type"] == "registration-unavailable"
