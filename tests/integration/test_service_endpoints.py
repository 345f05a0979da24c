"""Integration tests for the version, health, metrics and docs endpoints."""

from __future__ import annotations

from httpx import AsyncClient
import pytest

from registration_service.features.registration import RegistrationRequest, RegistrationRuntime

pytestmark = pytest.mark.integration


class TestVersionEndpoint:
    async def test_returns_configured_version(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CUSTOM_API_VERSION", "2.3.1")

        response = await client.get("/version")

        assert response.status_code == 200
        assert response.text == "2.3.1"
        assert response.headers["content-type"].startswith("text/plain")

    async def test_empty_when_unset(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("CUSTOM_API_VERSION", raising=False)

        response = await client.get("/version")

        assert response.status_code == 200
        assert response.text == ""


class TestHealthEndpoints:
    async def test_liveness(self, client: AsyncClient) -> None:
        response = await client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["alive"] is True

    async def test_ready_reports_queue_depths(
        self, client: AsyncClient, runtime: RegistrationRuntime
    ) -> None:
        runtime.service.register_queue.enqueue(
            RegistrationRequest(first_name="Jane", last_name="Doe")
        )

        response = await client.get("/health/ready")

        assert response.status_code == 200
        body = response.json()
        assert body["ready"] is True
        assert body["checks"] == {"registration_runtime": True}
        assert body["queue_depths"] == {"register": 1, "close": 0}

    async def test_not_ready_without_runtime(self, app, client: AsyncClient) -> None:
        app.state.registration = None

        response = await client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["ready"] is False


class TestObservability:
    async def test_metrics_exposition(self, client: AsyncClient) -> None:
        await client.post("/register", json={"firstName": "Jane", "lastName": "Doe"})

        response = await client.get("/metrics")

        assert response.status_code == 200
        text = response.text
        assert "http_requests_total" in text
        assert 'endpoint="/register"' in text
        assert "guard_calls_total" in text

    async def test_request_id_echoed(self, client: AsyncClient) -> None:
        response = await client.get("/health/live", headers={"X-Request-ID": "req-42"})
        assert response.headers["x-request-id"] == "req-42"

    async def test_request_id_generated(self, client: AsyncClient) -> None:
        response = await client.get("/health/live")
        assert len(response.headers["x-request-id"]) == 36

    async def test_openapi_lists_operations(self, client: AsyncClient) -> None:
        paths = (await client.get("/openapi.json")).json()["paths"]

        for path in ("/register", "/active", "/close", "/version", "/queues"):
            assert path in paths
