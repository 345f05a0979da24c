"""Pytest configuration and shared fixtures.

Organization:
    - Registration Fixtures: in-memory Customers service, queues, service, worker
    - Application Fixtures: FastAPI app with a runtime attached and HTTP client

Every fixture runs without network access: the Customers service is the
in-memory client and replay is not scheduled unless a test starts it.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
import os

from httpx import ASGITransport, AsyncClient
import pytest

# Ensure tests run without external infrastructure
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("CUSTOMERS_MOCK", "true")
os.environ.setdefault("CONSUL_ENABLED", "false")
os.environ.setdefault("REGISTRATION_REPLAY_ENABLED", "false")
os.environ.setdefault("LOG_CONSOLE_ENABLED", "false")

from registration_service.core.settings import RegistrationSettings, clear_all_caches  # noqa: E402
from registration_service.features.registration import (  # noqa: E402
    CloseRequest,
    PendingQueue,
    RegistrationRequest,
    RegistrationRuntime,
    RegistrationService,
    ReplayWorker,
)
from registration_service.infra.external import InMemoryCustomersClient  # noqa: E402

# Short enough to keep slow-downstream tests fast, long enough for an in-memory call
TEST_GUARD_TIMEOUT = 0.1


@pytest.fixture(autouse=True)
def _reset_settings_caches() -> None:
    """Drop cached settings so env changes made by a test do not leak."""
    clear_all_caches()


# ============================================================================
# Registration Fixtures
# ============================================================================


@pytest.fixture
def customers() -> InMemoryCustomersClient:
    """Empty in-memory Customers service."""
    return InMemoryCustomersClient()


@pytest.fixture
def register_queue() -> PendingQueue[RegistrationRequest]:
    return PendingQueue("register", dead_letter_capacity=10)


@pytest.fixture
def close_queue() -> PendingQueue[CloseRequest]:
    return PendingQueue("close", dead_letter_capacity=10)


@pytest.fixture
def service(
    customers: InMemoryCustomersClient,
    register_queue: PendingQueue[RegistrationRequest],
    close_queue: PendingQueue[CloseRequest],
) -> RegistrationService:
    """Registration service with a short guard timeout."""
    return RegistrationService(
        customers,
        register_queue,
        close_queue,
        guard_timeout=TEST_GUARD_TIMEOUT,
        guard_max_concurrent=5,
    )


@pytest.fixture
def worker(service: RegistrationService) -> ReplayWorker:
    """Replay worker using the default (resolve) terminal policy."""
    return ReplayWorker(service)


@pytest.fixture
def registration_settings() -> RegistrationSettings:
    return RegistrationSettings(
        guard_timeout=TEST_GUARD_TIMEOUT,
        guard_max_concurrent=5,
        replay_enabled=False,
        dead_letter_capacity=10,
    )


@pytest.fixture
def runtime(
    registration_settings: RegistrationSettings,
    customers: InMemoryCustomersClient,
) -> RegistrationRuntime:
    """Runtime wired to the in-memory Customers service, replay not started."""
    return RegistrationRuntime.create(registration_settings, customers)


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def app(runtime: RegistrationRuntime):
    """Create FastAPI application with the test runtime attached.

    The lifespan does not run under ASGITransport, so the runtime is
    placed on ``app.state`` directly.
    """
    from registration_service.app.main import create_app

    application = create_app()
    application.state.registration = runtime
    return application


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client talking to the app in-process.

    Example:
        async def test_register(client):
            response = await client.post("/register", json={"firstName": "Jane", "lastName": "Doe"})
            assert response.status_code == 200
    """
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
