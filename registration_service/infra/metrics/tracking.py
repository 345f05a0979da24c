"""Helper functions for tracking business and operational metrics."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import time
from typing import TYPE_CHECKING, Any

from registration_service.infra.metrics import business

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


# ============================================================================
# Error Tracking
# ============================================================================


def track_error(
    error_type: str,
    endpoint: str,
    status_code: int,
    extra: dict[str, Any] | None = None,
) -> None:
    """Track an error occurrence.

    Args:
        error_type: Type of error (e.g., 'conflict', 'not-found', 'downstream-unavailable')
        endpoint: API endpoint where error occurred
        status_code: HTTP status code
        extra: Additional context for logging

    Example:
            track_error("conflict", "/register", 409, {"first_name": "Jane"})
    """
    business.errors_total.labels(
        error_type=error_type,
        endpoint=endpoint,
        status_code=str(status_code),
    ).inc()

    logger.debug(
        "Tracked error: %s",
        error_type,
        extra={"endpoint": endpoint, "status_code": status_code, **(extra or {})},
    )


def track_validation_error(endpoint: str, field: str) -> None:
    """Track a validation error for a specific field."""
    business.validation_errors_total.labels(endpoint=endpoint, field=field).inc()


def track_unhandled_exception(exception_type: str, endpoint: str) -> None:
    """Track an unhandled exception.

    Args:
        exception_type: Type of exception (e.g., 'ValueError', 'KeyError')
        endpoint: API endpoint where exception occurred
    """
    business.exceptions_unhandled_total.labels(
        exception_type=exception_type,
        endpoint=endpoint,
    ).inc()


# ============================================================================
# External Service Tracking
# ============================================================================


@asynccontextmanager
async def track_external_service_call(service_name: str, endpoint: str) -> AsyncIterator[None]:
    """Context manager to track external service call with timing.

    Args:
        service_name: Name of the external service
        endpoint: Service endpoint being called

    Example:
            async with track_external_service_call("Customers", "/customers"):
            response = await client.get("/customers")
    """
    start_time = time.time()
    status = "success"

    try:
        yield
    except Exception as e:
        status = "error"
        business.external_service_errors_total.labels(
            service_name=service_name,
            error_type=type(e).__name__,
        ).inc()
        raise
    finally:
        duration = time.time() - start_time

        business.external_service_calls_total.labels(
            service_name=service_name,
            endpoint=endpoint,
            status=status,
        ).inc()

        business.external_service_duration_seconds.labels(
            service_name=service_name,
            endpoint=endpoint,
        ).observe(duration)


def track_external_service_timeout(service_name: str) -> None:
    """Track external service timeout."""
    business.external_service_timeouts_total.labels(service_name=service_name).inc()


# ============================================================================
# Guarded Operation Tracking
# ============================================================================


def track_guard_call(guard_name: str, outcome: str) -> None:
    """Track the outcome of one guarded call.

    Args:
        guard_name: Name of the guarded operation
        outcome: 'success', 'failure', 'timeout' or 'rejected'

    Example:
            track_guard_call("register", "timeout")
    """
    business.guard_calls_total.labels(guard=guard_name, outcome=outcome).inc()


def update_guard_in_flight(guard_name: str, in_flight: int) -> None:
    """Set the number of primaries currently running under a guard."""
    business.guard_in_flight.labels(guard=guard_name).set(in_flight)


def track_guard_late_completion(guard_name: str, result: str) -> None:
    """Track an abandoned primary that finished after its guard gave up on it."""
    business.guard_late_completions_total.labels(guard=guard_name, result=result).inc()


# ============================================================================
# Retry Queue Tracking
# ============================================================================


def update_queue_depth(queue_name: str, depth: int) -> None:
    """Set the current depth of a retry queue."""
    business.queue_depth.labels(queue=queue_name).set(depth)


def track_enqueue(queue_name: str) -> None:
    """Track an entry added to a retry queue."""
    business.queue_enqueued_total.labels(queue=queue_name).inc()


def track_replay_attempt(queue_name: str, result: str) -> None:
    """Track one replay attempt.

    Args:
        queue_name: Name of the retry queue
        result: Handler outcome ('ok', 'conflict', 'not_found') or 'error'
    """
    business.replay_attempts_total.labels(queue=queue_name, result=result).inc()


def track_dead_letter(queue_name: str, reason: str) -> None:
    """Track an entry moved to the dead-letter list."""
    business.dead_letters_total.labels(queue=queue_name, reason=reason).inc()
