"""Business metrics for the registration write path."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

from registration_service.infra.metrics.prometheus import DEFAULT_LATENCY_BUCKETS, REGISTRY

# ============================================================================
# Error and Exception Metrics
# ============================================================================

errors_total = Counter(
    "errors_total",
    "Total number of errors by type and endpoint",
    ["error_type", "endpoint", "status_code"],
    registry=REGISTRY,
)

exceptions_unhandled_total = Counter(
    "exceptions_unhandled_total",
    "Total number of unhandled exceptions",
    ["exception_type", "endpoint"],
    registry=REGISTRY,
)

validation_errors_total = Counter(
    "validation_errors_total",
    "Total number of validation errors",
    ["endpoint", "field"],
    registry=REGISTRY,
)

# ============================================================================
# External Service Metrics
# ============================================================================

external_service_calls_total = Counter(
    "external_service_calls_total",
    "Total number of external service calls",
    ["service_name", "endpoint", "status"],
    registry=REGISTRY,
)

external_service_duration_seconds = Histogram(
    "external_service_duration_seconds",
    "External service call duration in seconds",
    ["service_name", "endpoint"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

external_service_errors_total = Counter(
    "external_service_errors_total",
    "Total number of external service errors",
    ["service_name", "error_type"],
    registry=REGISTRY,
)

external_service_timeouts_total = Counter(
    "external_service_timeouts_total",
    "Total number of external service timeouts",
    ["service_name"],
    registry=REGISTRY,
)

# ============================================================================
# Guarded Operation Metrics
# ============================================================================

guard_calls_total = Counter(
    "guard_calls_total",
    "Guarded calls by outcome (success, failure, timeout, rejected)",
    ["guard", "outcome"],
    registry=REGISTRY,
)

guard_in_flight = Gauge(
    "guard_in_flight",
    "Primary calls currently running under a guard",
    ["guard"],
    registry=REGISTRY,
)

guard_late_completions_total = Counter(
    "guard_late_completions_total",
    "Abandoned primaries that finished after their guard timed out",
    ["guard", "result"],  # result: success, error, cancelled
    registry=REGISTRY,
)

# ============================================================================
# Retry Queue Metrics
# ============================================================================

queue_depth = Gauge(
    "pending_queue_depth",
    "Entries waiting in a retry queue",
    ["queue"],
    registry=REGISTRY,
)

queue_enqueued_total = Counter(
    "pending_queue_enqueued_total",
    "Entries added to a retry queue by a fallback",
    ["queue"],
    registry=REGISTRY,
)

replay_attempts_total = Counter(
    "replay_attempts_total",
    "Replay attempts by result (ok, conflict, not_found, error)",
    ["queue", "result"],
    registry=REGISTRY,
)

dead_letters_total = Counter(
    "dead_letters_total",
    "Entries moved to the dead-letter list",
    ["queue", "reason"],  # reason: terminal, max_attempts
    registry=REGISTRY,
)
