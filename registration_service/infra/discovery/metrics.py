"""Prometheus metrics for service discovery lookups."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

from registration_service.infra.metrics.prometheus import DEFAULT_LATENCY_BUCKETS, REGISTRY

service_discovery_lookups_total = Counter(
    "service_discovery_lookups_total",
    "Total service lookups against Consul by result.",
    ["service_name", "status"],  # success, empty, failure
    registry=REGISTRY,
)

service_discovery_errors_total = Counter(
    "service_discovery_errors_total",
    "Total errors during service discovery operations.",
    ["operation", "error_type"],  # error_type: timeout/connection/http_error/decode
    registry=REGISTRY,
)

service_discovery_operation_duration_seconds = Histogram(
    "service_discovery_operation_duration_seconds",
    "Duration of Consul API operations in seconds.",
    ["operation"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)
