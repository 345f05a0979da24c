"""Prometheus metrics endpoint.

Endpoints:
    GET /metrics - Prometheus scrape endpoint

Metrics Exposed:
    HTTP Request Metrics:
        - http_requests_total - Total request count by method, path, status
        - http_request_duration_seconds - Request latency histogram
        - http_requests_in_progress - Currently processing requests gauge

    Downstream Metrics:
        - external_service_calls_total / external_service_duration_seconds
        - external_service_errors_total / external_service_timeouts_total
        - service_discovery_lookups_total - Consul lookups by result

    Guard and Queue Metrics:
        - guard_calls_total - Guarded calls by outcome
        - guard_late_completions_total - Abandoned calls finishing after timeout
        - pending_queue_depth - Requests waiting for replay
        - replay_attempts_total / dead_letters_total

    Application Info:
        - application_info - Service version, name, and environment labels

Example Prometheus Configuration:
    ```yaml
    scrape_configs:
      - job_name: 'registration-service'
        static_configs:
          - targets: ['localhost:8000']
        metrics_path: '/metrics'
        scrape_interval: 15s
    ```
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from registration_service.infra.metrics.prometheus import REGISTRY

router = APIRouter(tags=["observability"])


@router.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics in text exposition format."""
    data = generate_latest(REGISTRY)
    return Response(
        content=data,
        media_type=CONTENT_TYPE_LATEST,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )
