"""Metrics middleware for HTTP request instrumentation with trace correlation."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

from registration_service.infra.metrics.prometheus import (
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from fastapi import Request, Response


def _route_template(request: Request) -> str:
    """Route path template for low-cardinality labels, "unmatched" for 404s."""
    for route in request.app.routes:
        match, _ = route.matches(request.scope)
        if match is Match.FULL:
            return getattr(route, "path", request.url.path)
    return "unmatched"


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collect HTTP metrics with trace correlation via exemplars.

    - Records request counts, durations, and in-progress requests
    - Links metrics to traces via exemplars (trace IDs) when a span is active
    - Adds X-Process-Time header for client-side performance monitoring
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        endpoint = _route_template(request)
        method = request.method

        http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()
        start_time = time.perf_counter()
        status_code = 500  # Reported when the handler raises

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Process-Time"] = str(time.perf_counter() - start_time)
            return response  # type: ignore[no-any-return]
        finally:
            duration = time.perf_counter() - start_time

            span = trace.get_current_span()
            exemplar = None
            if span and span.get_span_context().is_valid:
                exemplar = {"trace_id": format(span.get_span_context().trace_id, "032x")}

            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(
                duration, exemplar=exemplar,
            )
            http_requests_total.labels(
                method=method, endpoint=endpoint, status=status_code,
            ).inc(exemplar=exemplar)
            http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()
