"""Request ID middleware for per-request tracking.

Takes the ID from the X-Request-ID header or generates a UUID, stores it in
``request.state.request_id``, adds it to every log record emitted while the
request is handled and returns it in the X-Request-ID response header.
"""

from __future__ import annotations

from registration_service.app.middleware.base import HeaderContextMiddleware, generate_uuid


class RequestIDMiddleware(HeaderContextMiddleware):
    """Add a unique request ID to all requests for log correlation.

    Usage:
        app = FastAPI()
        app.add_middleware(RequestIDMiddleware)

        @app.get("/")
        async def root(request: Request):
            return {"request_id": request.state.request_id}
    """

    header_name = "x-request-id"
    state_key = "request_id"
    log_context_key = "request_id"
    should_clear_context_on_finish = True

    def generate_value(self) -> str:
        return generate_uuid()
