"""Base middleware for header-based context propagation.

A subclass names a header; the middleware then:
1. Reads the value from the incoming request header
2. Generates one if the header is missing
3. Stores it in request state
4. Sets it in the logging context
5. Echoes it in the response headers
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING
import uuid

from starlette.datastructures import MutableHeaders

from registration_service.infra.logging.context import clear_log_context, set_log_context

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send


class HeaderContextMiddleware(ABC):
    """Abstract base for header-based context propagation middleware.

    Subclasses must define:
    - header_name: The HTTP header to read/write (lowercase)
    - state_key: The key to use in scope["state"]
    - log_context_key: The key to use in logging context
    - generate_value(): Method to generate a value if header is missing

    Example:
        class SessionIDMiddleware(HeaderContextMiddleware):
            header_name = "x-session-id"
            state_key = "session_id"
            log_context_key = "session_id"

            def generate_value(self) -> str:
                return str(uuid.uuid4())

    Pure ASGI, so it wraps streaming responses without buffering them.
    """

    header_name: str
    state_key: str
    log_context_key: str

    should_clear_context_on_finish: bool = False

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    @abstractmethod
    def generate_value(self) -> str:
        """Generate a new value when header is not present."""
        ...

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        value = self._extract_or_generate(scope)
        scope.setdefault("state", {})[self.state_key] = value
        set_log_context(**{self.log_context_key: value})

        async def send_with_header(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers.append(self.header_name, value)
            await send(message)

        try:
            await self.app(scope, receive, send_with_header)
        finally:
            if self.should_clear_context_on_finish:
                clear_log_context()

    def _extract_or_generate(self, scope: Scope) -> str:
        # Value already placed in state by an outer middleware wins
        if existing := scope.get("state", {}).get(self.state_key):
            return existing

        for name, raw in scope.get("headers", []):
            if name == self.header_name.encode("latin-1") and raw:
                return raw.decode("latin-1")

        return self.generate_value()


def generate_uuid() -> str:
    """Generate a new UUID v4 string."""
    return str(uuid.uuid4())
