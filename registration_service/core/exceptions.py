"""Custom exception classes for the application."""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception.

    All custom exceptions should inherit from this class.
    Follows RFC 7807 Problem Details for HTTP APIs.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message.
        type: Error type identifier (used in RFC 7807 problem details).
        title: Short, human-readable summary of the problem type.
        instance: URI reference that identifies the specific occurrence of the problem.
        extra: Additional context-specific information about the error.

    Example:
            raise AppException(
            status_code=409,
            detail="Customer Jane Doe already exists",
            type="customer-exists",
            extra={"first_name": "Jane", "last_name": "Doe"}
        )
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            status_code: HTTP status code.
            detail: Human-readable error message.
            type: Error type identifier.
            title: Short summary of the problem type.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        """Get default title for HTTP status code."""
        titles = {
            400: "Bad Request",
            404: "Not Found",
            409: "Conflict",
            422: "Unprocessable Entity",
            500: "Internal Server Error",
            502: "Bad Gateway",
            503: "Service Unavailable",
            504: "Gateway Timeout",
        }
        return titles.get(status_code, "Error")


class NotFoundException(AppException):
    """Exception raised when a resource is not found.

    Example:
            raise NotFoundException(
            detail="Customer Jane Doe not found",
            type="customer-not-found",
            extra={"first_name": "Jane", "last_name": "Doe"}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "not-found",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=404,
            detail=detail,
            type=type,
            title="Not Found",
            instance=instance,
            extra=extra,
        )


class ConflictException(AppException):
    """Exception raised when the requested change contradicts current state."""

    def __init__(
        self,
        detail: str,
        type: str = "conflict",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=409,
            detail=detail,
            type=type,
            title="Conflict",
            instance=instance,
            extra=extra,
        )


class ServiceUnavailableException(AppException):
    """Exception raised when the service cannot handle requests yet.

    Raised by dependencies when the registration runtime has not been
    started (or has already been shut down).
    """

    def __init__(
        self,
        detail: str,
        type: str = "service-unavailable",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=503,
            detail=detail,
            type=type,
            title="Service Unavailable",
            instance=instance,
            extra=extra,
        )


class DownstreamError(AppException):
    """Base class for failures talking to a downstream service.

    Attributes:
        service: Logical name of the downstream service.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        service: str,
        type: str,
        title: str,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.service = service
        super().__init__(
            status_code=status_code,
            detail=detail,
            type=type,
            title=title,
            extra={"service": service, **(extra or {})},
        )


class DownstreamTransportError(DownstreamError):
    """The downstream service could not be reached in time.

    Covers connect errors, network errors, HTTP timeouts and failure to
    resolve the service endpoint.
    """

    def __init__(
        self,
        detail: str,
        service: str,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=504,
            detail=detail,
            service=service,
            type="downstream-unavailable",
            title="Gateway Timeout",
            extra=extra,
        )


class DownstreamProtocolError(DownstreamError):
    """The downstream service answered, but not with a usable response.

    Covers non-2xx statuses, undecodable bodies and unexpected body shapes.
    """

    def __init__(
        self,
        detail: str,
        service: str,
        status: int | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.status = status
        payload = dict(extra or {})
        if status is not None:
            payload["downstream_status"] = status
        super().__init__(
            status_code=502,
            detail=detail,
            service=service,
            type="downstream-protocol-error",
            title="Bad Gateway",
            extra=payload,
        )


class InternalServerException(AppException):
    """Exception raised for internal server errors."""

    def __init__(
        self,
        detail: str,
        type: str = "internal-error",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=500,
            detail=detail,
            type=type,
            title="Internal Server Error",
            instance=instance,
            extra=extra,
        )
