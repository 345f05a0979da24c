"""Tests for core exceptions."""

from registration_service.core import exceptions as exc


def test_app_exception_defaults_title() -> None:
    error = exc.AppException(status_code=400, detail="bad")
    assert error.title == "Bad Request"
    assert error.type == "about:blank"
    assert error.extra == {}


def test_not_found_exception_fields() -> None:
    error = exc.NotFoundException(detail="missing", type="customer-not-found")
    assert error.status_code == 404
    assert error.type == "customer-not-found"
    assert error.title == "Not Found"


def test_conflict_exception_fields() -> None:
    error = exc.ConflictException(detail="exists", extra={"first_name": "Jane"})
    assert error.status_code == 409
    assert error.type == "conflict"
    assert error.extra == {"first_name": "Jane"}


def test_transport_error_is_gateway_timeout() -> None:
    error = exc.DownstreamTransportError(detail="refused", service="Customers")
    assert isinstance(error, exc.DownstreamError)
    assert error.status_code == 504
    assert error.type == "downstream-unavailable"
    assert error.extra == {"service": "Customers"}


def test_protocol_error_carries_downstream_status() -> None:
    error = exc.DownstreamProtocolError(
        detail="GET /customers returned 500", service="Customers", status=500,
    )
    assert error.status_code == 502
    assert error.status == 500
    assert error.extra == {"service": "Customers", "downstream_status": 500}
    assert str(error) == "GET /customers returned 500"


def test_service_unavailable_fields() -> None:
    error = exc.ServiceUnavailableException(detail="starting")
    assert error.status_code == 503
    assert error.title == "Service Unavailable"
