"""Global exception handlers for FastAPI application.

Every error leaves the service as an RFC 7807 problem details document.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from registration_service.core.exceptions import AppException, DownstreamError
from registration_service.core.schemas.problem_details import (
    FieldError,
    ProblemDetails,
    ValidationProblemDetails,
)
from registration_service.infra.metrics import tracking

logger = logging.getLogger(__name__)

PROBLEM_JSON = "application/problem+json"


def _get_request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _problem_response(
    request: Request,
    problem: ProblemDetails,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    """Serialize ``problem`` plus extension members, adding the request id."""
    content = problem.model_dump(exclude_none=True)
    if extra:
        content.update({k: v for k, v in extra.items() if k not in content})
    if request_id := _get_request_id(request):
        content["request_id"] = request_id
    return JSONResponse(
        status_code=problem.status,
        content=jsonable_encoder(content),
        media_type=PROBLEM_JSON,
    )


def _field_errors(errors: list[dict[str, Any]], request: Request) -> list[FieldError]:
    field_errors = []
    for error in errors:
        field_path = ".".join(str(loc) for loc in error["loc"])
        field_errors.append(
            FieldError(
                field=field_path,
                message=error["msg"],
                type=error["type"],
                value=error.get("input"),
            )
        )
        tracking.track_validation_error(request.url.path, field_path)
    return field_errors


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application exceptions, downstream failures included.

    Args:
        request: The FastAPI request object.
        exc: The application exception that was raised.

    Returns:
        JSONResponse with RFC 7807 Problem Details format.
    """
    tracking.track_error(
        error_type=exc.type,
        endpoint=request.url.path,
        status_code=exc.status_code,
        extra={"detail": exc.detail},
    )

    log = logger.error if isinstance(exc, DownstreamError) else logger.warning
    log(
        "Application exception occurred",
        extra={
            "request_id": _get_request_id(request),
            "path": request.url.path,
            "method": request.method,
            "exception_type": exc.type,
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )

    problem = ProblemDetails(
        type=exc.type,
        title=exc.title,
        status=exc.status_code,
        detail=exc.detail,
        instance=exc.instance or request.url.path,
    )
    return _problem_response(request, problem, exc.extra)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors with field-level details (422)."""
    field_errors = _field_errors(list(exc.errors()), request)

    logger.warning(
        "Request validation failed",
        extra={
            "request_id": _get_request_id(request),
            "path": request.url.path,
            "method": request.method,
            "error_count": len(field_errors),
            "errors": [e.model_dump() for e in field_errors],
        },
    )

    problem = ValidationProblemDetails(
        type="validation-error",
        title="Validation Error",
        status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=f"Request validation failed for {len(field_errors)} field(s)",
        instance=request.url.path,
        errors=field_errors,
    )
    return _problem_response(request, problem)


async def pydantic_validation_exception_handler(
    request: Request, exc: PydanticValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors raised outside request parsing."""
    field_errors = _field_errors(list(exc.errors()), request)

    logger.warning(
        "Pydantic validation failed",
        extra={
            "request_id": _get_request_id(request),
            "path": request.url.path,
            "method": request.method,
            "error_count": len(field_errors),
        },
    )

    problem = ValidationProblemDetails(
        type="validation-error",
        title="Validation Error",
        status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=f"Data validation failed for {len(field_errors)} field(s)",
        instance=request.url.path,
        errors=field_errors,
    )
    return _problem_response(request, problem)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions.

    Logs the full traceback and returns a generic 500 without internal details.
    """
    tracking.track_unhandled_exception(
        exception_type=type(exc).__name__,
        endpoint=request.url.path,
    )

    logger.error(
        "Unexpected exception occurred",
        extra={
            "request_id": _get_request_id(request),
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
        },
        exc_info=exc,
    )

    problem = ProblemDetails(
        type="internal-error",
        title="Internal Server Error",
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred while processing your request",
        instance=request.url.path,
    )
    return _problem_response(request, problem)


def configure_exception_handlers(app: FastAPI) -> None:
    """Register the problem details exception handlers on ``app``.

    Example:
        app = FastAPI()
        configure_exception_handlers(app)
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(PydanticValidationError, pydantic_validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers configured")
