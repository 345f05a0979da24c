"""RFC 7807 Problem Details schema for error responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProblemDetails(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    See: https://datatracker.ietf.org/doc/html/rfc7807

    Example:
            return JSONResponse(
            status_code=404,
            content=ProblemDetails(
                type="customer-not-found",
                title="Not Found",
                status=404,
                detail="Customer Jane Doe not found",
                instance="/active"
            ).model_dump(exclude_none=True)
        )
    """

    type: str = Field(
        default="about:blank",
        min_length=1,
        max_length=200,
        description="URI reference identifying the problem type",
    )
    title: str = Field(
        min_length=1, max_length=200, description="Short, human-readable summary of the problem"
    )
    status: int = Field(ge=100, le=599, description="HTTP status code")
    detail: str | None = Field(
        default=None,
        max_length=2000,
        description="Human-readable explanation specific to this occurrence",
    )
    instance: str | None = Field(
        default=None,
        max_length=500,
        description="URI reference identifying the specific occurrence",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "customer-exists",
                "title": "Conflict",
                "status": 409,
                "detail": "Customer Jane Doe already exists",
                "instance": "/register",
            }
        },
        str_strip_whitespace=True,
    )


class FieldError(BaseModel):
    """A single field-level validation failure."""

    field: str = Field(description="Dotted location of the invalid field")
    message: str = Field(description="Validation error message")
    type: str = Field(description="Pydantic error type")
    value: Any | None = Field(default=None, description="Rejected input value")


class ValidationProblemDetails(ProblemDetails):
    """Problem details carrying field-level validation errors."""

    errors: list[FieldError] = Field(default_factory=list)
