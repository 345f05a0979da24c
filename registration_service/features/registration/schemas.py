"""Pydantic schemas for the registration feature.

Wire format is camelCase JSON on both sides: the inbound API and the
Customers service. Python code uses snake_case attribute names.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_CAMEL = AliasGenerator(validation_alias=to_camel, serialization_alias=to_camel)


class OperationOutcome(StrEnum):
    """Result of an operation handler."""

    OK = "ok"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"


class CamelModel(BaseModel):
    """Base model accepting camelCase or snake_case, serializing camelCase."""

    model_config = ConfigDict(alias_generator=_CAMEL, populate_by_name=True)


# ──────────────────────────────────────────────────────────────
# Downstream records
# ──────────────────────────────────────────────────────────────


class Address(CamelModel):
    """Free-form address owned by the Customers service.

    Unknown fields are kept so that records round-trip unchanged.
    """

    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None

    model_config = ConfigDict(extra="allow")


class CustomerRecord(CamelModel):
    """A customer as stored by the Customers service.

    Identity is the (first_name, last_name) pair; ``id`` is assigned
    downstream and only used for deletion.
    """

    id: int | str | None = None
    first_name: str
    last_name: str
    active: bool = False
    addresses: list[Address] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    def matches(self, first_name: str, last_name: str) -> bool:
        """Exact, case-sensitive identity comparison."""
        return self.first_name == first_name and self.last_name == last_name


# ──────────────────────────────────────────────────────────────
# Inbound requests
# ──────────────────────────────────────────────────────────────


class RegistrationRequest(CamelModel):
    """Payload for POST /register. Immutable so it can sit in a queue."""

    first_name: str = Field(..., min_length=1, max_length=200)
    last_name: str = Field(..., min_length=1, max_length=200)

    model_config = ConfigDict(frozen=True)


class ActivationRequest(CamelModel):
    """Payload for POST /active."""

    first_name: str = Field(..., min_length=1, max_length=200)
    last_name: str = Field(..., min_length=1, max_length=200)
    active: bool = False


class CloseRequest(CamelModel):
    """Payload for POST /close. Immutable so it can sit in a queue."""

    first_name: str = Field(..., min_length=1, max_length=200)
    last_name: str = Field(..., min_length=1, max_length=200)

    model_config = ConfigDict(frozen=True)


# ──────────────────────────────────────────────────────────────
# Queue inspection and replay
# ──────────────────────────────────────────────────────────────


class PendingEntryView(CamelModel):
    """A queued request as shown by GET /queues."""

    request: dict[str, Any]
    enqueued_at: datetime
    attempts: int
    last_error: str | None = None


class DeadLetterView(PendingEntryView):
    """A dead-lettered request and why it was removed from replay."""

    reason: str
    dead_lettered_at: datetime


class QueueView(CamelModel):
    """State of one retry queue."""

    name: str
    depth: int
    head: PendingEntryView | None = None
    dead_letters: list[DeadLetterView] = Field(default_factory=list)


class QueuesResponse(CamelModel):
    """Response of GET /queues."""

    register_queue: QueueView = Field(alias="register")
    close: QueueView


class ReplayResultView(CamelModel):
    """Replay result for one queue."""

    queue: str
    request: dict[str, Any] | None = None
    result: str
    depth: int


class ReplayReportResponse(CamelModel):
    """Response of POST /queues/replay."""

    started_at: datetime
    results: list[ReplayResultView]
