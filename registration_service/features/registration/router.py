"""Registration API router.

Endpoints:
    POST /register       Register a customer (200 once done or queued, 409)
    POST /active         Activate a customer (200, 404, 409)
    POST /close          Close a customer (200 once done or queued, 404)
    GET  /queues         Retry queue depth, head and dead letters
    POST /queues/replay  Run one replay pass immediately

Successful writes return 200 with an empty body. A 200 from /register or
/close may only mean the request was queued for replay.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Response, status

from registration_service.core.exceptions import ConflictException, NotFoundException
from registration_service.features.registration.dependencies import (  # noqa: TC001
    RegistrationServiceDep,
    ReplayWorkerDep,
)
from registration_service.features.registration.schemas import (
    ActivationRequest,
    CloseRequest,
    DeadLetterView,
    OperationOutcome,
    PendingEntryView,
    QueuesResponse,
    QueueView,
    RegistrationRequest,
    ReplayReportResponse,
    ReplayResultView,
)

if TYPE_CHECKING:
    from registration_service.features.registration.queues import PendingEntry, PendingQueue

logger = logging.getLogger(__name__)

router = APIRouter(tags=["registration"])

_PROBLEM = {"content": {"application/problem+json": {}}}


def _customer_extra(body: Any) -> dict[str, str]:
    return {"first_name": body.first_name, "last_name": body.last_name}


@router.post(
    "/register",
    status_code=status.HTTP_200_OK,
    response_class=Response,
    responses={
        200: {"description": "Customer registered, or queued for registration"},
        409: {"description": "Customer already exists", **_PROBLEM},
    },
    summary="Register a customer",
)
async def register(body: RegistrationRequest, service: RegistrationServiceDep) -> Response:
    """Register a new, inactive customer.

    If the Customers service does not answer in time the request is queued
    and replayed later; the caller still gets 200.

    Example:
        ```bash
        curl -X POST http://localhost:8000/register \\
          -H "Content-Type: application/json" \\
          -d '{"firstName": "Jane", "lastName": "Doe"}'
        ```
    """
    outcome = await service.register_guarded(body)
    if outcome is OperationOutcome.CONFLICT:
        raise ConflictException(
            detail=f"Customer {body.first_name} {body.last_name} is already registered",
            type="customer-exists",
            extra=_customer_extra(body),
        )
    return Response(status_code=status.HTTP_200_OK)


@router.post(
    "/active",
    status_code=status.HTTP_200_OK,
    response_class=Response,
    responses={
        200: {"description": "Customer activated"},
        404: {"description": "Customer not found", **_PROBLEM},
        409: {"description": "Customer already active", **_PROBLEM},
        502: {"description": "Unexpected response from the Customers service", **_PROBLEM},
        504: {"description": "Customers service unavailable", **_PROBLEM},
    },
    summary="Activate a customer",
)
async def activate(body: ActivationRequest, service: RegistrationServiceDep) -> Response:
    """Activate an existing customer.

    Activation is not queued: if the Customers service fails, the error is
    returned to the caller.
    """
    outcome = await service.activate(body)
    if outcome is OperationOutcome.NOT_FOUND:
        raise NotFoundException(
            detail=f"Customer {body.first_name} {body.last_name} not found",
            type="customer-not-found",
            extra=_customer_extra(body),
        )
    if outcome is OperationOutcome.CONFLICT:
        raise ConflictException(
            detail=f"Customer {body.first_name} {body.last_name} is already active",
            type="customer-already-active",
            extra=_customer_extra(body),
        )
    return Response(status_code=status.HTTP_200_OK)


@router.post(
    "/close",
    status_code=status.HTTP_200_OK,
    response_class=Response,
    responses={
        200: {"description": "Customer deleted, or queued for deletion"},
        404: {"description": "Customer not found", **_PROBLEM},
    },
    summary="Close a customer",
)
async def close(body: CloseRequest, service: RegistrationServiceDep) -> Response:
    """Delete a customer.

    If the Customers service does not answer in time the request is queued
    and replayed later; the caller still gets 200.
    """
    outcome = await service.close_guarded(body)
    if outcome is OperationOutcome.NOT_FOUND:
        raise NotFoundException(
            detail=f"Customer {body.first_name} {body.last_name} not found",
            type="customer-not-found",
            extra=_customer_extra(body),
        )
    return Response(status_code=status.HTTP_200_OK)


# ──────────────────────────────────────────────────────────────
# Queue inspection
# ──────────────────────────────────────────────────────────────


def _entry_view(entry: PendingEntry[Any]) -> PendingEntryView:
    return PendingEntryView(
        request=entry.request.model_dump(mode="json", by_alias=True),
        enqueued_at=entry.enqueued_at,
        attempts=entry.attempts,
        last_error=entry.last_error,
    )


def _queue_view(queue: PendingQueue[Any]) -> QueueView:
    head = queue.peek()
    return QueueView(
        name=queue.name,
        depth=queue.depth(),
        head=_entry_view(head) if head is not None else None,
        dead_letters=[
            DeadLetterView(
                **_entry_view(letter.entry).model_dump(),
                reason=letter.reason,
                dead_lettered_at=letter.dead_lettered_at,
            )
            for letter in queue.dead_letters()
        ],
    )


@router.get(
    "/queues",
    response_model=QueuesResponse,
    response_model_by_alias=True,
    summary="Inspect retry queues",
)
async def get_queues(service: RegistrationServiceDep) -> QueuesResponse:
    """Depth, head entry and dead letters of the Register and Close queues."""
    return QueuesResponse(
        register_queue=_queue_view(service.register_queue),
        close=_queue_view(service.close_queue),
    )


@router.post(
    "/queues/replay",
    response_model=ReplayReportResponse,
    response_model_by_alias=True,
    summary="Replay queue heads now",
)
async def replay_queues(worker: ReplayWorkerDep) -> ReplayReportResponse:
    """Run one replay pass outside the schedule and return what it did."""
    report = await worker.run_once()
    logger.info(
        "Manual replay pass completed",
        extra={"results": {r.queue: r.result.value for r in report.results}},
    )
    return ReplayReportResponse(
        started_at=report.started_at,
        results=[
            ReplayResultView(
                queue=r.queue,
                request=r.request,
                result=r.result.value,
                depth=r.depth,
            )
            for r in report.results
        ],
    )
