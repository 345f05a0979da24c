"""Registration operation handlers.

Register, Activate and Close each read the downstream state once, decide
the outcome, and perform at most one write. Register and Close also have
guarded entry points: if the downstream call is too slow or fails, the
request is queued for replay and the caller is told it succeeded.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from registration_service.core.exceptions import DownstreamError, DownstreamProtocolError
from registration_service.features.registration.schemas import (
    ActivationRequest,
    CloseRequest,
    CustomerRecord,
    OperationOutcome,
    RegistrationRequest,
)
from registration_service.infra.resilience import GuardedOperation

if TYPE_CHECKING:
    from registration_service.features.registration.queues import PendingQueue
    from registration_service.infra.external.customers import CustomersAPI

logger = logging.getLogger(__name__)


class RegistrationService:
    """Handlers for customer registration, activation and closing.

    Args:
        customers: Client for the Customers service.
        register_queue: Queue receiving Register requests that could not complete.
        close_queue: Queue receiving Close requests that could not complete.
        guard_timeout: Seconds a guarded downstream call is given.
        guard_max_concurrent: Guarded calls allowed in flight per operation.
        cancel_on_timeout: Cancel timed-out calls instead of abandoning them.
    """

    def __init__(
        self,
        customers: CustomersAPI,
        register_queue: PendingQueue[RegistrationRequest],
        close_queue: PendingQueue[CloseRequest],
        *,
        guard_timeout: float = 0.5,
        guard_max_concurrent: int = 10,
        cancel_on_timeout: bool = False,
    ) -> None:
        self.customers = customers
        self.register_queue = register_queue
        self.close_queue = close_queue

        self.register_guard: GuardedOperation[[RegistrationRequest], OperationOutcome] = (
            GuardedOperation(
                name="register",
                primary=self.register,
                fallback=self._enqueue_register,
                timeout=guard_timeout,
                max_concurrent=guard_max_concurrent,
                cancel_on_timeout=cancel_on_timeout,
            )
        )
        self.close_guard: GuardedOperation[[CloseRequest], OperationOutcome] = GuardedOperation(
            name="close",
            primary=self.close,
            fallback=self._enqueue_close,
            timeout=guard_timeout,
            max_concurrent=guard_max_concurrent,
            cancel_on_timeout=cancel_on_timeout,
        )

    # ──────────────────────────────────────────────────────────────
    # Handlers
    # ──────────────────────────────────────────────────────────────

    async def register(self, request: RegistrationRequest) -> OperationOutcome:
        """Create the customer unless one with the same name exists.

        Names are compared exactly, without normalization. A new customer
        is created inactive and without addresses.

        Returns:
            ``CONFLICT`` if the customer already exists, ``OK`` once created.
        """
        customers = await self.customers.find_customers()
        if any(c.matches(request.first_name, request.last_name) for c in customers):
            logger.info(
                "Customer already registered",
                extra={"first_name": request.first_name, "last_name": request.last_name},
            )
            return OperationOutcome.CONFLICT

        await self.customers.create_customer(
            CustomerRecord(
                first_name=request.first_name,
                last_name=request.last_name,
                active=False,
                addresses=[],
            )
        )
        return OperationOutcome.OK

    async def activate(self, request: ActivationRequest) -> OperationOutcome:
        """Mark the first customer with the given name as active.

        Not guarded and not queued: downstream failures reach the caller.

        Returns:
            ``NOT_FOUND`` if no customer matches, ``CONFLICT`` if the first
            match is already active, ``OK`` once updated.
        """
        try:
            matches = await self.customers.find_customers(
                first_name=request.first_name, last_name=request.last_name,
            )
            if not matches:
                return OperationOutcome.NOT_FOUND

            customer = matches[0]
            if customer.active:
                return OperationOutcome.CONFLICT

            await self.customers.update_customer(customer.model_copy(update={"active": True}))
        except DownstreamError as e:
            logger.warning(
                "Activation failed downstream and will not be retried",
                extra={
                    "first_name": request.first_name,
                    "last_name": request.last_name,
                    "error_type": e.type,
                },
            )
            raise
        return OperationOutcome.OK

    async def close(self, request: CloseRequest) -> OperationOutcome:
        """Delete the first customer with the given name.

        Returns:
            ``NOT_FOUND`` if no customer matches, ``OK`` once deleted.

        Raises:
            DownstreamProtocolError: The match carries no downstream id.
        """
        matches = await self.customers.find_customers(
            first_name=request.first_name, last_name=request.last_name,
        )
        if not matches:
            return OperationOutcome.NOT_FOUND

        customer = matches[0]
        if customer.id is None:
            raise DownstreamProtocolError(
                detail="Customer record has no id",
                service="Customers",
            )
        await self.customers.delete_customer(customer.id)
        return OperationOutcome.OK

    # ──────────────────────────────────────────────────────────────
    # Guarded entry points
    # ──────────────────────────────────────────────────────────────

    async def register_guarded(self, request: RegistrationRequest) -> OperationOutcome:
        """Register, queueing the request if the downstream call does not complete."""
        return await self.register_guard(request)

    async def close_guarded(self, request: CloseRequest) -> OperationOutcome:
        """Close, queueing the request if the downstream call does not complete."""
        return await self.close_guard(request)

    async def _enqueue_register(self, request: RegistrationRequest) -> OperationOutcome:
        self.register_queue.enqueue(request)
        return OperationOutcome.OK

    async def _enqueue_close(self, request: CloseRequest) -> OperationOutcome:
        self.close_queue.enqueue(request)
        return OperationOutcome.OK
