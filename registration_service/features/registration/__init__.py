"""Customer registration with deferred retry of downstream writes."""

from __future__ import annotations

from .queues import DeadLetter, PendingEntry, PendingQueue
from .replay import ReplayReport, ReplayResult, ReplayWorker
from .runtime import RegistrationRuntime
from .schemas import (
    ActivationRequest,
    CloseRequest,
    CustomerRecord,
    OperationOutcome,
    RegistrationRequest,
)
from .service import RegistrationService

__all__ = [
    "ActivationRequest",
    "CloseRequest",
    "CustomerRecord",
    "DeadLetter",
    "OperationOutcome",
    "PendingEntry",
    "PendingQueue",
    "RegistrationRequest",
    "RegistrationRuntime",
    "RegistrationService",
    "ReplayReport",
    "ReplayResult",
    "ReplayWorker",
]
