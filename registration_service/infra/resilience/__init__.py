"""Resilience patterns for handling downstream failures.

- GuardedOperation: hard timeout plus fallback, with a bound on concurrent
  primaries. Used to keep /register and /close answering while the
  Customers service is slow or down.

Example:
    >>> from registration_service.infra.resilience import GuardedOperation
    >>>
    >>> guard = GuardedOperation(
    ...     name="close",
    ...     primary=service.close,
    ...     fallback=enqueue_close,
    ...     timeout=0.5,
    ... )
    >>> outcome = await guard(request)
"""

from __future__ import annotations

from registration_service.infra.resilience.guard import GuardedOperation, GuardOutcome

__all__ = [
    "GuardOutcome",
    "GuardedOperation",
]
