"""Guarded operations: a hard timeout with a fallback.

A guarded operation runs a primary coroutine and gives it ``timeout``
seconds. If the primary finishes in time its result is returned. If it
times out, raises one of ``fallback_on``, or the guard is saturated, the
fallback is called with the same arguments and its result is returned
instead. The caller never sees the primary's failure.

There is no shared failure state: every call is judged on its own, and the
counters kept here only feed metrics.

On timeout the primary is abandoned rather than cancelled. The guard stops
waiting, keeps a reference to the task until it finishes and logs how it
ended. An abandoned primary still occupies one of the ``max_concurrent``
slots until it finishes, which bounds how many slow downstream calls can
pile up.

Example:
    >>> guard = GuardedOperation(
    ...     name="register",
    ...     primary=service.register,
    ...     fallback=enqueue_register,
    ...     timeout=0.5,
    ... )
    >>> outcome = await guard(request)
"""

from __future__ import annotations

import asyncio
from enum import StrEnum
import logging
from typing import TYPE_CHECKING, Any, Generic, ParamSpec, TypeVar

from registration_service.infra.metrics.tracking import (
    track_guard_call,
    track_guard_late_completion,
    update_guard_in_flight,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


class GuardOutcome(StrEnum):
    """How a guarded call was resolved."""

    SUCCESS = "success"  # Primary returned in time
    FAILURE = "failure"  # Primary raised, fallback used
    TIMEOUT = "timeout"  # Primary too slow, fallback used
    REJECTED = "rejected"  # Guard saturated, primary never started


class GuardedOperation(Generic[P, T]):
    """Timeout-plus-fallback wrapper around an async callable.

    Attributes:
        name: Identifier used in logs and metrics.
        timeout: Seconds the primary is given to finish.
        max_concurrent: Primaries allowed in flight (abandoned ones included).
        fallback_on: Exception types that trigger the fallback. Others propagate.
        cancel_on_timeout: Cancel the primary on timeout instead of abandoning it.
    """

    def __init__(
        self,
        *,
        name: str,
        primary: Callable[P, Awaitable[T]],
        fallback: Callable[P, Awaitable[T]],
        timeout: float = 0.5,
        max_concurrent: int = 10,
        fallback_on: tuple[type[BaseException], ...] = (Exception,),
        cancel_on_timeout: bool = False,
    ) -> None:
        if timeout <= 0:
            msg = "timeout must be greater than 0"
            raise ValueError(msg)
        if max_concurrent <= 0:
            msg = "max_concurrent must be greater than 0"
            raise ValueError(msg)

        self.name = name
        self.timeout = timeout
        self.max_concurrent = max_concurrent
        self.fallback_on = fallback_on
        self.cancel_on_timeout = cancel_on_timeout
        self._primary = primary
        self._fallback = fallback

        self._in_flight = 0
        self._abandoned: set[asyncio.Future[T]] = set()

        self.total_calls = 0
        self.outcomes: dict[GuardOutcome, int] = dict.fromkeys(GuardOutcome, 0)

        update_guard_in_flight(name, 0)

    def __repr__(self) -> str:
        return (
            f"GuardedOperation(name={self.name!r}, timeout={self.timeout}, "
            f"in_flight={self._in_flight}/{self.max_concurrent})"
        )

    @property
    def in_flight(self) -> int:
        """Primaries currently running, abandoned ones included."""
        return self._in_flight

    @property
    def abandoned(self) -> int:
        """Primaries that timed out and are still running."""
        return len(self._abandoned)

    async def __call__(self, *args: P.args, **kwargs: P.kwargs) -> T:
        self.total_calls += 1

        if self._in_flight >= self.max_concurrent:
            self._record(GuardOutcome.REJECTED)
            logger.warning(
                "Guard saturated, using fallback",
                extra={"guard": self.name, "in_flight": self._in_flight},
            )
            return await self._fallback(*args, **kwargs)

        task = asyncio.ensure_future(self._primary(*args, **kwargs))
        self._in_flight += 1
        update_guard_in_flight(self.name, self._in_flight)
        task.add_done_callback(self._release)

        try:
            result = await asyncio.wait_for(asyncio.shield(task), self.timeout)
        except TimeoutError:
            if task.done():
                # The primary raised TimeoutError itself
                exc = task.exception()
                if not isinstance(exc, self.fallback_on):
                    raise
                return await self._on_failure(exc, *args, **kwargs)
            self._on_timeout(task)
            return await self._fallback(*args, **kwargs)
        except self.fallback_on as exc:
            return await self._on_failure(exc, *args, **kwargs)

        self._record(GuardOutcome.SUCCESS)
        return result

    async def _on_failure(
        self, exc: BaseException | None, *args: P.args, **kwargs: P.kwargs
    ) -> T:
        self._record(GuardOutcome.FAILURE)
        logger.warning(
            "Guarded call failed, using fallback",
            extra={
                "guard": self.name,
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
            },
        )
        return await self._fallback(*args, **kwargs)

    def _on_timeout(self, task: asyncio.Future[T]) -> None:
        self._record(GuardOutcome.TIMEOUT)
        if self.cancel_on_timeout:
            task.cancel()
        else:
            self._abandoned.add(task)
            task.add_done_callback(self._on_late_completion)
        logger.warning(
            "Guarded call timed out, using fallback",
            extra={
                "guard": self.name,
                "timeout": self.timeout,
                "cancelled": self.cancel_on_timeout,
            },
        )

    def _release(self, task: asyncio.Future[Any]) -> None:
        self._in_flight -= 1
        if not task.cancelled():
            # Mark the exception retrieved when nobody awaits the task anymore
            task.exception()
        update_guard_in_flight(self.name, self._in_flight)

    def _on_late_completion(self, task: asyncio.Future[Any]) -> None:
        self._abandoned.discard(task)
        if task.cancelled():
            result = "cancelled"
            logger.info("Abandoned call was cancelled", extra={"guard": self.name})
        elif (exc := task.exception()) is not None:
            result = "error"
            logger.info(
                "Abandoned call failed after timeout",
                extra={
                    "guard": self.name,
                    "exception_type": type(exc).__name__,
                    "exception_message": str(exc),
                },
            )
        else:
            result = "success"
            # The fallback already ran, so the downstream effect may be applied twice
            logger.warning(
                "Abandoned call completed after timeout",
                extra={"guard": self.name, "result": repr(task.result())},
            )
        track_guard_late_completion(self.name, result)

    def _record(self, outcome: GuardOutcome) -> None:
        self.outcomes[outcome] += 1
        track_guard_call(self.name, outcome.value)

    async def wait_abandoned(self, timeout: float | None = None) -> int:
        """Wait for abandoned primaries to finish.

        Args:
            timeout: Maximum seconds to wait, or None to wait indefinitely.

        Returns:
            Number of abandoned primaries still running afterwards.
        """
        if self._abandoned:
            await asyncio.wait(set(self._abandoned), timeout=timeout)
        return len(self._abandoned)

    def get_metrics(self) -> dict[str, Any]:
        """Snapshot of this guard's counters."""
        return {
            "name": self.name,
            "timeout": self.timeout,
            "max_concurrent": self.max_concurrent,
            "in_flight": self._in_flight,
            "abandoned": len(self._abandoned),
            "total_calls": self.total_calls,
            **{f"total_{outcome.value}": count for outcome, count in self.outcomes.items()},
        }
