"""Replay of queued Register and Close requests.

Each pass looks at the head of each queue only and calls the unguarded
handler for it. The head is removed once the handler reports ``OK``; any
other result leaves it in place, so later entries are never attempted
before it. What happens to heads that can never succeed is decided by the
terminal policy and ``max_attempts``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from registration_service.core.settings.registration import TerminalPolicy
from registration_service.features.registration.schemas import OperationOutcome
from registration_service.infra.metrics import tracking

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from pydantic import BaseModel

    from registration_service.features.registration.queues import PendingEntry, PendingQueue
    from registration_service.features.registration.service import RegistrationService

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT", bound="BaseModel")


class ReplayResult(StrEnum):
    """What one replay attempt did to the head of a queue."""

    EMPTY = "empty"  # Nothing queued
    REPLAYED = "replayed"  # Handler reported OK, entry removed
    RESOLVED = "resolved"  # Terminal outcome treated as done, entry removed
    DEAD_LETTERED = "dead_lettered"  # Entry moved to the dead-letter list
    RETAINED = "retained"  # Terminal outcome, entry kept at the head
    FAILED = "failed"  # Handler raised, entry kept at the head


@dataclass(frozen=True)
class QueueReplay:
    """Result of replaying the head of one queue."""

    queue: str
    result: ReplayResult
    depth: int
    request: dict[str, Any] | None = None


@dataclass(frozen=True)
class ReplayReport:
    """Results of one replay pass, one item per queue."""

    started_at: datetime
    results: list[QueueReplay] = field(default_factory=list)


@dataclass(frozen=True)
class ReplayTarget(Generic[RequestT]):
    """A queue, the handler that replays its entries and its terminal outcome."""

    queue: PendingQueue[RequestT]
    handler: Callable[[RequestT], Awaitable[OperationOutcome]]
    terminal_outcome: OperationOutcome


class ReplayWorker:
    """Replays the head of the Register and Close queues.

    Args:
        service: Service whose unguarded handlers are replayed.
        terminal_policy: What to do with an entry whose replay reports the
            terminal outcome (``CONFLICT`` for Register, ``NOT_FOUND`` for Close).
        max_attempts: Failed replays after which an entry is dead-lettered.
            None retries forever.
    """

    def __init__(
        self,
        service: RegistrationService,
        *,
        terminal_policy: TerminalPolicy = TerminalPolicy.RESOLVE,
        max_attempts: int | None = None,
    ) -> None:
        if max_attempts is not None and max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)
        self.terminal_policy = terminal_policy
        self.max_attempts = max_attempts
        self.targets: list[ReplayTarget[Any]] = [
            ReplayTarget(service.register_queue, service.register, OperationOutcome.CONFLICT),
            ReplayTarget(service.close_queue, service.close, OperationOutcome.NOT_FOUND),
        ]
        self.passes = 0
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def run_once(self) -> ReplayReport:
        """Replay at most one entry per queue, Register first.

        Passes are serialized: a pass started while another is running
        waits for it and then sees the queues as that pass left them.
        """
        async with self._lock:
            report = ReplayReport(started_at=datetime.now(UTC))
            for target in self.targets:
                report.results.append(await self._replay_head(target))
            self.passes += 1
            return report

    async def wait_idle(self, timeout: float | None = None) -> bool:
        """Wait until no pass is running.

        Returns:
            False if a pass was still running after ``timeout`` seconds.
        """
        try:
            await asyncio.wait_for(self._lock.acquire(), timeout)
        except TimeoutError:
            return False
        self._lock.release()
        return True

    async def _replay_head(self, target: ReplayTarget[Any]) -> QueueReplay:
        queue = target.queue
        entry = queue.peek()
        if entry is None:
            return QueueReplay(queue=queue.name, result=ReplayResult.EMPTY, depth=0)

        request = entry.request.model_dump(mode="json", by_alias=True)
        try:
            outcome = await target.handler(entry.request)
        except Exception as e:
            tracking.track_replay_attempt(queue.name, "error")
            logger.warning(
                "Replay failed, entry stays queued",
                extra={
                    "queue": queue.name,
                    "attempts": entry.attempts + 1,
                    "exception_type": type(e).__name__,
                    "exception_message": str(e),
                },
            )
            result = self._fail(queue, entry, f"{type(e).__name__}: {e}", ReplayResult.FAILED)
            return QueueReplay(queue.name, result, queue.depth(), request)

        tracking.track_replay_attempt(queue.name, outcome.value)

        if outcome is OperationOutcome.OK:
            queue.pop(expected=entry)
            logger.info(
                "Queued request replayed",
                extra={"queue": queue.name, "attempts": entry.attempts + 1},
            )
            return QueueReplay(queue.name, ReplayResult.REPLAYED, queue.depth(), request)

        result = self._apply_terminal_policy(target, entry, outcome)
        return QueueReplay(queue.name, result, queue.depth(), request)

    def _apply_terminal_policy(
        self,
        target: ReplayTarget[Any],
        entry: PendingEntry[Any],
        outcome: OperationOutcome,
    ) -> ReplayResult:
        queue = target.queue
        if outcome is not target.terminal_outcome:
            # Not reachable with the current handlers; keep the entry
            return self._fail(queue, entry, f"unexpected outcome {outcome}", ReplayResult.RETAINED)

        if self.terminal_policy is TerminalPolicy.RESOLVE:
            queue.pop(expected=entry)
            logger.info(
                "Queued request already in its final state, removed",
                extra={"queue": queue.name, "outcome": outcome.value},
            )
            return ReplayResult.RESOLVED

        if self.terminal_policy is TerminalPolicy.DEAD_LETTER:
            queue.dead_letter(entry, reason=outcome.value)
            return ReplayResult.DEAD_LETTERED

        logger.warning(
            "Queued request cannot succeed and stays queued",
            extra={"queue": queue.name, "outcome": outcome.value, "attempts": entry.attempts + 1},
        )
        return self._fail(queue, entry, outcome.value, ReplayResult.RETAINED)

    def _fail(
        self,
        queue: PendingQueue[Any],
        entry: PendingEntry[Any],
        error: str,
        result: ReplayResult,
    ) -> ReplayResult:
        updated = queue.record_failure(entry, error)
        if self.max_attempts is not None and updated.attempts >= self.max_attempts:
            queue.dead_letter(updated, reason="max_attempts")
            return ReplayResult.DEAD_LETTERED
        return result
