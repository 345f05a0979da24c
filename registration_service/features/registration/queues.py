"""In-memory retry queues for deferred downstream operations.

A fallback appends a request at the tail; the replay worker only ever looks
at the head and removes it once the request has been resolved. Entries are
never skipped or reordered.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
import logging
import threading
from typing import Generic, TypeVar

from registration_service.infra.metrics import tracking

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class PendingEntry(Generic[T]):
    """A queued request and its replay bookkeeping."""

    request: T
    enqueued_at: datetime = field(default_factory=_utcnow)
    attempts: int = 0
    last_error: str | None = None


@dataclass(frozen=True)
class DeadLetter(Generic[T]):
    """An entry removed from replay by policy, kept for inspection."""

    entry: PendingEntry[T]
    reason: str
    dead_lettered_at: datetime = field(default_factory=_utcnow)


class PendingQueue(Generic[T]):
    """Unbounded, thread-safe FIFO of pending requests.

    Fallbacks may enqueue from request handlers while the replay worker
    peeks and pops, so every access to the underlying deque holds the lock.
    Dead letters are kept in a separate bounded deque; the oldest is
    dropped when it is full.

    Args:
        name: Queue name used in logs and metrics ("register", "close").
        dead_letter_capacity: Maximum dead letters retained.
    """

    def __init__(self, name: str, dead_letter_capacity: int = 100) -> None:
        if dead_letter_capacity < 1:
            msg = "dead_letter_capacity must be at least 1"
            raise ValueError(msg)
        self.name = name
        self._entries: deque[PendingEntry[T]] = deque()
        self._dead_letters: deque[DeadLetter[T]] = deque(maxlen=dead_letter_capacity)
        self._lock = threading.Lock()
        tracking.update_queue_depth(name, 0)

    def __len__(self) -> int:
        return self.depth()

    def __repr__(self) -> str:
        return f"PendingQueue(name={self.name!r}, depth={self.depth()})"

    def enqueue(self, request: T) -> PendingEntry[T]:
        """Append ``request`` at the tail. Never blocks beyond the lock."""
        entry = PendingEntry(request=request)
        with self._lock:
            self._entries.append(entry)
            depth = len(self._entries)
        tracking.track_enqueue(self.name)
        tracking.update_queue_depth(self.name, depth)
        logger.info(
            "Request queued for replay",
            extra={"queue": self.name, "depth": depth},
        )
        return entry

    def peek(self) -> PendingEntry[T] | None:
        """Return the head entry without removing it, or None when empty."""
        with self._lock:
            return self._entries[0] if self._entries else None

    def pop(self, expected: PendingEntry[T] | None = None) -> PendingEntry[T] | None:
        """Remove and return the head entry.

        Args:
            expected: When given, only pop if the head is still this entry.
                Protects against removing an entry that was not the one
                just replayed.

        Returns:
            The removed entry, or None if the queue was empty or the head
            did not match ``expected``.
        """
        with self._lock:
            if not self._entries:
                return None
            if expected is not None and self._entries[0] is not expected:
                return None
            entry = self._entries.popleft()
            depth = len(self._entries)
        tracking.update_queue_depth(self.name, depth)
        return entry

    def record_failure(self, entry: PendingEntry[T], error: str) -> PendingEntry[T]:
        """Bump the attempt count of the head entry and remember the error.

        The entry keeps its position. Returns the updated entry (or
        ``entry`` unchanged if it is no longer at the head).
        """
        updated = replace(entry, attempts=entry.attempts + 1, last_error=error)
        with self._lock:
            if not self._entries or self._entries[0] is not entry:
                return entry
            self._entries[0] = updated
        return updated

    def dead_letter(self, entry: PendingEntry[T], reason: str) -> DeadLetter[T] | None:
        """Move the head entry to the dead-letter list.

        Returns:
            The dead letter, or None if ``entry`` is no longer at the head.
        """
        if self.pop(expected=entry) is None:
            return None
        letter = DeadLetter(entry=entry, reason=reason)
        with self._lock:
            self._dead_letters.append(letter)
        tracking.track_dead_letter(self.name, reason)
        logger.warning(
            "Request moved to dead letters",
            extra={
                "queue": self.name,
                "reason": reason,
                "attempts": entry.attempts,
                "last_error": entry.last_error,
            },
        )
        return letter

    def depth(self) -> int:
        with self._lock:
            return len(self._entries)

    def snapshot(self) -> list[PendingEntry[T]]:
        """Copy of all pending entries, head first."""
        with self._lock:
            return list(self._entries)

    def dead_letters(self) -> list[DeadLetter[T]]:
        """Copy of retained dead letters, oldest first."""
        with self._lock:
            return list(self._dead_letters)
