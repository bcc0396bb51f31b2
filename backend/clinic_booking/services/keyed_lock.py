"""
Per-key mutual exclusion for the booking write path.

Bookings for the same (doctor, date) must run "read max sequence, insert"
one at a time, while different keys proceed in parallel. The registry is
process-wide. Across processes the PostgreSQL advisory lock taken in
``BookingRepository.lock_next_sequence_number`` serializes the same key, and
the unique indexes on ``bookings`` reject anything that slips through.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, List, Optional

logger = logging.getLogger(__name__)


class LockTimeoutError(Exception):
    """Raised when a key lock cannot be acquired in time."""


class KeyedLock:
    """A registry of mutexes created on demand and dropped when idle."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        # key -> [lock, holders + waiters]
        self._entries: Dict[Hashable, List] = {}

    @contextmanager
    def hold(self, key: Hashable, timeout: Optional[float] = None) -> Iterator[None]:
        with self._guard:
            entry = self._entries.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        lock = entry[0]

        acquired = lock.acquire(timeout=timeout if timeout is not None else -1)
        try:
            if not acquired:
                logger.warning(
                    "Timed out waiting for booking lock",
                    extra={"context": {"key": repr(key), "timeout": timeout}},
                )
                raise LockTimeoutError(f"Timed out waiting for lock {key!r}")
            yield
        finally:
            if acquired:
                lock.release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[key]

    def active_keys(self) -> int:
        with self._guard:
            return len(self._entries)


# Shared by every allocator in the process
booking_locks = KeyedLock()
