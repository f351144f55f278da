"""Per-account serialisation and bounded retry."""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from trustsafety.errors import PersistenceError

logger = logging.getLogger("trustsafety.concurrency")

T = TypeVar("T")


class AccountLocks:
    """One lock per account id.

    Work on the same account runs one at a time; different accounts never
    wait on each other. A lock is dropped once no thread holds or waits on
    it, so the table only contains accounts currently in use.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _acquire_entry(self, account_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = self._locks[account_id] = threading.RLock()
            self._users[account_id] = self._users.get(account_id, 0) + 1
            return lock

    def _release_entry(self, account_id: str) -> None:
        with self._guard:
            self._users[account_id] -= 1
            if not self._users[account_id]:
                del self._users[account_id]
                del self._locks[account_id]

    @contextmanager
    def hold(self, account_id: str) -> Iterator[None]:
        lock = self._acquire_entry(account_id)
        try:
            with lock:
                yield
        finally:
            self._release_entry(account_id)


def with_retry(
    operation: Callable[[], T],
    attempts: int = 3,
    delay: float = 0.05,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run *operation*, retrying ``PersistenceError`` with exponential backoff.

    The last failure is re-raised once *attempts* are used up. Only safe for
    idempotent operations.
    """
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except PersistenceError:
            if attempt == attempts:
                logger.error("Persistence failed after %d attempts", attempts)
                raise
            wait = delay * (2 ** (attempt - 1))
            logger.warning("Persistence attempt %d/%d failed; retrying in %.2fs", attempt, attempts, wait)
            sleep(wait)
    raise AssertionError("unreachable")
