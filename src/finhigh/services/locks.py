"""Process-local per-account locks.

These serialize writers to the same account inside one process. Writers in
other processes are caught by the version compare-and-swap in the recorder.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from ..domain.errors import ConcurrencyConflictError, ConstraintViolationError
from ..logging_config import get_logger

logger = get_logger("services.locks")

T = TypeVar("T")


class AccountLocks:
    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    def _lock_for(self, account_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = self._locks[account_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, account_id: int) -> Iterator[None]:
        """Hold the account's lock, or raise ConcurrencyConflictError on timeout."""
        lock = self._lock_for(account_id)
        if not lock.acquire(timeout=self.timeout):
            raise ConcurrencyConflictError(account_id)
        try:
            yield
        finally:
            lock.release()


def run_serialized(
    locks: AccountLocks,
    account_id: int,
    operation: Callable[[], T],
    *,
    max_retries: int,
    retry_on_constraint: bool = False,
) -> T:
    """Run ``operation`` under the account lock, retrying it on concurrency conflicts.

    Each attempt must be a complete unit of work that starts from a fresh read.
    """
    with locks.hold(account_id):
        for attempt in range(1, max_retries + 1):
            try:
                return operation()
            except (ConcurrencyConflictError, ConstraintViolationError) as exc:
                if isinstance(exc, ConstraintViolationError) and not retry_on_constraint:
                    raise
                logger.warning(
                    "Concurrent write on account, retrying",
                    extra={"account_id": account_id, "attempt": attempt, "error": str(exc)},
                )
                if attempt == max_retries:
                    raise ConcurrencyConflictError(account_id, attempts=attempt) from exc
                time.sleep(min(0.01 * 2 ** (attempt - 1), 0.5))
    raise AssertionError("unreachable")  # pragma: no cover
