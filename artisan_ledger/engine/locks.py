"""
Per-item exclusive locks.

Multi-item operations take every lock they need in ascending id order before
touching any item, and hold them until the posting is applied. Contention is
the only failure retried internally (bounded, exponential backoff).
"""
import logging
import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List

from artisan_ledger.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)


class ItemLockManager:
    def __init__(self, timeout: float = 2.0, retry_attempts: int = 3, backoff: float = 0.05):
        self.timeout = timeout
        self.retry_attempts = max(1, retry_attempts)
        self.backoff = backoff
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._owners: Dict[str, int] = {}

    def _lock_for(self, item_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(item_id)
            if lock is None:
                lock = self._locks[item_id] = threading.Lock()
            return lock

    def owns(self, item_id: str) -> bool:
        """True when the calling thread currently holds ``item_id``'s lock."""
        return self._owners.get(item_id) == threading.get_ident()

    def _try_acquire(self, item_ids: List[str]) -> List[str]:
        me = threading.get_ident()
        acquired: List[str] = []
        for item_id in item_ids:
            if not self._lock_for(item_id).acquire(timeout=self.timeout):
                self._release(acquired)
                raise TimeoutError(item_id)
            self._owners[item_id] = me
            acquired.append(item_id)
        return acquired

    def _release(self, item_ids: List[str]) -> None:
        for item_id in reversed(item_ids):
            self._owners.pop(item_id, None)
            self._locks[item_id].release()

    @contextmanager
    def hold(self, item_ids: Iterable[str]) -> Iterator[List[str]]:
        """
        Hold the locks for ``item_ids`` for the duration of the block.

        Locks the calling thread already holds are left alone, so nested
        holds over overlapping sets are safe.
        """
        ordered = [i for i in sorted(set(item_ids)) if not self.owns(i)]
        acquired: List[str] = []
        for attempt in range(1, self.retry_attempts + 1):
            try:
                acquired = self._try_acquire(ordered)
                break
            except TimeoutError as e:
                if attempt == self.retry_attempts:
                    logger.error(f"Lock acquisition failed after {attempt} attempts (blocked on {e})")
                    raise LockTimeoutError(ordered, attempt)
                delay = self.backoff * (2 ** (attempt - 1))
                logger.warning(f"Lock contention on {e}, attempt {attempt}, retrying in {delay:.3f}s")
                time.sleep(delay)
        try:
            yield ordered
        finally:
            self._release(acquired)
