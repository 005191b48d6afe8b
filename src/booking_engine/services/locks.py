"""Per-listing mutual exclusion with bounded waits."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from booking_engine.config import DEFAULT_LOCK_TIMEOUT_SECONDS
from booking_engine.models import LockTimeout
from booking_engine.utils.logging import get_logger

logger = get_logger(__name__)


class ListingLockManager:
    """Hands out one lock per listing.

    Operations on different listings never contend. Acquisition waits at
    most `timeout` seconds and then raises LockTimeout, which callers may
    retry.
    """

    def __init__(self, timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS) -> None:
        """Initialize the lock manager.

        Args:
            timeout: Maximum seconds to wait for a listing's lock
        """
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.timeout = timeout
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, listing_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(listing_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[listing_id] = lock
            return lock

    @contextmanager
    def hold(self, listing_id: str, timeout: float | None = None) -> Iterator[None]:
        """Hold the listing's lock for the duration of the block.

        Args:
            listing_id: Listing to lock
            timeout: Override for the default wait bound

        Raises:
            LockTimeout: The lock was not acquired in time
        """
        wait = self.timeout if timeout is None else timeout
        lock = self._lock_for(listing_id)
        if not lock.acquire(timeout=wait):
            logger.warning(
                "Lock timeout for listing %s after %.2fs", listing_id, wait
            )
            raise LockTimeout(details={"listing_id": listing_id, "timeout_seconds": f"{wait:g}"})
        try:
            yield
        finally:
            lock.release()

    def is_locked(self, listing_id: str) -> bool:
        """Whether the listing's lock is currently held by anyone."""
        with self._registry_lock:
            lock = self._locks.get(listing_id)
        return lock is not None and lock.locked()
