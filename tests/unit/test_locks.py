"""Unit tests for ListingLockManager."""

import threading

import pytest

from booking_engine.models import ErrorCode, LockTimeout
from booking_engine.services.locks import ListingLockManager
from tests.factories import LISTING_ID, OTHER_LISTING_ID


class TestListingLockManager:
    def test_hold_and_release(self) -> None:
        locks = ListingLockManager(timeout=0.1)
        with locks.hold(LISTING_ID):
            assert locks.is_locked(LISTING_ID)
        assert not locks.is_locked(LISTING_ID)

    def test_released_on_exception(self) -> None:
        locks = ListingLockManager(timeout=0.1)
        with pytest.raises(RuntimeError):
            with locks.hold(LISTING_ID):
                raise RuntimeError("boom")
        assert not locks.is_locked(LISTING_ID)

    def test_timeout_raises_retryable_error(self) -> None:
        locks = ListingLockManager(timeout=0.05)
        held = threading.Event()
        release = threading.Event()

        def holder() -> None:
            with locks.hold(LISTING_ID):
                held.set()
                release.wait(2)

        thread = threading.Thread(target=holder)
        thread.start()
        held.wait(2)
        try:
            with pytest.raises(LockTimeout) as exc_info:
                with locks.hold(LISTING_ID):
                    pass
        finally:
            release.set()
            thread.join()

        assert exc_info.value.code == ErrorCode.LOCK_TIMEOUT
        assert exc_info.value.retryable is True
        assert exc_info.value.details["listing_id"] == LISTING_ID

    def test_different_listings_do_not_contend(self) -> None:
        locks = ListingLockManager(timeout=0.05)
        with locks.hold(LISTING_ID):
            with locks.hold(OTHER_LISTING_ID):
                assert locks.is_locked(OTHER_LISTING_ID)

    def test_invalid_timeout(self) -> None:
        with pytest.raises(ValueError):
            ListingLockManager(timeout=0)
