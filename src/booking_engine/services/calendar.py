"""Calendar index of occupied date intervals per listing.

The index only holds reservations in an occupying status (REQUESTED or
CONFIRMED). Callers must hold the listing's lock around any
is_free -> occupy sequence, otherwise two overlapping intervals can both
pass the check.
"""

import threading
from abc import ABC, abstractmethod

from booking_engine.models import DateInterval


class CalendarIndex(ABC):
    """Answers overlap queries for a listing's occupied intervals."""

    @abstractmethod
    def conflicts(
        self,
        listing_id: str,
        interval: DateInterval,
        exclude_reservation_id: str | None = None,
    ) -> list[DateInterval]:
        """Return occupied intervals overlapping `interval`, sorted by check-in."""

    @abstractmethod
    def occupy(self, listing_id: str, reservation_id: str, interval: DateInterval) -> None:
        """Mark `interval` as occupied by the reservation."""

    @abstractmethod
    def release(self, listing_id: str, reservation_id: str) -> None:
        """Remove the reservation's interval. Releasing twice is a no-op."""

    def is_free(
        self,
        listing_id: str,
        interval: DateInterval,
        exclude_reservation_id: str | None = None,
    ) -> bool:
        """Whether no occupied interval overlaps `interval`.

        Args:
            listing_id: Listing to check
            interval: Candidate stay
            exclude_reservation_id: Reservation to ignore (re-validating itself)

        Returns:
            True if the interval is free
        """
        return not self.conflicts(listing_id, interval, exclude_reservation_id)


class InMemoryCalendarIndex(CalendarIndex):
    """Process-local calendar index.

    The internal mutex only protects the dictionaries themselves; it does
    not replace the per-listing lock for check-then-occupy sequences.
    """

    def __init__(self) -> None:
        self._intervals: dict[str, dict[str, DateInterval]] = {}
        self._mutex = threading.Lock()

    def conflicts(
        self,
        listing_id: str,
        interval: DateInterval,
        exclude_reservation_id: str | None = None,
    ) -> list[DateInterval]:
        with self._mutex:
            occupied = list(self._intervals.get(listing_id, {}).items())

        found = [
            other
            for reservation_id, other in occupied
            if reservation_id != exclude_reservation_id and other.overlaps(interval)
        ]
        return sorted(found, key=lambda i: (i.check_in, i.check_out))

    def occupy(self, listing_id: str, reservation_id: str, interval: DateInterval) -> None:
        with self._mutex:
            self._intervals.setdefault(listing_id, {})[reservation_id] = interval

    def release(self, listing_id: str, reservation_id: str) -> None:
        with self._mutex:
            listing = self._intervals.get(listing_id)
            if listing is not None:
                listing.pop(reservation_id, None)
                if not listing:
                    del self._intervals[listing_id]

    def occupied(self, listing_id: str) -> dict[str, DateInterval]:
        """Snapshot of reservation_id -> interval for a listing."""
        with self._mutex:
            return dict(self._intervals.get(listing_id, {}))
