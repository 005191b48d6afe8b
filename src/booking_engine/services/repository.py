"""Reservation storage.

A repository owns both the reservation records and the listing calendars,
so a status write and the matching calendar change happen in one place.
Callers serialize writes per listing through ListingLockManager.
"""

import datetime as dt
import threading
from abc import ABC, abstractmethod

from booking_engine.models import InvalidState, Reservation, ReservationStatus
from booking_engine.services.calendar import CalendarIndex, InMemoryCalendarIndex


class ReservationRepository(ABC):
    """Storage for reservations and their calendar occupancy."""

    calendar: CalendarIndex

    @abstractmethod
    def get(self, reservation_id: str) -> Reservation | None:
        """Get a reservation by ID, or None."""

    @abstractmethod
    def add(self, reservation: Reservation) -> None:
        """Store a new occupying reservation and occupy its dates.

        Raises:
            Unavailable: The storage backend detected an overlapping night
        """

    @abstractmethod
    def replace(self, reservation: Reservation, expected_status: ReservationStatus) -> None:
        """Store a new version of an existing reservation.

        Releases the calendar entry when the new status no longer occupies it.
        The write only succeeds if the stored status is still
        `expected_status`; record and calendar change together or not at all.

        Raises:
            KeyError: No reservation with this ID
            InvalidState: The stored status changed since it was read
        """

    @abstractmethod
    def list_by_listing(self, listing_id: str) -> list[Reservation]:
        """All reservations of a listing, newest first."""

    @abstractmethod
    def list_by_guest(self, guest_id: str) -> list[Reservation]:
        """All reservations made by a guest, newest first."""

    @abstractmethod
    def list_confirmed_due(self, today: dt.date) -> list[Reservation]:
        """CONFIRMED reservations whose check-out is on or before `today`."""


def _newest_first(reservations: list[Reservation]) -> list[Reservation]:
    return sorted(reservations, key=lambda r: (r.created_at, r.reservation_id), reverse=True)


class InMemoryReservationRepository(ReservationRepository):
    """Process-local repository backed by dictionaries."""

    def __init__(self, calendar: CalendarIndex | None = None) -> None:
        self.calendar = calendar or InMemoryCalendarIndex()
        self._records: dict[str, Reservation] = {}
        self._mutex = threading.RLock()

    def get(self, reservation_id: str) -> Reservation | None:
        with self._mutex:
            return self._records.get(reservation_id)

    def add(self, reservation: Reservation) -> None:
        if not reservation.status.occupies_calendar:
            raise ValueError("Only occupying reservations can be added")
        with self._mutex:
            if reservation.reservation_id in self._records:
                raise ValueError(f"Reservation {reservation.reservation_id} already exists")
            self.calendar.occupy(
                reservation.listing_id, reservation.reservation_id, reservation.interval
            )
            self._records[reservation.reservation_id] = reservation

    def replace(self, reservation: Reservation, expected_status: ReservationStatus) -> None:
        with self._mutex:
            stored = self._records.get(reservation.reservation_id)
            if stored is None:
                raise KeyError(reservation.reservation_id)
            if stored.status != expected_status:
                raise InvalidState(
                    details={
                        "reservation_id": reservation.reservation_id,
                        "status": stored.status.value,
                        "expected_status": expected_status.value,
                    }
                )
            if not reservation.status.occupies_calendar:
                self.calendar.release(reservation.listing_id, reservation.reservation_id)
            self._records[reservation.reservation_id] = reservation

    def list_by_listing(self, listing_id: str) -> list[Reservation]:
        with self._mutex:
            found = [r for r in self._records.values() if r.listing_id == listing_id]
        return _newest_first(found)

    def list_by_guest(self, guest_id: str) -> list[Reservation]:
        with self._mutex:
            found = [r for r in self._records.values() if r.guest_id == guest_id]
        return _newest_first(found)

    def list_confirmed_due(self, today: dt.date) -> list[Reservation]:
        with self._mutex:
            return [
                r
                for r in self._records.values()
                if r.status == ReservationStatus.CONFIRMED and r.check_out <= today
            ]
