"""Unit tests for the in-memory calendar index."""

from booking_engine.services.calendar import InMemoryCalendarIndex
from tests.factories import LISTING_ID, OTHER_LISTING_ID, interval


class TestInMemoryCalendarIndex:
    def test_empty_listing_is_free(self) -> None:
        calendar = InMemoryCalendarIndex()
        assert calendar.is_free(LISTING_ID, interval("2026-07-01", "2026-07-05"))

    def test_adjacent_intervals_do_not_conflict(self) -> None:
        calendar = InMemoryCalendarIndex()
        calendar.occupy(LISTING_ID, "RES-1", interval("2026-07-01", "2026-07-05"))

        assert calendar.is_free(LISTING_ID, interval("2026-07-05", "2026-07-08"))
        assert calendar.is_free(LISTING_ID, interval("2026-06-28", "2026-07-01"))

    def test_overlap_reported_sorted(self) -> None:
        calendar = InMemoryCalendarIndex()
        calendar.occupy(LISTING_ID, "RES-2", interval("2026-07-10", "2026-07-12"))
        calendar.occupy(LISTING_ID, "RES-1", interval("2026-07-01", "2026-07-05"))

        conflicts = calendar.conflicts(LISTING_ID, interval("2026-07-03", "2026-07-11"))

        assert conflicts == [
            interval("2026-07-01", "2026-07-05"),
            interval("2026-07-10", "2026-07-12"),
        ]

    def test_listings_are_independent(self) -> None:
        calendar = InMemoryCalendarIndex()
        calendar.occupy(LISTING_ID, "RES-1", interval("2026-07-01", "2026-07-05"))
        assert calendar.is_free(OTHER_LISTING_ID, interval("2026-07-01", "2026-07-05"))

    def test_exclude_reservation(self) -> None:
        calendar = InMemoryCalendarIndex()
        calendar.occupy(LISTING_ID, "RES-1", interval("2026-07-01", "2026-07-05"))
        assert calendar.is_free(
            LISTING_ID, interval("2026-07-02", "2026-07-04"), exclude_reservation_id="RES-1"
        )

    def test_release_frees_dates_and_is_idempotent(self) -> None:
        calendar = InMemoryCalendarIndex()
        stay = interval("2026-07-01", "2026-07-05")
        calendar.occupy(LISTING_ID, "RES-1", stay)

        calendar.release(LISTING_ID, "RES-1")
        calendar.release(LISTING_ID, "RES-1")
        calendar.release(OTHER_LISTING_ID, "RES-unknown")

        assert calendar.is_free(LISTING_ID, stay)
