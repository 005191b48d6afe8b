"""Shared test data: identifiers, a reference stay and a controllable clock."""

import datetime as dt
from typing import Any

from booking_engine.models import DateInterval

LISTING_ID = "LST-001"
OTHER_LISTING_ID = "LST-002"
OWNER_ID = "owner-1"
GUEST_ID = "guest-1"
OTHER_GUEST_ID = "guest-2"


def interval(check_in: str, check_out: str) -> DateInterval:
    """Build a DateInterval from ISO date strings."""
    return DateInterval(
        check_in=dt.date.fromisoformat(check_in),
        check_out=dt.date.fromisoformat(check_out),
    )


# Thursday 2026-07-16 to Sunday 2026-07-19: three nights, one of them Saturday
STAY = interval("2026-07-16", "2026-07-19")


class FakeClock:
    """Clock returning a settable timezone-aware datetime."""

    def __init__(self, now: dt.datetime) -> None:
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now += dt.timedelta(**kwargs)

    def set_date(self, day: dt.date) -> None:
        self.now = dt.datetime.combine(day, dt.time(12, 0), tzinfo=dt.UTC)


# Identity headers normally injected by the API gateway
GUEST_HEADERS = {"x-user-sub": GUEST_ID, "x-user-role": "guest"}
OTHER_GUEST_HEADERS = {"x-user-sub": OTHER_GUEST_ID, "x-user-role": "guest"}
OWNER_HEADERS = {"x-user-sub": OWNER_ID, "x-user-role": "owner"}
