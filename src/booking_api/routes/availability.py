"""Availability and pricing endpoints.

Provides REST endpoints for:
- Checking whether a listing is free for a date range
- Quoting the itemized price of a candidate stay

All dates are in YYYY-MM-DD format. Amounts are integers in minor units.
"""

import datetime as dt

from fastapi import APIRouter, Depends, Query

from booking_api.dependencies import get_engine
from booking_engine.models import AvailabilityResult, DateInterval, PriceBreakdown
from booking_engine.services import ReservationEngine

router = APIRouter(tags=["availability"])


@router.get(
    "/listings/{listing_id}/availability",
    summary="Check listing availability",
    description="""
Check whether a listing is free for a date range.

The answer is advisory: a reservation request re-checks availability
atomically, so a free answer here does not guarantee the booking.

**Notes:**
- check_out is exclusive (last night is check_out - 1 day)
- Back-to-back stays never conflict
""",
    response_model=AvailabilityResult,
    responses={
        400: {"description": "Invalid date range or guest count"},
        404: {"description": "Listing not found"},
    },
)
def check_availability(
    listing_id: str,
    check_in: dt.date = Query(..., description="Check-in date (YYYY-MM-DD)"),
    check_out: dt.date = Query(..., description="Check-out date (YYYY-MM-DD)"),
    guest_count: int = Query(default=1, description="Number of guests"),
    engine: ReservationEngine = Depends(get_engine),
) -> AvailabilityResult:
    interval = DateInterval(check_in=check_in, check_out=check_out)
    return engine.check_availability(listing_id, interval, guest_count)


@router.get(
    "/listings/{listing_id}/quote",
    summary="Quote a stay",
    description="""
Calculate the itemized price for a stay without reserving it.

Returns the per-night prices, weekend surcharges, extra guest fee,
service fee and total.
""",
    response_model=PriceBreakdown,
    responses={
        400: {"description": "Stay length or guest count not allowed"},
        404: {"description": "Listing not found"},
    },
)
def quote_price(
    listing_id: str,
    check_in: dt.date = Query(..., description="Check-in date (YYYY-MM-DD)"),
    check_out: dt.date = Query(..., description="Check-out date (YYYY-MM-DD)"),
    guest_count: int = Query(default=1, description="Number of guests"),
    engine: ReservationEngine = Depends(get_engine),
) -> PriceBreakdown:
    interval = DateInterval(check_in=check_in, check_out=check_out)
    return engine.quote_price(listing_id, interval, guest_count)
