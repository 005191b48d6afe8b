"""Reservation endpoints.

Provides REST endpoints for:
- Requesting a stay (guest)
- Accepting or rejecting a request (listing owner)
- Cancelling (guest or owner)
- Reading a reservation and listing guest/owner reservations

Every endpoint requires the x-user-sub header set by the API gateway.
Handlers are plain functions: the engine blocks on per-listing locks, so
FastAPI runs them in its threadpool.
"""

import datetime as dt

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_201_CREATED

from booking_api.dependencies import get_actor, get_engine
from booking_api.models.reservations import (
    ReservationCreateRequest,
    ReservationRespondRequest,
)
from booking_engine.models import (
    Actor,
    CancellationResult,
    DateInterval,
    Reservation,
    ReservationPage,
    ReservationStatus,
)
from booking_engine.services import ReservationEngine
from booking_engine.services.engine import MAX_PAGE_SIZE

router = APIRouter(tags=["reservations"])


@router.post(
    "/reservations",
    summary="Request a reservation",
    description="""
Request a stay at a listing. The dates are held while the owner decides.

**Notes:**
- Availability is re-checked atomically; overlapping requests get 409
- The total price is fixed at request time
- Guest ID is derived from the x-user-sub header
""",
    response_model=Reservation,
    status_code=HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid stay length or guest count"},
        401: {"description": "Authentication required"},
        404: {"description": "Listing not found"},
        409: {"description": "Dates unavailable"},
        503: {"description": "Listing busy, retry"},
    },
)
def create_reservation(
    body: ReservationCreateRequest,
    actor: Actor = Depends(get_actor),
    engine: ReservationEngine = Depends(get_engine),
) -> Reservation:
    interval = DateInterval(check_in=body.check_in, check_out=body.check_out)
    return engine.propose_reservation(
        body.listing_id, actor, interval, body.guest_count, body.guest_details()
    )


@router.get(
    "/reservations",
    summary="Get my reservations",
    description="Reservations made by the calling guest, newest first.",
    response_model=ReservationPage,
    responses={401: {"description": "Authentication required"}},
)
def get_my_reservations(
    status: ReservationStatus | None = Query(
        default=None,
        description="Filter by reservation status",
    ),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=MAX_PAGE_SIZE),
    actor: Actor = Depends(get_actor),
    engine: ReservationEngine = Depends(get_engine),
) -> ReservationPage:
    return engine.list_guest_reservations(actor.user_id, status=status, page=page, limit=limit)


@router.get(
    "/owner/reservations",
    summary="Get reservations for my listings",
    description="""
Reservations across the calling owner's listings, newest first.

Filter by listing, status, or a check-in date window (inclusive).
""",
    response_model=ReservationPage,
    responses={
        401: {"description": "Authentication required"},
        403: {"description": "Listing not owned by caller"},
    },
)
def get_owner_reservations(
    listing_id: str | None = Query(default=None),
    status: ReservationStatus | None = Query(default=None),
    start_date: dt.date | None = Query(default=None, description="Earliest check-in"),
    end_date: dt.date | None = Query(default=None, description="Latest check-in"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=MAX_PAGE_SIZE),
    actor: Actor = Depends(get_actor),
    engine: ReservationEngine = Depends(get_engine),
) -> ReservationPage:
    return engine.list_owner_reservations(
        actor.user_id,
        listing_id=listing_id,
        status=status,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )


@router.get(
    "/reservations/{reservation_id}",
    summary="Get reservation by ID",
    description="Visible to the reservation's guest and the listing owner.",
    response_model=Reservation,
    responses={
        401: {"description": "Authentication required"},
        403: {"description": "Caller is not a participant"},
        404: {"description": "Reservation not found"},
    },
)
def get_reservation(
    reservation_id: str,
    actor: Actor = Depends(get_actor),
    engine: ReservationEngine = Depends(get_engine),
) -> Reservation:
    return engine.get_reservation(reservation_id, actor)


@router.post(
    "/reservations/{reservation_id}/respond",
    summary="Accept or reject a request",
    description="""
Listing owner accepts or rejects a pending request.

Rejection releases the held dates immediately.
""",
    response_model=Reservation,
    responses={
        401: {"description": "Authentication required"},
        403: {"description": "Caller does not own the listing"},
        404: {"description": "Reservation not found"},
        409: {"description": "Reservation is no longer pending"},
        503: {"description": "Listing busy, retry"},
    },
)
def respond_to_request(
    reservation_id: str,
    body: ReservationRespondRequest,
    actor: Actor = Depends(get_actor),
    engine: ReservationEngine = Depends(get_engine),
) -> Reservation:
    return engine.respond_to_request(reservation_id, actor, body.decision, body.reason)


@router.delete(
    "/reservations/{reservation_id}",
    summary="Cancel reservation",
    description="""
Cancel a pending or confirmed reservation (guest or listing owner).

The refund follows the listing's cancellation policy. Default (moderate):
- 7+ days before check-in: Full refund
- 2-6 days before check-in: 50% refund
- Less than 2 days: No refund

**Notes:**
- Cancelled dates become available again
- Completed stays cannot be cancelled
""",
    response_model=CancellationResult,
    responses={
        401: {"description": "Authentication required"},
        403: {"description": "Caller is not a participant"},
        404: {"description": "Reservation not found"},
        409: {"description": "Reservation cannot be cancelled"},
        503: {"description": "Listing busy, retry"},
    },
)
def cancel_reservation(
    reservation_id: str,
    reason: str | None = Query(
        default=None,
        max_length=200,
        description="Reason for cancellation",
    ),
    actor: Actor = Depends(get_actor),
    engine: ReservationEngine = Depends(get_engine),
) -> CancellationResult:
    return engine.cancel_reservation(reservation_id, actor, reason)
