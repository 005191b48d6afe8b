"""Reservation models.

A Reservation is immutable: every state transition produces a new version
of the record, and the repository replaces the stored version.
"""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from .enums import ActorRole, ReservationStatus
from .interval import DateInterval
from .pricing import PriceBreakdown


class Actor(BaseModel):
    """Authenticated caller acting on a reservation."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(min_length=1)
    role: ActorRole


class GuestDetails(BaseModel):
    """Contact details and requests the guest gives when booking."""

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=20)
    email: str | None = Field(default=None, max_length=254)
    special_requests: str | None = Field(default=None, max_length=500)


class Reservation(BaseModel):
    """A guest's reservation of a listing for a date range."""

    model_config = ConfigDict(frozen=True)

    reservation_id: str
    listing_id: str
    guest_id: str
    check_in: dt.date
    check_out: dt.date
    guest_count: int = Field(ge=1)
    total_price: int = Field(ge=0)
    price_breakdown: PriceBreakdown | None = None
    guest_details: GuestDetails | None = None
    status: ReservationStatus = ReservationStatus.REQUESTED
    created_at: dt.datetime
    updated_at: dt.datetime
    decided_at: dt.datetime | None = None
    completed_at: dt.datetime | None = None
    rejection_reason: str | None = None
    cancelled_by: ActorRole | None = None
    cancellation_reason: str | None = None
    refund_percentage: int | None = None
    refund_amount: int | None = None

    @property
    def interval(self) -> DateInterval:
        return DateInterval(check_in=self.check_in, check_out=self.check_out)

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def is_stay_over(self, today: dt.date) -> bool:
        """Whether the check-out date has been reached."""
        return today >= self.check_out

    def effective_status(self, today: dt.date) -> ReservationStatus:
        """Status as it should be read on `today`.

        A CONFIRMED stay whose check-out has passed is COMPLETED for read
        purposes even before the completion sweep has recorded it.
        """
        if self.status == ReservationStatus.CONFIRMED and self.is_stay_over(today):
            return ReservationStatus.COMPLETED
        return self.status


class AvailabilityResult(BaseModel):
    """Advisory availability answer for a candidate stay."""

    model_config = ConfigDict(frozen=True)

    listing_id: str
    check_in: dt.date
    check_out: dt.date
    available: bool
    conflicting_intervals: list[DateInterval] = Field(default_factory=list)


class CancellationResult(BaseModel):
    """Outcome of a cancellation, handed to payment processing."""

    model_config = ConfigDict(frozen=True)

    reservation: Reservation
    refund_amount: int = Field(ge=0)
    refund_percentage: int = Field(ge=0, le=100)


class ReservationPage(BaseModel):
    """A page of reservations with total count."""

    items: list[Reservation]
    total: int
    page: int
    total_pages: int
