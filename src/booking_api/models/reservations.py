"""API models for reservation endpoints.

Responses reuse the engine's models directly; only request bodies live here.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from booking_engine.models import Decision, GuestDetails


class ReservationCreateRequest(BaseModel):
    """Request to reserve a listing.

    Guest ID is not included - it's derived from the x-user-sub header.
    """

    model_config = ConfigDict(
        # Note: strict=False allows string-to-date coercion from JSON
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "listing_id": "LST-001",
                    "check_in": "2026-07-16",
                    "check_out": "2026-07-19",
                    "guest_count": 3,
                    "guest_name": "Sara Ahmadi",
                    "special_requests": "Late check-in around 22:00",
                }
            ]
        },
    )

    listing_id: str = Field(..., min_length=1, description="Listing to reserve")
    check_in: date = Field(..., description="Check-in date (YYYY-MM-DD)")
    check_out: date = Field(
        ...,
        description="Check-out date (YYYY-MM-DD), exclusive",
    )
    guest_count: int = Field(..., description="Number of guests")
    guest_name: str | None = Field(default=None, max_length=100)
    guest_phone: str | None = Field(default=None, max_length=20)
    guest_email: str | None = Field(default=None, max_length=254)
    special_requests: str | None = Field(
        default=None,
        max_length=500,
        description="Free-text requests shown to the owner",
    )

    def guest_details(self) -> GuestDetails | None:
        """Contact details and requests, or None when none were given."""
        details = GuestDetails(
            name=self.guest_name,
            phone=self.guest_phone,
            email=self.guest_email,
            special_requests=self.special_requests,
        )
        return details if details.model_dump(exclude_none=True) else None


class ReservationRespondRequest(BaseModel):
    """Owner's decision on a pending request."""

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={
            "examples": [
                {"decision": "accept"},
                {"decision": "reject", "reason": "Property unavailable for maintenance"},
            ]
        },
    )

    decision: Decision
    reason: str | None = Field(
        default=None,
        max_length=500,
        description="Rejection reason shown to the guest",
    )
