"""Pydantic models for booking engine data entities."""

from .enums import (
    OCCUPYING_STATUSES,
    TERMINAL_STATUSES,
    ActorRole,
    CancellationPolicy,
    Decision,
    DomainEventType,
    ReservationEventType,
    ReservationStatus,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    BookingError,
    ErrorCode,
    ErrorResponse,
    GuestCountExceeded,
    InvalidStayLength,
    InvalidState,
    ListingNotFound,
    LockTimeout,
    NotOwner,
    NotParticipant,
    ReservationNotFound,
    Unavailable,
)
from .events import ReservationEvent
from .interval import DateInterval
from .listing import DEFAULT_WEEKEND_DAYS, RateConfig
from .pricing import NightlyPrice, PriceBreakdown
from .reservation import (
    Actor,
    AvailabilityResult,
    CancellationResult,
    GuestDetails,
    Reservation,
    ReservationPage,
)

__all__ = [
    # Enums
    "ActorRole",
    "CancellationPolicy",
    "Decision",
    "DomainEventType",
    "OCCUPYING_STATUSES",
    "ReservationEventType",
    "ReservationStatus",
    "TERMINAL_STATUSES",
    # Listing
    "DEFAULT_WEEKEND_DAYS",
    "RateConfig",
    # Interval
    "DateInterval",
    # Pricing
    "NightlyPrice",
    "PriceBreakdown",
    # Reservation
    "Actor",
    "AvailabilityResult",
    "CancellationResult",
    "GuestDetails",
    "Reservation",
    "ReservationPage",
    # Events
    "ReservationEvent",
    # Errors
    "BookingError",
    "ErrorCode",
    "ErrorResponse",
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "GuestCountExceeded",
    "InvalidStayLength",
    "InvalidState",
    "ListingNotFound",
    "LockTimeout",
    "NotOwner",
    "NotParticipant",
    "ReservationNotFound",
    "Unavailable",
]
