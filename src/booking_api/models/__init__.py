"""API-specific request models.

Domain models (Reservation, PriceBreakdown, etc.) live in booking_engine.models
and are reused as response models.
"""

from booking_api.models.reservations import ReservationCreateRequest, ReservationRespondRequest

__all__ = ["ReservationCreateRequest", "ReservationRespondRequest"]
