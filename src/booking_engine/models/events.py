"""Domain events emitted after reservation state transitions."""

import datetime as dt
import uuid

from pydantic import BaseModel, ConfigDict, Field

from .enums import DomainEventType, ReservationStatus


class ReservationEvent(BaseModel):
    """Something that happened to a reservation.

    `amount` is the total to charge for `reservation.requested` and the
    refund for `reservation.cancelled`; other events carry None.
    """

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: f"EVT-{uuid.uuid4().hex[:12].upper()}")
    event_type: DomainEventType
    reservation_id: str
    listing_id: str
    guest_id: str
    status: ReservationStatus
    actor_id: str | None = None
    amount: int | None = None
    occurred_at: dt.datetime
