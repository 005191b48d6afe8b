"""Enumeration types for booking engine data models."""

from enum import Enum


class ReservationStatus(str, Enum):
    """Status of a reservation."""

    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @property
    def occupies_calendar(self) -> bool:
        """Whether a reservation in this status holds its dates."""
        return self in OCCUPYING_STATUSES

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is possible from this status."""
        return self in TERMINAL_STATUSES


OCCUPYING_STATUSES = frozenset({ReservationStatus.REQUESTED, ReservationStatus.CONFIRMED})
TERMINAL_STATUSES = frozenset(
    {
        ReservationStatus.REJECTED,
        ReservationStatus.CANCELLED,
        ReservationStatus.COMPLETED,
    }
)


class ReservationEventType(str, Enum):
    """Lifecycle events driving the reservation state machine."""

    PROPOSE = "propose"
    OWNER_ACCEPT = "owner_accept"
    OWNER_REJECT = "owner_reject"
    CANCEL = "cancel"
    CHECK_OUT_ELAPSED = "check_out_elapsed"


class DomainEventType(str, Enum):
    """Domain events emitted after a state transition."""

    REQUESTED = "reservation.requested"
    CONFIRMED = "reservation.confirmed"
    REJECTED = "reservation.rejected"
    CANCELLED = "reservation.cancelled"
    COMPLETED = "reservation.completed"


class ActorRole(str, Enum):
    """Role an authenticated caller acts in."""

    GUEST = "guest"
    OWNER = "owner"


class Decision(str, Enum):
    """Owner decision on a pending reservation request."""

    ACCEPT = "accept"
    REJECT = "reject"


class CancellationPolicy(str, Enum):
    """Cancellation policy tier configured on a listing."""

    FLEXIBLE = "flexible"
    MODERATE = "moderate"
    STRICT = "strict"
