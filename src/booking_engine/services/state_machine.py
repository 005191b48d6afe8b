"""Reservation lifecycle state machine.

Transition table:

    (none)                 --propose-->            REQUESTED
    REQUESTED              --owner_accept-->       CONFIRMED
    REQUESTED              --owner_reject-->       REJECTED
    REQUESTED | CONFIRMED  --cancel-->             CANCELLED
    CONFIRMED              --check_out_elapsed-->  COMPLETED

REJECTED, CANCELLED and COMPLETED are terminal. A rejected transition
raises before anything is built, so the stored record is never touched.
The machine only produces new record versions; persisting them together
with the calendar change is the engine's job.
"""

import datetime as dt
from typing import Any, NamedTuple

from booking_engine.models import (
    Actor,
    ActorRole,
    DateInterval,
    DomainEventType,
    GuestDetails,
    InvalidState,
    NotOwner,
    NotParticipant,
    PriceBreakdown,
    Reservation,
    ReservationEvent,
    ReservationEventType,
    ReservationStatus,
)

_TRANSITIONS: dict[tuple[ReservationStatus, ReservationEventType], ReservationStatus] = {
    (ReservationStatus.REQUESTED, ReservationEventType.OWNER_ACCEPT): ReservationStatus.CONFIRMED,
    (ReservationStatus.REQUESTED, ReservationEventType.OWNER_REJECT): ReservationStatus.REJECTED,
    (ReservationStatus.REQUESTED, ReservationEventType.CANCEL): ReservationStatus.CANCELLED,
    (ReservationStatus.CONFIRMED, ReservationEventType.CANCEL): ReservationStatus.CANCELLED,
    (
        ReservationStatus.CONFIRMED,
        ReservationEventType.CHECK_OUT_ELAPSED,
    ): ReservationStatus.COMPLETED,
}

_DOMAIN_EVENTS: dict[ReservationStatus, DomainEventType] = {
    ReservationStatus.REQUESTED: DomainEventType.REQUESTED,
    ReservationStatus.CONFIRMED: DomainEventType.CONFIRMED,
    ReservationStatus.REJECTED: DomainEventType.REJECTED,
    ReservationStatus.CANCELLED: DomainEventType.CANCELLED,
    ReservationStatus.COMPLETED: DomainEventType.COMPLETED,
}


class Transition(NamedTuple):
    """A new reservation version and the event announcing it."""

    reservation: Reservation
    event: ReservationEvent


def next_status(
    current: ReservationStatus,
    event: ReservationEventType,
) -> ReservationStatus:
    """Look up the target status for an event.

    Raises:
        InvalidState: The event is not allowed from `current`
    """
    target = _TRANSITIONS.get((current, event))
    if target is None:
        raise InvalidState(details={"status": current.value, "event": event.value})
    return target


def allowed_events(current: ReservationStatus) -> list[ReservationEventType]:
    """Events that may be applied to a reservation in `current` status."""
    return [event for (status, event) in _TRANSITIONS if status == current]


def cancelling_role(reservation: Reservation, actor: Actor, owner_id: str) -> ActorRole:
    """Resolve which party is cancelling.

    When the same user is both guest and owner, the role the actor claims
    decides.

    Raises:
        NotParticipant: The actor is neither the guest nor the owner
    """
    is_guest = actor.user_id == reservation.guest_id
    is_owner = actor.user_id == owner_id
    if is_guest and is_owner:
        return actor.role
    if is_guest:
        return ActorRole.GUEST
    if is_owner:
        return ActorRole.OWNER
    raise NotParticipant(
        details={"reservation_id": reservation.reservation_id, "actor_id": actor.user_id}
    )


class ReservationStateMachine:
    """Applies lifecycle events to reservations."""

    def _apply(
        self,
        reservation: Reservation,
        event: ReservationEventType,
        now: dt.datetime,
        actor_id: str | None = None,
        amount: int | None = None,
        **updates: Any,
    ) -> Transition:
        target = next_status(reservation.status, event)
        updated = reservation.model_copy(
            update={"status": target, "updated_at": now, **updates}
        )
        return Transition(updated, self._event_for(updated, now, actor_id, amount))

    def _event_for(
        self,
        reservation: Reservation,
        now: dt.datetime,
        actor_id: str | None,
        amount: int | None,
    ) -> ReservationEvent:
        return ReservationEvent(
            event_type=_DOMAIN_EVENTS[reservation.status],
            reservation_id=reservation.reservation_id,
            listing_id=reservation.listing_id,
            guest_id=reservation.guest_id,
            status=reservation.status,
            actor_id=actor_id,
            amount=amount,
            occurred_at=now,
        )

    def propose(
        self,
        reservation_id: str,
        listing_id: str,
        guest_id: str,
        interval: DateInterval,
        guest_count: int,
        price: PriceBreakdown,
        now: dt.datetime,
        guest_details: GuestDetails | None = None,
    ) -> Transition:
        """Create the initial REQUESTED record.

        Availability and pricing guards are checked by the caller before
        this is invoked.
        """
        reservation = Reservation(
            reservation_id=reservation_id,
            listing_id=listing_id,
            guest_id=guest_id,
            check_in=interval.check_in,
            check_out=interval.check_out,
            guest_count=guest_count,
            total_price=price.total,
            price_breakdown=price,
            guest_details=guest_details,
            status=ReservationStatus.REQUESTED,
            created_at=now,
            updated_at=now,
        )
        return Transition(reservation, self._event_for(reservation, now, guest_id, price.total))

    def accept(
        self,
        reservation: Reservation,
        actor: Actor,
        owner_id: str,
        now: dt.datetime,
    ) -> Transition:
        """Owner accepts a pending request."""
        self._require_owner(reservation, actor, owner_id)
        return self._apply(
            reservation,
            ReservationEventType.OWNER_ACCEPT,
            now,
            actor_id=actor.user_id,
            decided_at=now,
        )

    def reject(
        self,
        reservation: Reservation,
        actor: Actor,
        owner_id: str,
        now: dt.datetime,
        reason: str | None = None,
    ) -> Transition:
        """Owner declines a pending request."""
        self._require_owner(reservation, actor, owner_id)
        return self._apply(
            reservation,
            ReservationEventType.OWNER_REJECT,
            now,
            actor_id=actor.user_id,
            decided_at=now,
            rejection_reason=reason,
        )

    def cancel(
        self,
        reservation: Reservation,
        actor: Actor,
        owner_id: str,
        now: dt.datetime,
        reason: str | None,
        refund_percentage: int,
        refund_amount: int,
    ) -> Transition:
        """Guest or owner cancels a pending or confirmed reservation.

        A CONFIRMED stay whose check-out has passed counts as COMPLETED and
        cannot be cancelled.
        """
        role = cancelling_role(reservation, actor, owner_id)
        if reservation.effective_status(now.date()) != reservation.status:
            raise InvalidState(
                details={
                    "status": ReservationStatus.COMPLETED.value,
                    "event": ReservationEventType.CANCEL.value,
                }
            )
        return self._apply(
            reservation,
            ReservationEventType.CANCEL,
            now,
            actor_id=actor.user_id,
            amount=refund_amount,
            decided_at=now,
            cancelled_by=role,
            cancellation_reason=reason,
            refund_percentage=refund_percentage,
            refund_amount=refund_amount,
        )

    def complete(self, reservation: Reservation, now: dt.datetime) -> Transition:
        """Time-driven completion once check-out has passed."""
        if not reservation.is_stay_over(now.date()):
            # Terminal records report their own status first
            next_status(reservation.status, ReservationEventType.CHECK_OUT_ELAPSED)
            raise InvalidState(
                details={
                    "status": reservation.status.value,
                    "event": ReservationEventType.CHECK_OUT_ELAPSED.value,
                    "check_out": reservation.check_out.isoformat(),
                }
            )
        return self._apply(
            reservation,
            ReservationEventType.CHECK_OUT_ELAPSED,
            now,
            completed_at=now,
        )

    def _require_owner(self, reservation: Reservation, actor: Actor, owner_id: str) -> None:
        if actor.user_id != owner_id:
            raise NotOwner(
                details={
                    "reservation_id": reservation.reservation_id,
                    "actor_id": actor.user_id,
                }
            )
