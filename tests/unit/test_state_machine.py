"""Unit tests for the reservation state machine."""

import datetime as dt

import pytest

from booking_engine.models import (
    Actor,
    ActorRole,
    DomainEventType,
    InvalidState,
    NotOwner,
    NotParticipant,
    RateConfig,
    Reservation,
    ReservationEventType,
    ReservationStatus,
)
from booking_engine.services.pricing import calculate_price
from booking_engine.services.state_machine import (
    ReservationStateMachine,
    allowed_events,
    cancelling_role,
    next_status,
)
from tests.factories import GUEST_ID, LISTING_ID, OWNER_ID, STAY

NOW = dt.datetime(2026, 7, 1, 12, 0, tzinfo=dt.UTC)


@pytest.fixture
def machine() -> ReservationStateMachine:
    return ReservationStateMachine()


@pytest.fixture
def requested(machine: ReservationStateMachine, rate_config: RateConfig) -> Reservation:
    return machine.propose(
        reservation_id="RES-2026-TEST0001",
        listing_id=LISTING_ID,
        guest_id=GUEST_ID,
        interval=STAY,
        guest_count=3,
        price=calculate_price(rate_config, STAY, 3),
        now=NOW,
    ).reservation


def _with_status(reservation: Reservation, status: ReservationStatus) -> Reservation:
    return reservation.model_copy(update={"status": status})


class TestTransitionTable:
    @pytest.mark.parametrize(
        ("current", "event", "target"),
        [
            (ReservationStatus.REQUESTED, ReservationEventType.OWNER_ACCEPT, ReservationStatus.CONFIRMED),
            (ReservationStatus.REQUESTED, ReservationEventType.OWNER_REJECT, ReservationStatus.REJECTED),
            (ReservationStatus.REQUESTED, ReservationEventType.CANCEL, ReservationStatus.CANCELLED),
            (ReservationStatus.CONFIRMED, ReservationEventType.CANCEL, ReservationStatus.CANCELLED),
            (
                ReservationStatus.CONFIRMED,
                ReservationEventType.CHECK_OUT_ELAPSED,
                ReservationStatus.COMPLETED,
            ),
        ],
    )
    def test_allowed(
        self,
        current: ReservationStatus,
        event: ReservationEventType,
        target: ReservationStatus,
    ) -> None:
        assert next_status(current, event) == target

    @pytest.mark.parametrize(
        "current",
        [ReservationStatus.REJECTED, ReservationStatus.CANCELLED, ReservationStatus.COMPLETED],
    )
    @pytest.mark.parametrize("event", list(ReservationEventType))
    def test_terminal_states_reject_every_event(
        self, current: ReservationStatus, event: ReservationEventType
    ) -> None:
        with pytest.raises(InvalidState) as exc_info:
            next_status(current, event)
        assert exc_info.value.details == {"status": current.value, "event": event.value}

    def test_confirmed_cannot_be_accepted_again(self) -> None:
        with pytest.raises(InvalidState):
            next_status(ReservationStatus.CONFIRMED, ReservationEventType.OWNER_ACCEPT)

    def test_allowed_events(self) -> None:
        assert set(allowed_events(ReservationStatus.CONFIRMED)) == {
            ReservationEventType.CANCEL,
            ReservationEventType.CHECK_OUT_ELAPSED,
        }
        assert allowed_events(ReservationStatus.CANCELLED) == []


class TestPropose:
    def test_creates_requested_record(self, requested: Reservation) -> None:
        assert requested.status == ReservationStatus.REQUESTED
        assert requested.total_price == 3_685_000
        assert requested.price_breakdown is not None
        assert requested.created_at == NOW

    def test_emits_requested_event_with_amount(
        self, machine: ReservationStateMachine, rate_config: RateConfig
    ) -> None:
        transition = machine.propose(
            reservation_id="RES-2026-TEST0002",
            listing_id=LISTING_ID,
            guest_id=GUEST_ID,
            interval=STAY,
            guest_count=2,
            price=calculate_price(rate_config, STAY, 2),
            now=NOW,
        )
        assert transition.event.event_type == DomainEventType.REQUESTED
        assert transition.event.amount == transition.reservation.total_price


class TestOwnerDecision:
    def test_accept(self, machine: ReservationStateMachine, requested: Reservation) -> None:
        owner = Actor(user_id=OWNER_ID, role=ActorRole.OWNER)
        later = NOW + dt.timedelta(hours=1)

        transition = machine.accept(requested, owner, OWNER_ID, later)

        assert transition.reservation.status == ReservationStatus.CONFIRMED
        assert transition.reservation.decided_at == later
        assert transition.event.event_type == DomainEventType.CONFIRMED
        # The previous version is untouched
        assert requested.status == ReservationStatus.REQUESTED

    def test_reject_records_reason(
        self, machine: ReservationStateMachine, requested: Reservation
    ) -> None:
        owner = Actor(user_id=OWNER_ID, role=ActorRole.OWNER)
        transition = machine.reject(requested, owner, OWNER_ID, NOW, "Maintenance")

        assert transition.reservation.status == ReservationStatus.REJECTED
        assert transition.reservation.rejection_reason == "Maintenance"

    def test_guest_cannot_accept(
        self, machine: ReservationStateMachine, requested: Reservation
    ) -> None:
        guest = Actor(user_id=GUEST_ID, role=ActorRole.GUEST)
        with pytest.raises(NotOwner):
            machine.accept(requested, guest, OWNER_ID, NOW)

    def test_authorization_checked_before_state(
        self, machine: ReservationStateMachine, requested: Reservation
    ) -> None:
        stranger = Actor(user_id="stranger", role=ActorRole.OWNER)
        cancelled = _with_status(requested, ReservationStatus.CANCELLED)
        with pytest.raises(NotOwner):
            machine.accept(cancelled, stranger, OWNER_ID, NOW)


class TestCancel:
    def test_guest_cancel(self, machine: ReservationStateMachine, requested: Reservation) -> None:
        guest = Actor(user_id=GUEST_ID, role=ActorRole.GUEST)
        transition = machine.cancel(requested, guest, OWNER_ID, NOW, "Plans changed", 100, 3_685_000)

        cancelled = transition.reservation
        assert cancelled.status == ReservationStatus.CANCELLED
        assert cancelled.cancelled_by == ActorRole.GUEST
        assert cancelled.cancellation_reason == "Plans changed"
        assert cancelled.refund_amount == 3_685_000
        assert transition.event.amount == 3_685_000

    def test_owner_cancel(self, machine: ReservationStateMachine, requested: Reservation) -> None:
        owner = Actor(user_id=OWNER_ID, role=ActorRole.OWNER)
        confirmed = _with_status(requested, ReservationStatus.CONFIRMED)
        transition = machine.cancel(confirmed, owner, OWNER_ID, NOW, None, 100, 3_685_000)
        assert transition.reservation.cancelled_by == ActorRole.OWNER

    def test_stranger_cannot_cancel(
        self, machine: ReservationStateMachine, requested: Reservation
    ) -> None:
        stranger = Actor(user_id="stranger", role=ActorRole.GUEST)
        with pytest.raises(NotParticipant):
            machine.cancel(requested, stranger, OWNER_ID, NOW, None, 0, 0)

    def test_confirmed_after_check_out_cannot_cancel(
        self, machine: ReservationStateMachine, requested: Reservation
    ) -> None:
        guest = Actor(user_id=GUEST_ID, role=ActorRole.GUEST)
        confirmed = _with_status(requested, ReservationStatus.CONFIRMED)
        after_stay = dt.datetime(2026, 7, 19, 12, 0, tzinfo=dt.UTC)

        with pytest.raises(InvalidState) as exc_info:
            machine.cancel(confirmed, guest, OWNER_ID, after_stay, None, 0, 0)
        assert exc_info.value.details["status"] == "completed"

    def test_role_claim_decides_when_guest_owns_listing(self, requested: Reservation) -> None:
        actor = Actor(user_id=GUEST_ID, role=ActorRole.OWNER)
        assert cancelling_role(requested, actor, GUEST_ID) == ActorRole.OWNER


class TestComplete:
    def test_complete_after_check_out(
        self, machine: ReservationStateMachine, requested: Reservation
    ) -> None:
        confirmed = _with_status(requested, ReservationStatus.CONFIRMED)
        at = dt.datetime(2026, 7, 19, 0, 0, tzinfo=dt.UTC)

        transition = machine.complete(confirmed, at)

        assert transition.reservation.status == ReservationStatus.COMPLETED
        assert transition.reservation.completed_at == at
        assert transition.event.event_type == DomainEventType.COMPLETED

    def test_complete_before_check_out(
        self, machine: ReservationStateMachine, requested: Reservation
    ) -> None:
        confirmed = _with_status(requested, ReservationStatus.CONFIRMED)
        with pytest.raises(InvalidState) as exc_info:
            machine.complete(confirmed, dt.datetime(2026, 7, 18, 23, 0, tzinfo=dt.UTC))
        assert exc_info.value.details["check_out"] == "2026-07-19"

    def test_complete_requested_is_invalid(
        self, machine: ReservationStateMachine, requested: Reservation
    ) -> None:
        with pytest.raises(InvalidState):
            machine.complete(requested, dt.datetime(2026, 8, 1, tzinfo=dt.UTC))
