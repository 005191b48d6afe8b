"""Reservation engine: the public entry point for booking operations.

Every write follows the same shape:

    acquire listing lock -> re-read/re-check -> state machine -> repository
    -> release lock -> publish event -> notify payments

Only the check-and-mutate step runs under the lock. Events and
payment calls happen afterwards and cannot undo a committed transition.
"""

import datetime as dt
import math
import uuid
from collections.abc import Callable

from booking_engine.config import EngineSettings
from booking_engine.models import (
    Actor,
    AvailabilityResult,
    BookingError,
    CancellationResult,
    DateInterval,
    Decision,
    GuestDetails,
    InvalidState,
    LockTimeout,
    NotOwner,
    NotParticipant,
    PriceBreakdown,
    Reservation,
    ReservationEvent,
    ReservationNotFound,
    ReservationPage,
    ReservationStatus,
    Unavailable,
)
from booking_engine.services.collaborators import (
    EventDispatcher,
    ListingStore,
    PaymentCollaborator,
)
from booking_engine.services.locks import ListingLockManager
from booking_engine.services.pricing import PricingCalculator, validate_guest_count
from booking_engine.services.refund_policy_service import RefundPolicyService
from booking_engine.services.repository import (
    InMemoryReservationRepository,
    ReservationRepository,
)
from booking_engine.services.state_machine import ReservationStateMachine, Transition
from booking_engine.utils.logging import get_logger, log_reservation_operation

logger = get_logger(__name__)

Clock = Callable[[], dt.datetime]

MAX_PAGE_SIZE = 50


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


def _generate_reservation_id(now: dt.datetime) -> str:
    """Generate a unique reservation ID like RES-2026-1A2B3C4D."""
    return f"RES-{now.year}-{uuid.uuid4().hex[:8].upper()}"


def _paginate(items: list[Reservation], page: int, limit: int) -> ReservationPage:
    if page < 1:
        raise ValueError("page must be >= 1")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    start = (page - 1) * limit
    return ReservationPage(
        items=items[start : start + limit],
        total=len(items),
        page=page,
        total_pages=math.ceil(len(items) / limit),
    )


class ReservationEngine:
    """Availability, pricing and lifecycle operations for reservations."""

    def __init__(
        self,
        listings: ListingStore,
        repository: ReservationRepository | None = None,
        *,
        locks: ListingLockManager | None = None,
        pricing: PricingCalculator | None = None,
        refund_policy: RefundPolicyService | None = None,
        events: EventDispatcher | None = None,
        payments: PaymentCollaborator | None = None,
        clock: Clock = utc_now,
        settings: EngineSettings | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            listings: Read-only listing accessor
            repository: Reservation storage (in-memory by default)
            locks: Per-listing lock manager
            pricing: Pricing calculator
            refund_policy: Refund policy service
            events: Domain event dispatcher
            payments: Payment collaborator, or None to skip payment calls
            clock: Returns the current timezone-aware datetime
            settings: Engine settings used for defaults
        """
        settings = settings or EngineSettings()
        self.listings = listings
        self.repository = repository or InMemoryReservationRepository()
        self.locks = locks or ListingLockManager(settings.lock_timeout_seconds)
        self.pricing = pricing or PricingCalculator(settings.service_fee_bps)
        self.refund_policy = refund_policy or RefundPolicyService()
        self.state_machine = ReservationStateMachine()
        self.events = events or EventDispatcher()
        self.payments = payments
        self.clock = clock

    # =========================================================================
    # Queries
    # =========================================================================

    def check_availability(
        self,
        listing_id: str,
        interval: DateInterval,
        guest_count: int,
    ) -> AvailabilityResult:
        """Advisory availability check.

        Runs without the listing lock. propose_reservation re-checks under
        the lock, so a stale answer here can never cause a double booking.

        Raises:
            ListingNotFound, GuestCountExceeded
        """
        rate = self.listings.get_rate_config(listing_id)
        validate_guest_count(rate, guest_count)
        conflicts = self.repository.calendar.conflicts(listing_id, interval)
        return AvailabilityResult(
            listing_id=listing_id,
            check_in=interval.check_in,
            check_out=interval.check_out,
            available=not conflicts,
            conflicting_intervals=conflicts,
        )

    def quote_price(
        self,
        listing_id: str,
        interval: DateInterval,
        guest_count: int,
    ) -> PriceBreakdown:
        """Price a candidate stay without reserving anything."""
        rate = self.listings.get_rate_config(listing_id)
        return self.pricing.calculate_price(rate, interval, guest_count)

    def get_reservation(self, reservation_id: str, actor: Actor) -> Reservation:
        """Get a reservation visible to its guest or the listing owner.

        Raises:
            ReservationNotFound, NotParticipant
        """
        reservation = self._require(reservation_id)
        owner_id = self.listings.get_owner_id(reservation.listing_id)
        if actor.user_id not in (reservation.guest_id, owner_id):
            raise NotParticipant(
                details={"reservation_id": reservation_id, "actor_id": actor.user_id}
            )
        return self._for_read(reservation, self.clock().date())

    def list_guest_reservations(
        self,
        guest_id: str,
        status: ReservationStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> ReservationPage:
        """Reservations made by a guest, newest first."""
        today = self.clock().date()
        items = [self._for_read(r, today) for r in self.repository.list_by_guest(guest_id)]
        if status is not None:
            items = [r for r in items if r.status == status]
        return _paginate(items, page, limit)

    def list_owner_reservations(
        self,
        owner_id: str,
        listing_id: str | None = None,
        status: ReservationStatus | None = None,
        start_date: dt.date | None = None,
        end_date: dt.date | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> ReservationPage:
        """Reservations across an owner's listings, newest first.

        Args:
            owner_id: Listing owner
            listing_id: Restrict to one listing (must be owned)
            status: Filter by (effective) status
            start_date: Earliest check-in date, inclusive
            end_date: Latest check-in date, inclusive
            page: 1-based page number
            limit: Page size (1-50)

        Raises:
            NotOwner: `listing_id` is not owned by `owner_id`
        """
        listing_ids = self.listings.get_listing_ids_for_owner(owner_id)
        if listing_id is not None:
            if listing_id not in listing_ids:
                raise NotOwner(details={"listing_id": listing_id, "actor_id": owner_id})
            listing_ids = [listing_id]

        today = self.clock().date()
        items: list[Reservation] = []
        for lid in listing_ids:
            items.extend(self._for_read(r, today) for r in self.repository.list_by_listing(lid))

        if status is not None:
            items = [r for r in items if r.status == status]
        if start_date is not None:
            items = [r for r in items if r.check_in >= start_date]
        if end_date is not None:
            items = [r for r in items if r.check_in <= end_date]

        items.sort(key=lambda r: (r.created_at, r.reservation_id), reverse=True)
        return _paginate(items, page, limit)

    # =========================================================================
    # Commands
    # =========================================================================

    def propose_reservation(
        self,
        listing_id: str,
        requester: Actor,
        interval: DateInterval,
        guest_count: int,
        guest_details: GuestDetails | None = None,
    ) -> Reservation:
        """Request a stay, holding the dates until the owner decides.

        Raises:
            ListingNotFound, InvalidStayLength, GuestCountExceeded,
            Unavailable, LockTimeout
        """
        try:
            rate = self.listings.get_rate_config(listing_id)
            with self.locks.hold(listing_id):
                # Never trust an earlier check_availability answer
                conflicts = self.repository.calendar.conflicts(listing_id, interval)
                if conflicts:
                    raise Unavailable(conflicts)

                price = self.pricing.calculate_price(rate, interval, guest_count)
                now = self.clock()
                transition = self.state_machine.propose(
                    reservation_id=_generate_reservation_id(now),
                    listing_id=listing_id,
                    guest_id=requester.user_id,
                    interval=interval,
                    guest_count=guest_count,
                    price=price,
                    now=now,
                    guest_details=guest_details,
                )
                self.repository.add(transition.reservation)
        except BookingError as e:
            log_reservation_operation(
                logger,
                "propose_reservation",
                listing_id=listing_id,
                actor_id=requester.user_id,
                error=e.code.value,
                interval=str(interval),
            )
            raise

        reservation = transition.reservation
        log_reservation_operation(
            logger,
            "propose_reservation",
            reservation_id=reservation.reservation_id,
            listing_id=listing_id,
            actor_id=requester.user_id,
            status=reservation.status.value,
            amount=reservation.total_price,
        )
        self._after_commit(transition)
        self._charge(reservation, reservation.total_price)
        return reservation

    def respond_to_request(
        self,
        reservation_id: str,
        actor: Actor,
        decision: Decision,
        reason: str | None = None,
    ) -> Reservation:
        """Owner accepts or rejects a REQUESTED reservation.

        Rejection releases the calendar hold in the same critical section.

        Raises:
            ReservationNotFound, NotOwner, InvalidState, LockTimeout
        """
        operation = f"respond_to_request:{decision.value}"
        try:
            listing_id = self._require(reservation_id).listing_id
            owner_id = self.listings.get_owner_id(listing_id)
            with self.locks.hold(listing_id):
                current = self._require(reservation_id)
                now = self.clock()
                if decision == Decision.ACCEPT:
                    transition = self.state_machine.accept(current, actor, owner_id, now)
                else:
                    transition = self.state_machine.reject(
                        current, actor, owner_id, now, reason
                    )
                self.repository.replace(transition.reservation, current.status)
        except BookingError as e:
            log_reservation_operation(
                logger,
                operation,
                reservation_id=reservation_id,
                actor_id=actor.user_id,
                error=e.code.value,
            )
            raise

        log_reservation_operation(
            logger,
            operation,
            reservation_id=reservation_id,
            listing_id=listing_id,
            actor_id=actor.user_id,
            status=transition.reservation.status.value,
        )
        self._after_commit(transition)
        return transition.reservation

    def cancel_reservation(
        self,
        reservation_id: str,
        actor: Actor,
        reason: str | None = None,
    ) -> CancellationResult:
        """Guest or owner cancels a REQUESTED or CONFIRMED reservation.

        The refund is evaluated once, against the current date, and recorded
        on the cancelled reservation.

        Raises:
            ReservationNotFound, NotParticipant, InvalidState, LockTimeout
        """
        try:
            listing_id = self._require(reservation_id).listing_id
            owner_id = self.listings.get_owner_id(listing_id)
            policy = self.listings.get_rate_config(listing_id).cancellation_policy
            with self.locks.hold(listing_id):
                current = self._require(reservation_id)
                now = self.clock()
                refund = self.refund_policy.calculate_refund_amount(
                    payment_amount=current.total_price,
                    check_in_date=current.check_in,
                    cancellation_date=now.date(),
                    policy=policy,
                )
                transition = self.state_machine.cancel(
                    current,
                    actor,
                    owner_id,
                    now,
                    reason,
                    refund_percentage=refund["refund_percentage"],
                    refund_amount=refund["refund_amount"],
                )
                self.repository.replace(transition.reservation, current.status)
        except BookingError as e:
            log_reservation_operation(
                logger,
                "cancel_reservation",
                reservation_id=reservation_id,
                actor_id=actor.user_id,
                error=e.code.value,
            )
            raise

        reservation = transition.reservation
        log_reservation_operation(
            logger,
            "cancel_reservation",
            reservation_id=reservation_id,
            listing_id=listing_id,
            actor_id=actor.user_id,
            status=reservation.status.value,
            amount=refund["refund_amount"],
            refund_percentage=refund["refund_percentage"],
        )
        self._after_commit(transition)
        if refund["refund_amount"] > 0:
            self._refund(reservation, refund["refund_amount"])

        return CancellationResult(
            reservation=reservation,
            refund_amount=refund["refund_amount"],
            refund_percentage=refund["refund_percentage"],
        )

    def expire_completed_stays(self, now: dt.datetime | None = None) -> list[Reservation]:
        """Complete every CONFIRMED stay whose check-out has passed.

        Idempotent: records already COMPLETED (or cancelled concurrently)
        are skipped. A listing whose lock times out is left for the next run.

        Args:
            now: Sweep time, defaults to the engine clock

        Returns:
            Reservations completed by this run
        """
        now = now or self.clock()
        completed: list[Reservation] = []

        for candidate in self.repository.list_confirmed_due(now.date()):
            try:
                with self.locks.hold(candidate.listing_id):
                    current = self.repository.get(candidate.reservation_id)
                    if (
                        current is None
                        or current.status != ReservationStatus.CONFIRMED
                        or not current.is_stay_over(now.date())
                    ):
                        continue
                    transition = self.state_machine.complete(current, now)
                    self.repository.replace(transition.reservation, current.status)
            except LockTimeout:
                logger.warning(
                    "Skipping completion of %s: listing %s busy",
                    candidate.reservation_id,
                    candidate.listing_id,
                )
                continue
            except InvalidState:
                logger.info(
                    "Skipping completion of %s: changed by another writer",
                    candidate.reservation_id,
                )
                continue

            completed.append(transition.reservation)
            self._after_commit(transition)

        log_reservation_operation(
            logger,
            "expire_completed_stays",
            completed=len(completed),
        )
        return completed

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require(self, reservation_id: str) -> Reservation:
        reservation = self.repository.get(reservation_id)
        if reservation is None:
            raise ReservationNotFound(details={"reservation_id": reservation_id})
        return reservation

    def _for_read(self, reservation: Reservation, today: dt.date) -> Reservation:
        effective = reservation.effective_status(today)
        if effective == reservation.status:
            return reservation
        return reservation.model_copy(update={"status": effective})

    def _after_commit(self, transition: Transition) -> None:
        self._publish(transition.event)

    def _publish(self, event: ReservationEvent) -> None:
        self.events.publish(event)

    # Payment failures are logged and never revert reservation state

    def _charge(self, reservation: Reservation, amount: int) -> None:
        if self.payments is None:
            return
        try:
            self.payments.charge(reservation, amount)
        except Exception:
            logger.exception(
                "Payment charge failed for reservation %s (amount=%d)",
                reservation.reservation_id,
                amount,
            )

    def _refund(self, reservation: Reservation, amount: int) -> None:
        if self.payments is None:
            return
        try:
            self.payments.refund(reservation, amount)
        except Exception:
            logger.exception(
                "Payment refund failed for reservation %s (amount=%d)",
                reservation.reservation_id,
                amount,
            )
