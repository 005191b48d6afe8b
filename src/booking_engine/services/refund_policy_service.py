"""Refund policy service for calculating refund amounts.

Implements the cancellation refund schedule per policy tier. The default
(MODERATE) tier:
- Full refund (100%): Cancel 7+ days before check-in
- Partial refund (50%): Cancel 2-6 days before check-in
- No refund (0%): Cancel <2 days before check-in, or after check-in

All amounts are integers in minor currency units to avoid floating-point issues.
"""

import datetime as dt
from typing import NamedTuple, TypedDict

from booking_engine.models import CancellationPolicy


class RefundCalculation(TypedDict):
    """Result of refund policy calculation."""

    refund_amount: int
    refund_percentage: int  # 0, 50, or 100
    policy_tier: str  # "full", "partial", or "none"
    days_until_check_in: int
    description: str


class RefundStep(NamedTuple):
    """Refund percentage granted when cancelling at least `min_days` ahead."""

    min_days: int
    percentage: int


# Steps are checked in order; the first step whose threshold is met applies.
REFUND_SCHEDULES: dict[CancellationPolicy, tuple[RefundStep, ...]] = {
    CancellationPolicy.FLEXIBLE: (RefundStep(1, 100),),
    CancellationPolicy.MODERATE: (RefundStep(7, 100), RefundStep(2, 50)),
    CancellationPolicy.STRICT: (RefundStep(14, 50),),
}

FULL_REFUND_PERCENT = 100
NO_REFUND_PERCENT = 0


class RefundPolicyService:
    """Service for calculating refund amounts based on cancellation timing."""

    def refund_percentage(
        self,
        policy: CancellationPolicy,
        days_until_check_in: int,
    ) -> int:
        """Return the refund percentage for cancelling N full days ahead.

        Args:
            policy: Listing cancellation policy tier
            days_until_check_in: Whole days from today to check-in (negative after)

        Returns:
            Refund percentage (0-100)
        """
        for step in REFUND_SCHEDULES[policy]:
            if days_until_check_in >= step.min_days:
                return step.percentage
        return NO_REFUND_PERCENT

    def calculate_refund_amount(
        self,
        payment_amount: int,
        check_in_date: dt.date,
        cancellation_date: dt.date,
        policy: CancellationPolicy = CancellationPolicy.MODERATE,
    ) -> RefundCalculation:
        """Calculate refund amount based on cancellation timing.

        Args:
            payment_amount: Reservation total in minor units
            check_in_date: Reservation check-in date
            cancellation_date: Date of cancellation request
            policy: Listing cancellation policy tier

        Returns:
            RefundCalculation with refund amount and policy details
        """
        # Can be negative if cancelling after check-in
        days_until_check_in = (check_in_date - cancellation_date).days
        percentage = self.refund_percentage(policy, days_until_check_in)

        if percentage == FULL_REFUND_PERCENT:
            tier = "full"
        elif percentage > NO_REFUND_PERCENT:
            tier = "partial"
        else:
            tier = "none"

        if days_until_check_in <= 0:
            description = f"No refund ({percentage}%): Cancelled after check-in started"
        else:
            description = (
                f"Refund {percentage}%: Cancelled {days_until_check_in} days before check-in "
                f"({policy.value} policy)"
            )

        # Integer division keeps amounts in whole minor units
        refund_amount = (payment_amount * percentage) // 100

        return RefundCalculation(
            refund_amount=refund_amount,
            refund_percentage=percentage,
            policy_tier=tier,
            days_until_check_in=days_until_check_in,
            description=description,
        )

    def get_policy_description(
        self,
        policy: CancellationPolicy = CancellationPolicy.MODERATE,
    ) -> str:
        """Get human-readable description of a refund policy tier.

        Args:
            policy: Cancellation policy tier

        Returns:
            Policy description text
        """
        lines = [f"Cancellation Policy ({policy.value}):"]
        upper: int | None = None
        for step in REFUND_SCHEDULES[policy]:
            if upper is None:
                window = f"{step.min_days}+ days before check-in"
            else:
                window = f"{step.min_days}-{upper - 1} days before check-in"
            lines.append(f"• {window}: {step.percentage}% refund")
            upper = step.min_days
        lowest = REFUND_SCHEDULES[policy][-1].min_days
        lines.append(f"• Less than {lowest} days before check-in: No refund")
        lines.append("• After check-in: No refund")
        return "\n".join(lines)
