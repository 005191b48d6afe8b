"""Unit tests for RefundPolicyService.

Default (moderate) schedule:
- Full refund: 7+ days before check-in
- 50% refund: 2-6 days before check-in
- No refund: <2 days before check-in, or after check-in
"""

import datetime as dt

import pytest

from booking_engine.models import CancellationPolicy
from booking_engine.services.refund_policy_service import RefundPolicyService

TEST_PAYMENT_AMOUNT = 3_685_000
CHECK_IN = dt.date(2026, 7, 20)


def _refund(days_before: int, policy: CancellationPolicy = CancellationPolicy.MODERATE):
    return RefundPolicyService().calculate_refund_amount(
        payment_amount=TEST_PAYMENT_AMOUNT,
        check_in_date=CHECK_IN,
        cancellation_date=CHECK_IN - dt.timedelta(days=days_before),
        policy=policy,
    )


class TestModeratePolicy:
    def test_exactly_7_days_full_refund(self) -> None:
        result = _refund(7)
        assert result["refund_percentage"] == 100
        assert result["refund_amount"] == TEST_PAYMENT_AMOUNT
        assert result["policy_tier"] == "full"

    def test_6_days_half_refund(self) -> None:
        result = _refund(6)
        assert result["refund_percentage"] == 50
        assert result["refund_amount"] == 1_842_500
        assert result["policy_tier"] == "partial"

    def test_2_days_half_refund(self) -> None:
        assert _refund(2)["refund_percentage"] == 50

    @pytest.mark.parametrize("days_before", [1, 0, -1, -3])
    def test_no_refund_close_to_or_after_check_in(self, days_before: int) -> None:
        result = _refund(days_before)
        assert result["refund_percentage"] == 0
        assert result["refund_amount"] == 0
        assert result["policy_tier"] == "none"

    def test_default_policy_is_moderate(self) -> None:
        result = RefundPolicyService().calculate_refund_amount(
            payment_amount=1000,
            check_in_date=CHECK_IN,
            cancellation_date=CHECK_IN - dt.timedelta(days=3),
        )
        assert result["refund_percentage"] == 50

    def test_days_until_check_in_reported(self) -> None:
        assert _refund(10)["days_until_check_in"] == 10


class TestOtherTiers:
    @pytest.mark.parametrize(
        ("days_before", "expected"),
        [(30, 100), (1, 100), (0, 0)],
    )
    def test_flexible(self, days_before: int, expected: int) -> None:
        assert _refund(days_before, CancellationPolicy.FLEXIBLE)["refund_percentage"] == expected

    @pytest.mark.parametrize(
        ("days_before", "expected"),
        [(30, 50), (14, 50), (13, 0), (1, 0)],
    )
    def test_strict(self, days_before: int, expected: int) -> None:
        assert _refund(days_before, CancellationPolicy.STRICT)["refund_percentage"] == expected


class TestRounding:
    def test_partial_refund_floors(self) -> None:
        result = RefundPolicyService().calculate_refund_amount(
            payment_amount=1001,
            check_in_date=CHECK_IN,
            cancellation_date=CHECK_IN - dt.timedelta(days=3),
        )
        assert result["refund_amount"] == 500


class TestPolicyDescription:
    def test_moderate_description(self) -> None:
        text = RefundPolicyService().get_policy_description()
        assert "7+ days before check-in: 100% refund" in text
        assert "2-6 days before check-in: 50% refund" in text
        assert "Less than 2 days" in text

    def test_strict_description(self) -> None:
        text = RefundPolicyService().get_policy_description(CancellationPolicy.STRICT)
        assert "14+ days before check-in: 50% refund" in text
