"""Pricing calculator for candidate stays.

Pure and deterministic: the result depends only on the rate config, the
dates and the guest count. Weekend nights are derived from the calendar
dates in the stay, never from the wall clock. All arithmetic is integer
arithmetic in minor currency units.
"""

from booking_engine.config import DEFAULT_SERVICE_FEE_BPS
from booking_engine.models import (
    DateInterval,
    GuestCountExceeded,
    InvalidStayLength,
    NightlyPrice,
    PriceBreakdown,
    RateConfig,
)

BPS_DENOMINATOR = 10_000


def round_half_up_bps(amount: int, bps: int) -> int:
    """Apply a basis-point rate to a non-negative amount, rounding half up.

    Args:
        amount: Amount in minor units (>= 0)
        bps: Rate in basis points (1000 == 10%)

    Returns:
        The rounded integer share
    """
    return (amount * bps + BPS_DENOMINATOR // 2) // BPS_DENOMINATOR


def validate_stay(rate: RateConfig, interval: DateInterval, guest_count: int) -> None:
    """Check stay length and guest count against the listing's limits.

    Raises:
        InvalidStayLength: nights <= 0 or outside [min_nights, max_nights]
        GuestCountExceeded: guest_count outside [1, max_guests]
    """
    nights = (interval.check_out - interval.check_in).days
    if nights <= 0:
        raise InvalidStayLength(details={"nights": str(nights)})
    if rate.min_nights is not None and nights < rate.min_nights:
        raise InvalidStayLength(
            details={"nights": str(nights), "minimum_nights": str(rate.min_nights)}
        )
    if rate.max_nights is not None and nights > rate.max_nights:
        raise InvalidStayLength(
            details={"nights": str(nights), "maximum_nights": str(rate.max_nights)}
        )

    validate_guest_count(rate, guest_count)


def validate_guest_count(rate: RateConfig, guest_count: int) -> None:
    """Raise GuestCountExceeded unless 1 <= guest_count <= max_guests."""
    if guest_count < 1 or guest_count > rate.max_guests:
        raise GuestCountExceeded(
            details={"requested": str(guest_count), "maximum": str(rate.max_guests)}
        )


class PricingCalculator:
    """Computes itemized prices from a listing's rate config."""

    def __init__(self, service_fee_bps: int = DEFAULT_SERVICE_FEE_BPS) -> None:
        """Initialize the calculator.

        Args:
            service_fee_bps: Service fee in basis points of the subtotal
        """
        if service_fee_bps < 0:
            raise ValueError("service_fee_bps must be non-negative")
        self.service_fee_bps = service_fee_bps

    def calculate_price(
        self,
        rate: RateConfig,
        interval: DateInterval,
        guest_count: int,
    ) -> PriceBreakdown:
        """Calculate the total price for a stay.

        Args:
            rate: Listing rate configuration
            interval: Stay dates [check_in, check_out)
            guest_count: Number of guests

        Returns:
            PriceBreakdown with per-night prices and totals

        Raises:
            InvalidStayLength: Stay length outside the listing's bounds
            GuestCountExceeded: Too many (or zero) guests
        """
        validate_stay(rate, interval, guest_count)

        nightly: list[NightlyPrice] = []
        base_price = 0
        weekend_nights = 0

        for night in interval.nights_iter():
            is_weekend = night.weekday() in rate.weekend_days
            price = rate.nightly_rate
            if is_weekend:
                price += rate.weekend_surcharge
                weekend_nights += 1
            nightly.append(NightlyPrice(date=night, price=price, is_weekend=is_weekend))
            base_price += price

        nights = len(nightly)

        # Flat multiplier over the whole stay, not re-derived per night
        extra_guest_fee = 0
        if guest_count > rate.base_guests:
            extra_guest_fee = (guest_count - rate.base_guests) * rate.extra_guest_fee * nights

        subtotal = base_price + extra_guest_fee
        service_fee = round_half_up_bps(subtotal, self.service_fee_bps)

        return PriceBreakdown(
            check_in=interval.check_in,
            check_out=interval.check_out,
            guest_count=guest_count,
            nights=nights,
            nightly=nightly,
            base_price=base_price,
            weekend_nights=weekend_nights,
            weekend_surcharge_total=weekend_nights * rate.weekend_surcharge,
            extra_guest_fee=extra_guest_fee,
            subtotal=subtotal,
            service_fee=service_fee,
            total=subtotal + service_fee,
        )


def calculate_price(
    rate: RateConfig,
    interval: DateInterval,
    guest_count: int,
    service_fee_bps: int = DEFAULT_SERVICE_FEE_BPS,
) -> PriceBreakdown:
    """Functional shortcut for PricingCalculator.calculate_price."""
    return PricingCalculator(service_fee_bps).calculate_price(rate, interval, guest_count)
