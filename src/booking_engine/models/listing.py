"""Listing rate configuration as seen by the booking engine.

The listing itself is owned by the surrounding application; the engine only
reads the fields that drive availability, pricing and refunds.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import CancellationPolicy

# date.weekday(): Monday == 0 ... Sunday == 6
SATURDAY = 5
SUNDAY = 6
DEFAULT_WEEKEND_DAYS = frozenset({SATURDAY, SUNDAY})


class RateConfig(BaseModel):
    """Nightly rate model for a listing.

    All amounts are integers in the smallest currency unit.
    """

    model_config = ConfigDict(frozen=True)

    nightly_rate: int = Field(ge=0)
    weekend_surcharge: int = Field(default=0, ge=0)
    extra_guest_fee: int = Field(default=0, ge=0, description="Per extra guest per night")
    base_guests: int = Field(default=1, ge=1)
    max_guests: int = Field(ge=1)
    min_nights: int | None = Field(default=None, ge=1)
    max_nights: int | None = Field(default=None, ge=1)
    cancellation_policy: CancellationPolicy = CancellationPolicy.MODERATE
    weekend_days: frozenset[int] = DEFAULT_WEEKEND_DAYS

    @model_validator(mode="after")
    def _check_bounds(self) -> "RateConfig":
        if self.base_guests > self.max_guests:
            raise ValueError("base_guests cannot exceed max_guests")
        if (
            self.min_nights is not None
            and self.max_nights is not None
            and self.min_nights > self.max_nights
        ):
            raise ValueError("min_nights cannot exceed max_nights")
        if any(d < 0 or d > 6 for d in self.weekend_days):
            raise ValueError("weekend_days must be weekday numbers 0-6")
        return self
