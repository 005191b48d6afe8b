"""Pricing breakdown models."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field


class NightlyPrice(BaseModel):
    """Price of a single night of a stay."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    price: int = Field(ge=0)
    is_weekend: bool


class PriceBreakdown(BaseModel):
    """Itemized price for a candidate stay.

    `total` is the amount persisted on the reservation.
    """

    model_config = ConfigDict(frozen=True)

    check_in: dt.date
    check_out: dt.date
    guest_count: int
    nights: int
    nightly: list[NightlyPrice]
    base_price: int = Field(ge=0, description="Sum of nightly prices incl. weekend surcharge")
    weekend_nights: int = Field(ge=0)
    weekend_surcharge_total: int = Field(ge=0)
    extra_guest_fee: int = Field(ge=0)
    subtotal: int = Field(ge=0)
    service_fee: int = Field(ge=0)
    total: int = Field(ge=0)
