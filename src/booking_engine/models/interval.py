"""Half-open date interval used for stays and calendar occupancy."""

import datetime as dt
from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict, model_validator

from .errors import InvalidStayLength


class DateInterval(BaseModel):
    """A stay range [check_in, check_out) at day granularity.

    The check-out day is not part of the interval, so two intervals where one
    ends on the day the other begins do not overlap.
    """

    model_config = ConfigDict(frozen=True)

    check_in: dt.date
    check_out: dt.date

    @model_validator(mode="after")
    def _check_ordering(self) -> "DateInterval":
        if self.check_in >= self.check_out:
            raise InvalidStayLength(
                details={
                    "check_in": self.check_in.isoformat(),
                    "check_out": self.check_out.isoformat(),
                    "reason": "check_out must be after check_in",
                }
            )
        return self

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def overlaps(self, other: "DateInterval") -> bool:
        """Half-open overlap test."""
        return self.check_in < other.check_out and other.check_in < self.check_out

    def nights_iter(self) -> Iterator[dt.date]:
        """Yield each night of the stay (end exclusive)."""
        for i in range(self.nights):
            yield self.check_in + dt.timedelta(days=i)

    def __str__(self) -> str:
        return f"{self.check_in.isoformat()}/{self.check_out.isoformat()}"
