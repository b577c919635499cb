"""Half-open date intervals for reservation spans.

A reservation occupies the nights ``[check_in, check_out)``: the check-out
day itself is free for the next guest. All comparisons are made on calendar
days, any time-of-day component is dropped on input.
"""

import datetime as dt
from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def to_day(value: dt.date | dt.datetime) -> dt.date:
    """Truncate a datetime to its calendar day; dates pass through."""
    if isinstance(value, dt.datetime):
        return value.date()
    return value


class DateInterval(BaseModel):
    """A non-empty half-open range of calendar days."""

    model_config = ConfigDict(frozen=True)

    check_in: dt.date = Field(..., description="First night (inclusive)")
    check_out: dt.date = Field(..., description="Departure day (exclusive)")

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _truncate_time(cls, v: Any) -> Any:
        if isinstance(v, dt.datetime):
            return v.date()
        return v

    @model_validator(mode="after")
    def _check_order(self) -> "DateInterval":
        if self.check_in >= self.check_out:
            raise ValueError("check_out must be after check_in")
        return self

    @classmethod
    def of(
        cls, check_in: dt.date | dt.datetime, check_out: dt.date | dt.datetime
    ) -> "DateInterval":
        """Build an interval from dates or datetimes."""
        return cls(check_in=to_day(check_in), check_out=to_day(check_out))

    @property
    def nights(self) -> int:
        """Number of nights blocked by this interval."""
        return (self.check_out - self.check_in).days

    def overlaps(self, other: "DateInterval") -> bool:
        """Return True if the two intervals share at least one night.

        Touching intervals (one ends the day the other starts) do not overlap.
        """
        return self.check_in < other.check_out and other.check_in < self.check_out

    def is_adjacent(self, other: "DateInterval") -> bool:
        """Return True if one interval ends exactly where the other begins."""
        return self.check_out == other.check_in or other.check_out == self.check_in

    def contains(self, day: dt.date | dt.datetime) -> bool:
        """Return True if the given day is one of the blocked nights."""
        return self.check_in <= to_day(day) < self.check_out

    def days(self) -> Iterator[dt.date]:
        """Yield every blocked calendar day in order.

        Each call starts a fresh iteration. Meant for calendar display only;
        use overlaps() for conflict tests.
        """
        current = self.check_in
        while current < self.check_out:
            yield current
            current += dt.timedelta(days=1)

    def __str__(self) -> str:
        return f"[{self.check_in.isoformat()}, {self.check_out.isoformat()})"
