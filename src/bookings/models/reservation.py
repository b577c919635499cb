"""Reservation models."""

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import ACTIVE_STATUSES, TERMINAL_STATUSES, ReservationStatus
from .interval import DateInterval


def _truncate_time(v: Any) -> Any:
    if isinstance(v, dt.datetime):
        return v.date()
    return v


class Reservation(BaseModel):
    """A date-ranged hold on a listing."""

    # strict=False: records arrive from storage with ISO strings and Decimals
    model_config = ConfigDict(strict=False)

    reservation_id: str = Field(..., description="Unique reservation ID")
    listing_id: str = Field(..., description="Reserved listing")
    guest_id: str = Field(..., description="Guest who made the request")
    check_in: dt.date = Field(..., description="Check-in date")
    check_out: dt.date = Field(..., description="Check-out date (exclusive)")
    guest_count: int = Field(..., ge=1, description="Number of guests")
    status: ReservationStatus = Field(default=ReservationStatus.PENDING)
    created_at: dt.datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: dt.datetime = Field(..., description="Last update timestamp (UTC)")

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _truncate_dates(cls, v: Any) -> Any:
        return _truncate_time(v)

    @property
    def interval(self) -> DateInterval:
        """Nights held by this reservation."""
        return DateInterval(check_in=self.check_in, check_out=self.check_out)

    @property
    def is_active(self) -> bool:
        """True while the reservation blocks its dates."""
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class ReservationCreate(BaseModel):
    """Data required to request a new reservation.

    The guest is the acting identity, not part of the payload.
    """

    model_config = ConfigDict(strict=False)

    listing_id: str
    check_in: dt.date
    check_out: dt.date
    guest_count: int = 1

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _truncate_dates(cls, v: Any) -> Any:
        return _truncate_time(v)
