"""Expiry sweep result model."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field


class SweepSummary(BaseModel):
    """Outcome of a single expiry sweep run."""

    model_config = ConfigDict(strict=True)

    started_at: dt.datetime = Field(..., description="The 'now' the sweep ran with")
    threshold: dt.datetime = Field(
        ..., description="PENDING reservations created before this were expired"
    )
    cancelled_count: int = Field(default=0, ge=0)
    completed_count: int = Field(default=0, ge=0)
    failed_count: int = Field(default=0, ge=0)

    @property
    def changed(self) -> bool:
        """True if the sweep changed any reservation."""
        return bool(self.cancelled_count or self.completed_count)
