"""API models for availability endpoints."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field


class AvailabilityResponse(BaseModel):
    """Whether a date range is free on a listing."""

    model_config = ConfigDict(
        strict=True,
        json_schema_extra={
            "examples": [
                {
                    "listing_id": "LST-001",
                    "check_in": "2025-06-10",
                    "check_out": "2025-06-15",
                    "nights": 5,
                    "is_available": True,
                }
            ]
        },
    )

    listing_id: str = Field(..., description="Listing checked")
    check_in: dt.date = Field(..., description="First night (YYYY-MM-DD)")
    check_out: dt.date = Field(..., description="Departure day, exclusive (YYYY-MM-DD)")
    nights: int = Field(..., description="Number of nights in the range")
    is_available: bool = Field(..., description="True if no active reservation overlaps")


class BlockedDatesResponse(BaseModel):
    """Calendar days held by PENDING or CONFIRMED reservations.

    Check-out days are never listed: they are free for the next arrival.
    """

    model_config = ConfigDict(strict=True)

    listing_id: str
    blocked_dates: list[dt.date] = Field(
        default_factory=list,
        description="Blocked days in ascending order",
        examples=[["2025-06-10", "2025-06-11"]],
    )
    total_count: int = Field(default=0, ge=0)
