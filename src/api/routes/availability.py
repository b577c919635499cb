"""Availability endpoints for listing calendars.

Public endpoints, no authentication required.
"""

import datetime as dt

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_booking_service
from api.models.availability import AvailabilityResponse, BlockedDatesResponse
from bookings.services.booking import BookingService

router = APIRouter(tags=["availability"])


@router.get(
    "/listings/{listing_id}/availability",
    summary="Check date range availability",
    description="""
Check whether a listing is free for the nights from check_in up to, but not
including, check_out.

An empty or inverted range is reported as unavailable.
""",
    response_model=AvailabilityResponse,
)
def check_availability(
    listing_id: str,
    check_in: dt.date = Query(..., description="Check-in date (YYYY-MM-DD)"),
    check_out: dt.date = Query(..., description="Check-out date (YYYY-MM-DD)"),
    service: BookingService = Depends(get_booking_service),
) -> AvailabilityResponse:
    return AvailabilityResponse(
        listing_id=listing_id,
        check_in=check_in,
        check_out=check_out,
        nights=max((check_out - check_in).days, 0),
        is_available=service.is_available(listing_id, check_in, check_out),
    )


@router.get(
    "/listings/{listing_id}/blocked-dates",
    summary="Get blocked calendar days",
    description="Every day held by a PENDING or CONFIRMED reservation, ascending.",
    response_model=BlockedDatesResponse,
)
def get_blocked_dates(
    listing_id: str,
    service: BookingService = Depends(get_booking_service),
) -> BlockedDatesResponse:
    blocked = service.sorted_blocked_dates(listing_id)
    return BlockedDatesResponse(
        listing_id=listing_id,
        blocked_dates=blocked,
        total_count=len(blocked),
    )
