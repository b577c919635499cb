"""Host endpoints: reservations on the caller's listings."""

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_booking_service, get_current_actor
from api.models.reservations import ReservationListResponse
from bookings.models import Actor
from bookings.services.booking import BookingService

router = APIRouter(tags=["host"])


@router.get(
    "/host/reservations",
    summary="List reservations on hosted listings",
    response_model=ReservationListResponse,
    responses={
        403: {"description": "Not a host, or not the host of the listing"},
        404: {"description": "Listing not found"},
    },
)
def list_host_reservations(
    listing_id: str | None = Query(default=None, description="Restrict to one listing"),
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
) -> ReservationListResponse:
    """Newest first."""
    return ReservationListResponse.of(service.list_for_host(actor, listing_id))
