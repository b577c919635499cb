"""Admin endpoints."""

from fastapi import APIRouter, Depends

from api.dependencies import get_booking_service, get_current_actor
from api.models.reservations import ReservationListResponse
from bookings.models import Actor
from bookings.services.booking import BookingService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/reservations",
    summary="List all reservations",
    response_model=ReservationListResponse,
    responses={403: {"description": "Admin role required"}},
)
def list_all_reservations(
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
) -> ReservationListResponse:
    return ReservationListResponse.of(service.list_all(actor))
