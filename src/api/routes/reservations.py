"""Reservation endpoints.

Provides REST endpoints for:
- Requesting a reservation (identity required)
- Retrieving a reservation (guest, host or admin)
- Changing a reservation's status (confirm, cancel, complete)

API Gateway validates the JWT and passes the identity via x-user-sub and
x-user-role headers.
"""

from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from api.dependencies import get_booking_service, get_current_actor
from api.models.reservations import ReservationCreateRequest, StatusUpdateRequest
from bookings.models import Actor, Reservation
from bookings.services.booking import BookingService

router = APIRouter(tags=["reservations"])


@router.post(
    "/reservations",
    summary="Request reservation",
    description="""
Request a reservation for a listing. The new reservation is PENDING and
blocks its dates until it is confirmed, cancelled or expires.

**Requires identity headers.**
""",
    response_model=Reservation,
    status_code=HTTP_201_CREATED,
    responses={
        201: {"description": "Reservation created"},
        400: {"description": "Invalid date range or guest count"},
        401: {"description": "Identity required"},
        404: {"description": "Listing not found"},
        409: {"description": "Dates unavailable"},
    },
)
def create_reservation(
    body: ReservationCreateRequest,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
) -> Reservation:
    return service.request_reservation(actor, body.to_create())


@router.get(
    "/reservations/{reservation_id}",
    summary="Get reservation",
    response_model=Reservation,
    responses={
        403: {"description": "Not the guest, host or an admin"},
        404: {"description": "Reservation not found"},
    },
)
def get_reservation(
    reservation_id: str,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
) -> Reservation:
    return service.get_reservation(actor, reservation_id)


@router.patch(
    "/reservations/{reservation_id}/status",
    summary="Change reservation status",
    description="""
Move a reservation along its lifecycle:

- PENDING -> CONFIRMED: listing host
- PENDING -> CANCELLED: listing host or the guest
- CONFIRMED -> CANCELLED: listing host
- CONFIRMED -> COMPLETED: listing host
""",
    response_model=Reservation,
    responses={
        403: {"description": "Actor may not make this change"},
        404: {"description": "Reservation not found"},
        409: {"description": "Transition not allowed from the current status"},
    },
)
def update_reservation_status(
    reservation_id: str,
    body: StatusUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
) -> Reservation:
    return service.transition_status(actor, reservation_id, body.status)
