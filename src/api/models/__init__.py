"""API-specific request/response models.

Domain models (Reservation, Listing, ...) live in bookings.models and are
reused directly as response models where they fit.

Modules:
- availability: Availability and calendar response models
- reservations: Reservation request/response models
"""

from api.models.availability import AvailabilityResponse, BlockedDatesResponse
from api.models.reservations import (
    ReservationCreateRequest,
    ReservationListResponse,
    StatusUpdateRequest,
)

__all__ = [
    "AvailabilityResponse",
    "BlockedDatesResponse",
    "ReservationCreateRequest",
    "ReservationListResponse",
    "StatusUpdateRequest",
]
