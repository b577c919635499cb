"""Pydantic models for the booking core."""

from .enums import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    ActorRelation,
    ActorRole,
    ReservationStatus,
)
from .errors import (
    BookingError,
    BookingValidationError,
    ConflictError,
    ErrorCode,
    ErrorResponse,
    InvalidTransitionError,
    NotFoundError,
    UnauthorizedError,
)
from .identity import SYSTEM_ACTOR_ID, Actor
from .interval import DateInterval, to_day
from .listing import Listing
from .reservation import Reservation, ReservationCreate
from .sweep import SweepSummary

__all__ = [
    # Enums
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "ActorRelation",
    "ActorRole",
    "ReservationStatus",
    # Errors
    "BookingError",
    "BookingValidationError",
    "ConflictError",
    "ErrorCode",
    "ErrorResponse",
    "InvalidTransitionError",
    "NotFoundError",
    "UnauthorizedError",
    # Identity
    "SYSTEM_ACTOR_ID",
    "Actor",
    # Interval
    "DateInterval",
    "to_day",
    # Listing
    "Listing",
    # Reservation
    "Reservation",
    "ReservationCreate",
    # Sweep
    "SweepSummary",
]
