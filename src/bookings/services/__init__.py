"""Booking core services."""

from .authorization import AuthorizationGuard
from .availability import AvailabilityIndex
from .booking import BookingService, generate_reservation_id
from .expiry import DEFAULT_PENDING_TTL, ExpirySweeper
from .lifecycle import TRANSITIONS, ReservationStateMachine, releases_interval
from .locks import ListingLocks
from .repository import (
    InMemoryListingDirectory,
    InMemoryReservationRepository,
    ListingDirectory,
    ReservationRepository,
)

__all__ = [
    "AuthorizationGuard",
    "AvailabilityIndex",
    "BookingService",
    "generate_reservation_id",
    "DEFAULT_PENDING_TTL",
    "ExpirySweeper",
    "TRANSITIONS",
    "ReservationStateMachine",
    "releases_interval",
    "ListingLocks",
    "InMemoryListingDirectory",
    "InMemoryReservationRepository",
    "ListingDirectory",
    "ReservationRepository",
]
