"""Cached service construction shared by the API and the sweeper Lambda.

Service Dependency Graph:
    BookingSettings (get_settings)
        └── ReservationRepository + ListingDirectory
              (DynamoDB singleton, or in-memory with BOOKINGS_STORAGE=memory)
                └── BookingService
                      └── ExpirySweeper

Testing:
    Use reset_services() to clear cached instances between tests.
"""

import datetime as dt
from functools import lru_cache

from bookings.config import get_settings

from .booking import BookingService
from .dynamodb import get_dynamodb_service
from .dynamodb_repository import DynamoDBListingDirectory, DynamoDBReservationRepository
from .expiry import ExpirySweeper
from .repository import InMemoryListingDirectory, InMemoryReservationRepository


@lru_cache
def get_booking_service() -> BookingService:
    """Get cached BookingService instance.

    Returns:
        BookingService wired to the configured storage backend.
    """
    settings = get_settings()
    if settings.storage == "memory":
        repository = InMemoryReservationRepository()
        listings = InMemoryListingDirectory()
        return BookingService(
            repository, listings, max_stay_nights=settings.max_stay_nights
        )

    db = get_dynamodb_service(settings.table_prefix)
    return BookingService(
        DynamoDBReservationRepository(db),
        DynamoDBListingDirectory(db),
        max_stay_nights=settings.max_stay_nights,
    )


@lru_cache
def get_expiry_sweeper() -> ExpirySweeper:
    """Get cached ExpirySweeper sharing the booking service and its locks."""
    settings = get_settings()
    return ExpirySweeper(
        get_booking_service(),
        pending_ttl=dt.timedelta(hours=settings.pending_expiry_hours),
        auto_complete=settings.auto_complete_stays,
    )


def reset_services() -> None:
    """Clear all cached service instances.

    Also resets the DynamoDB singleton and cached settings.
    """
    from bookings.config import reset_settings

    from .dynamodb import reset_dynamodb_service

    get_expiry_sweeper.cache_clear()
    get_booking_service.cache_clear()
    reset_dynamodb_service()
    reset_settings()
