"""Storage contracts for reservations and listings, plus in-memory backends.

The booking core never talks to a database directly. It calls the
operations below and relies only on their stated atomicity:
single-record operations are atomic; insert_reservation additionally
rejects an overlap for the same listing when the backend can enforce it.
"""

import datetime as dt
import threading
from collections.abc import Iterable
from typing import Protocol

from bookings.models import (
    ACTIVE_STATUSES,
    ConflictError,
    DateInterval,
    ErrorCode,
    Listing,
    NotFoundError,
    Reservation,
    ReservationStatus,
)


class ReservationRepository(Protocol):
    """Persistence operations the booking core relies on."""

    def get(self, reservation_id: str) -> Reservation | None:
        """Return the reservation or None if unknown."""
        ...

    def load_active_intervals(self, listing_id: str) -> list[DateInterval]:
        """Intervals of PENDING/CONFIRMED reservations, sorted by check_in."""
        ...

    def insert_reservation(self, reservation: Reservation) -> Reservation:
        """Store a new reservation.

        Raises:
            ConflictError: The backend detected an overlapping active interval
        """
        ...

    def update_status(
        self,
        reservation_id: str,
        new_status: ReservationStatus,
        *,
        expected: ReservationStatus,
        updated_at: dt.datetime,
    ) -> Reservation | None:
        """Compare-and-set the status of a reservation.

        Returns:
            The updated reservation, or None if the stored status was no
            longer ``expected`` (another writer got there first)

        Raises:
            NotFoundError: Unknown reservation ID
        """
        ...

    def find_pending_older_than(self, timestamp: dt.datetime) -> list[Reservation]:
        """PENDING reservations created strictly before ``timestamp``."""
        ...

    def find_confirmed_ending_by(self, day: dt.date) -> list[Reservation]:
        """CONFIRMED reservations whose check_out is on or before ``day``."""
        ...

    def list_for_listings(self, listing_ids: Iterable[str]) -> list[Reservation]:
        """All reservations on the given listings, newest first."""
        ...

    def list_all(self) -> list[Reservation]:
        """All reservations, newest first."""
        ...


class ListingDirectory(Protocol):
    """Read access to listing ownership and capacity."""

    def get_listing(self, listing_id: str) -> Listing | None:
        ...

    def listings_for_host(self, host_id: str) -> list[Listing]:
        ...


def newest_first(reservations: Iterable[Reservation]) -> list[Reservation]:
    """Order reservations by creation time, most recent first."""
    return sorted(reservations, key=lambda r: r.created_at, reverse=True)


class InMemoryReservationRepository:
    """Thread-safe dict-backed repository.

    Used in tests and with BOOKINGS_STORAGE=memory. Overlap rejection on
    insert makes it behave like a store with an exclusion constraint.
    """

    def __init__(self, reservations: Iterable[Reservation] = ()) -> None:
        self._lock = threading.RLock()
        self._items: dict[str, Reservation] = {}
        for reservation in reservations:
            self._items[reservation.reservation_id] = reservation

    def get(self, reservation_id: str) -> Reservation | None:
        with self._lock:
            return self._items.get(reservation_id)

    def load_active_intervals(self, listing_id: str) -> list[DateInterval]:
        with self._lock:
            intervals = [
                r.interval
                for r in self._items.values()
                if r.listing_id == listing_id and r.status in ACTIVE_STATUSES
            ]
        return sorted(intervals, key=lambda i: i.check_in)

    def insert_reservation(self, reservation: Reservation) -> Reservation:
        with self._lock:
            if reservation.reservation_id in self._items:
                raise ConflictError(
                    details={"reservation_id": reservation.reservation_id}
                )
            candidate = reservation.interval
            for existing in self._items.values():
                if (
                    existing.listing_id == reservation.listing_id
                    and existing.status in ACTIVE_STATUSES
                    and existing.interval.overlaps(candidate)
                ):
                    raise ConflictError(
                        ErrorCode.DATES_UNAVAILABLE,
                        details={"conflicting_interval": str(existing.interval)},
                    )
            self._items[reservation.reservation_id] = reservation
            return reservation

    def update_status(
        self,
        reservation_id: str,
        new_status: ReservationStatus,
        *,
        expected: ReservationStatus,
        updated_at: dt.datetime,
    ) -> Reservation | None:
        with self._lock:
            current = self._items.get(reservation_id)
            if current is None:
                raise NotFoundError(
                    ErrorCode.RESERVATION_NOT_FOUND,
                    details={"reservation_id": reservation_id},
                )
            if current.status != expected:
                return None
            updated = current.model_copy(
                update={"status": new_status, "updated_at": updated_at}
            )
            self._items[reservation_id] = updated
            return updated

    def find_pending_older_than(self, timestamp: dt.datetime) -> list[Reservation]:
        with self._lock:
            return [
                r
                for r in self._items.values()
                if r.status == ReservationStatus.PENDING and r.created_at < timestamp
            ]

    def find_confirmed_ending_by(self, day: dt.date) -> list[Reservation]:
        with self._lock:
            return [
                r
                for r in self._items.values()
                if r.status == ReservationStatus.CONFIRMED and r.check_out <= day
            ]

    def list_for_listings(self, listing_ids: Iterable[str]) -> list[Reservation]:
        wanted = set(listing_ids)
        with self._lock:
            return newest_first(r for r in self._items.values() if r.listing_id in wanted)

    def list_all(self) -> list[Reservation]:
        with self._lock:
            return newest_first(self._items.values())


class InMemoryListingDirectory:
    """Dict-backed listing directory."""

    def __init__(self, listings: Iterable[Listing] = ()) -> None:
        self._listings: dict[str, Listing] = {l.listing_id: l for l in listings}

    def add(self, listing: Listing) -> None:
        self._listings[listing.listing_id] = listing

    def get_listing(self, listing_id: str) -> Listing | None:
        return self._listings.get(listing_id)

    def listings_for_host(self, host_id: str) -> list[Listing]:
        return [l for l in self._listings.values() if l.host_id == host_id]
