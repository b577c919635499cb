"""Booking service: the external API of the reservation core.

Every operation takes identifiers, calendar dates and an Actor, and returns
pydantic models. No transport or storage type crosses this boundary.
"""

import datetime as dt
import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING

from bookings.models import (
    Actor,
    BookingError,
    BookingValidationError,
    ConflictError,
    DateInterval,
    ErrorCode,
    InvalidTransitionError,
    Listing,
    NotFoundError,
    Reservation,
    ReservationCreate,
    ReservationStatus,
    to_day,
)
from bookings.utils.clock import as_utc, utc_now
from bookings.utils.logging import get_logger, log_booking_operation

from .authorization import AuthorizationGuard
from .availability import AvailabilityIndex
from .lifecycle import ReservationStateMachine, releases_interval
from .locks import ListingLocks

if TYPE_CHECKING:
    from .repository import ListingDirectory, ReservationRepository

logger = get_logger(__name__)

DEFAULT_MAX_STAY_NIGHTS = 90


def generate_reservation_id(now: dt.datetime | None = None) -> str:
    """Generate a unique reservation ID such as ``RES-2025-1A2B3C4D``."""
    year = (now or utc_now()).year
    unique_part = uuid.uuid4().hex[:8].upper()
    return f"RES-{year}-{unique_part}"


class BookingService:
    """Availability queries and reservation lifecycle for listings."""

    def __init__(
        self,
        repository: "ReservationRepository",
        listings: "ListingDirectory",
        *,
        availability: AvailabilityIndex | None = None,
        guard: AuthorizationGuard | None = None,
        state_machine: ReservationStateMachine | None = None,
        locks: ListingLocks | None = None,
        max_stay_nights: int = DEFAULT_MAX_STAY_NIGHTS,
        clock: Callable[[], dt.datetime] = utc_now,
    ) -> None:
        """Initialize booking service.

        Args:
            repository: Reservation storage
            listings: Listing ownership and capacity lookup
            availability: Availability index (built on ``repository`` if omitted)
            guard: Authorization guard
            state_machine: Status transition rules
            locks: Per-listing lock registry shared by all writers in the process
            max_stay_nights: Longest stay accepted
            clock: Source of the current UTC time
        """
        self.repository = repository
        self.listings = listings
        self.availability = availability or AvailabilityIndex(repository)
        self.guard = guard or AuthorizationGuard()
        self.state_machine = state_machine or ReservationStateMachine()
        self.locks = locks or ListingLocks()
        self.max_stay_nights = max_stay_nights
        self.clock = clock

    # =========================================================================
    # Availability
    # =========================================================================

    def is_available(
        self,
        listing_id: str,
        check_in: dt.date | dt.datetime,
        check_out: dt.date | dt.datetime,
    ) -> bool:
        """Check whether ``[check_in, check_out)`` is free on a listing."""
        return self.availability.is_available(listing_id, check_in, check_out)

    def blocked_dates(self, listing_id: str) -> set[dt.date]:
        """Every day held by a PENDING or CONFIRMED reservation."""
        return self.availability.blocked_dates(listing_id)

    def sorted_blocked_dates(self, listing_id: str) -> list[dt.date]:
        """Blocked days in ascending order."""
        return self.availability.sorted_blocked_dates(listing_id)

    # =========================================================================
    # Reservations
    # =========================================================================

    def request_reservation(self, actor: Actor, request: ReservationCreate) -> Reservation:
        """Create a PENDING reservation if the dates are free.

        The availability check and the insert run under the listing's lock,
        so two requests for the same nights cannot both succeed.

        Args:
            actor: Guest making the request
            request: Listing, dates and guest count

        Returns:
            The stored reservation

        Raises:
            UnauthorizedError: Actor may not make reservations
            BookingValidationError: Bad date range or guest count
            NotFoundError: Unknown listing
            ConflictError: Dates overlap an active reservation
        """
        self.guard.require_can_reserve(actor)
        interval = self._validate_request(request)
        listing = self._get_listing(request.listing_id)

        if request.guest_count > listing.max_guests:
            raise BookingValidationError(
                ErrorCode.MAX_GUESTS_EXCEEDED,
                details={
                    "requested": str(request.guest_count),
                    "maximum": str(listing.max_guests),
                },
            )

        with self.locks.hold(listing.listing_id):
            conflicts = self.availability.find_conflicts(listing.listing_id, interval)
            if conflicts:
                log_booking_operation(
                    logger,
                    "request_reservation",
                    listing_id=listing.listing_id,
                    actor_id=actor.actor_id,
                    error=ErrorCode.DATES_UNAVAILABLE.name,
                    requested=str(interval),
                )
                raise ConflictError(
                    ErrorCode.DATES_UNAVAILABLE,
                    details={
                        "requested": str(interval),
                        "conflicts": ", ".join(str(c) for c in conflicts),
                    },
                )

            now = as_utc(self.clock())
            reservation = Reservation(
                reservation_id=generate_reservation_id(now),
                listing_id=listing.listing_id,
                guest_id=actor.actor_id,
                check_in=interval.check_in,
                check_out=interval.check_out,
                guest_count=request.guest_count,
                status=ReservationStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
            stored = self.repository.insert_reservation(reservation)

        log_booking_operation(
            logger,
            "request_reservation",
            reservation_id=stored.reservation_id,
            listing_id=stored.listing_id,
            actor_id=actor.actor_id,
            status=stored.status.value,
        )
        return stored

    def get_reservation(self, actor: Actor, reservation_id: str) -> Reservation:
        """Get a reservation visible to the actor.

        Raises:
            NotFoundError: Unknown reservation
            UnauthorizedError: Actor is not the guest, the host or an admin
        """
        reservation = self._get_reservation(reservation_id)
        listing = self._get_listing(reservation.listing_id)
        self.guard.require_can_view(actor, reservation, listing)
        return reservation

    def transition_status(
        self,
        actor: Actor,
        reservation_id: str,
        new_status: ReservationStatus,
    ) -> Reservation:
        """Move a reservation to a new status.

        Authorization is checked before the transition table, so callers
        with no relation to the reservation always get UnauthorizedError.

        Args:
            actor: Identity requesting the change
            reservation_id: Reservation to change
            new_status: Requested status

        Returns:
            The updated reservation

        Raises:
            NotFoundError: Unknown reservation or listing
            UnauthorizedError: Actor may not request this change
            InvalidTransitionError: Change not allowed from the current status
            ConflictError: A concurrent write to the reservation won; retryable
        """
        updated = self._apply_transition(actor, reservation_id, new_status)
        # Manual transitions raise instead of returning None
        assert updated is not None
        return updated

    def expire_reservation(
        self, reservation_id: str, now: dt.datetime | None = None
    ) -> Reservation | None:
        """Cancel a stale PENDING reservation on behalf of the system.

        ``now`` defaults to the service clock; sweeps pass their own run time.

        Returns:
            The cancelled reservation, or None if it was no longer PENDING
        """
        return self._apply_transition(
            Actor.system(),
            reservation_id,
            ReservationStatus.CANCELLED,
            only_from=ReservationStatus.PENDING,
            now=now,
        )

    def complete_reservation(
        self, reservation_id: str, now: dt.datetime | None = None
    ) -> Reservation | None:
        """Complete a CONFIRMED reservation whose stay has ended by ``now``.

        Returns:
            The completed reservation, or None if it was no longer CONFIRMED
        """
        return self._apply_transition(
            Actor.system(),
            reservation_id,
            ReservationStatus.COMPLETED,
            only_from=ReservationStatus.CONFIRMED,
            now=now,
        )

    def find_pending_older_than(self, threshold: dt.datetime) -> list[Reservation]:
        """PENDING reservations created strictly before ``threshold``."""
        return self.repository.find_pending_older_than(as_utc(threshold))

    def find_confirmed_ending_by(self, day: dt.date) -> list[Reservation]:
        """CONFIRMED reservations whose check-out is on or before ``day``."""
        return self.repository.find_confirmed_ending_by(day)

    def list_for_host(
        self, actor: Actor, listing_id: str | None = None
    ) -> list[Reservation]:
        """List reservations on listings the actor hosts, newest first.

        Args:
            actor: Host identity
            listing_id: Restrict to one listing (must be hosted by the actor)

        Raises:
            NotFoundError: Unknown listing
            UnauthorizedError: Actor does not host the listing, or is not a host
        """
        if listing_id is not None:
            listing = self._get_listing(listing_id)
            self.guard.require_can_list_listing(actor, listing)
            return self.repository.list_for_listings([listing.listing_id])

        self.guard.require_can_list_hosted(actor)
        hosted = self.listings.listings_for_host(actor.actor_id)
        if not hosted:
            return []
        return self.repository.list_for_listings(hosted_listing.listing_id for hosted_listing in hosted)

    def list_all(self, actor: Actor) -> list[Reservation]:
        """List every reservation, newest first. Admin only."""
        self.guard.require_can_list_all(actor)
        return self.repository.list_all()

    # =========================================================================
    # Internals
    # =========================================================================

    def _apply_transition(
        self,
        actor: Actor,
        reservation_id: str,
        target: ReservationStatus,
        *,
        only_from: ReservationStatus | None = None,
        now: dt.datetime | None = None,
    ) -> Reservation | None:
        """Shared path for manual and sweep-driven status changes.

        With ``only_from`` set, a reservation found in any other status is
        left untouched and None is returned, which makes repeated sweeps and
        sweeps racing manual changes no-ops. Without it, a lost
        compare-and-set raises.

        ``now`` stamps ``updated_at`` and decides whether a stay has ended;
        it defaults to the service clock.
        """
        reservation = self._get_reservation(reservation_id)
        listing = self._get_listing(reservation.listing_id)

        with self.locks.hold(listing.listing_id):
            current = self._get_reservation(reservation_id)
            if only_from is not None and current.status != only_from:
                logger.debug(
                    "Skipping %s -> %s for %s: status is now %s",
                    only_from.value,
                    target.value,
                    reservation_id,
                    current.status.value,
                )
                return None

            now = as_utc(now if now is not None else self.clock())
            try:
                relation = self.guard.require_can_transition(actor, current, listing, target)
                self.state_machine.check(current, target, relation, today=now.date())
            except BookingError as e:
                log_booking_operation(
                    logger,
                    "transition_status",
                    reservation_id=reservation_id,
                    listing_id=listing.listing_id,
                    actor_id=actor.actor_id,
                    error=e.code.name,
                    requested=target.value,
                )
                raise

            updated = self.repository.update_status(
                reservation_id,
                target,
                expected=current.status,
                updated_at=now,
            )

        if updated is None:
            if only_from is None:
                raise self._lost_write_error(reservation_id, current.status, target)
            return None

        log_booking_operation(
            logger,
            "transition_status",
            reservation_id=reservation_id,
            listing_id=listing.listing_id,
            actor_id=actor.actor_id,
            status=updated.status.value,
            previous=current.status.value,
            released=releases_interval(updated.status),
        )
        return updated

    def _lost_write_error(
        self,
        reservation_id: str,
        expected: ReservationStatus,
        target: ReservationStatus,
    ) -> BookingError:
        latest = self._get_reservation(reservation_id)
        details = {
            "reservation_id": reservation_id,
            "current_status": latest.status.value,
            "requested_status": target.value,
        }
        if latest.status == expected:
            # Status unchanged, so another write to the same items cancelled ours
            return ConflictError(ErrorCode.CONCURRENT_UPDATE, details=details)
        return InvalidTransitionError(ErrorCode.INVALID_TRANSITION, details=details)

    def _validate_request(self, request: ReservationCreate) -> DateInterval:
        check_in, check_out = to_day(request.check_in), to_day(request.check_out)
        if check_in >= check_out:
            raise BookingValidationError(
                ErrorCode.INVALID_DATE_RANGE,
                details={"check_in": check_in.isoformat(), "check_out": check_out.isoformat()},
            )
        if request.guest_count < 1:
            raise BookingValidationError(
                ErrorCode.INVALID_GUEST_COUNT,
                details={"guest_count": str(request.guest_count)},
            )
        interval = DateInterval(check_in=check_in, check_out=check_out)
        if interval.nights > self.max_stay_nights:
            raise BookingValidationError(
                ErrorCode.STAY_TOO_LONG,
                details={"nights": str(interval.nights), "maximum": str(self.max_stay_nights)},
            )
        return interval

    def _get_reservation(self, reservation_id: str) -> Reservation:
        reservation = self.repository.get(reservation_id)
        if reservation is None:
            raise NotFoundError(
                ErrorCode.RESERVATION_NOT_FOUND,
                details={"reservation_id": reservation_id},
            )
        return reservation

    def _get_listing(self, listing_id: str) -> Listing:
        listing = self.listings.get_listing(listing_id)
        if listing is None:
            raise NotFoundError(
                ErrorCode.LISTING_NOT_FOUND,
                details={"listing_id": listing_id},
            )
        return listing
