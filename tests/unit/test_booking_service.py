"""Unit tests for BookingService.

Tests for:
- request_reservation(): validation, capacity, conflicts
- transition_status(): lifecycle, authorization ordering, release-on-cancel
- get_reservation(), list_for_host(), list_all()
"""

import datetime as dt
import re
from collections.abc import Callable
from unittest.mock import MagicMock

import pytest

from bookings.models import (
    Actor,
    ActorRole,
    BookingValidationError,
    ConflictError,
    ErrorCode,
    InvalidTransitionError,
    NotFoundError,
    Reservation,
    ReservationCreate,
    ReservationStatus,
    UnauthorizedError,
)
from bookings.services.booking import BookingService, generate_reservation_id
from bookings.services.repository import InMemoryReservationRepository

D = dt.date
Status = ReservationStatus


def request(
    check_in: dt.date = D(2025, 7, 1),
    check_out: dt.date = D(2025, 7, 3),
    *,
    listing_id: str = "LST-001",
    guest_count: int = 2,
) -> ReservationCreate:
    return ReservationCreate(
        listing_id=listing_id,
        check_in=check_in,
        check_out=check_out,
        guest_count=guest_count,
    )


class TestGenerateReservationId:
    def test_format(self) -> None:
        rid = generate_reservation_id(dt.datetime(2025, 3, 1, tzinfo=dt.UTC))
        assert re.fullmatch(r"RES-2025-[0-9A-F]{8}", rid)

    def test_unique(self) -> None:
        assert len({generate_reservation_id() for _ in range(100)}) == 100


class TestRequestReservation:
    """Tests for request_reservation()."""

    def test_creates_pending_reservation(
        self, service: BookingService, guest: Actor
    ) -> None:
        reservation = service.request_reservation(guest, request())

        assert reservation.status == Status.PENDING
        assert reservation.guest_id == guest.actor_id
        assert reservation.created_at == reservation.updated_at == service.clock()
        assert service.repository.get(reservation.reservation_id) == reservation
        assert not service.is_available("LST-001", D(2025, 7, 2), D(2025, 7, 4))

    def test_datetimes_are_truncated(self, service: BookingService, guest: Actor) -> None:
        reservation = service.request_reservation(
            guest,
            ReservationCreate(
                listing_id="LST-001",
                check_in=dt.datetime(2025, 7, 1, 15, 0),
                check_out=dt.datetime(2025, 7, 3, 11, 0),
            ),
        )
        assert (reservation.check_in, reservation.check_out) == (D(2025, 7, 1), D(2025, 7, 3))

    def test_inverted_range_rejected(self, service: BookingService, guest: Actor) -> None:
        with pytest.raises(BookingValidationError) as exc_info:
            service.request_reservation(guest, request(D(2025, 7, 3), D(2025, 7, 1)))
        assert exc_info.value.code == ErrorCode.INVALID_DATE_RANGE

    def test_empty_range_rejected(self, service: BookingService, guest: Actor) -> None:
        with pytest.raises(BookingValidationError) as exc_info:
            service.request_reservation(guest, request(D(2025, 7, 1), D(2025, 7, 1)))
        assert exc_info.value.code == ErrorCode.INVALID_DATE_RANGE

    @pytest.mark.parametrize("count", [0, -1])
    def test_non_positive_guest_count_rejected(
        self, service: BookingService, guest: Actor, count: int
    ) -> None:
        with pytest.raises(BookingValidationError) as exc_info:
            service.request_reservation(guest, request(guest_count=count))
        assert exc_info.value.code == ErrorCode.INVALID_GUEST_COUNT

    def test_validation_runs_before_storage(self, guest: Actor) -> None:
        """A malformed request never touches the repository."""
        repository = MagicMock()
        listings = MagicMock()
        service = BookingService(repository, listings)

        with pytest.raises(BookingValidationError):
            service.request_reservation(guest, request(D(2025, 7, 3), D(2025, 7, 1)))
        repository.assert_not_called()
        assert repository.method_calls == []
        assert listings.method_calls == []

    def test_guest_count_over_capacity_rejected(
        self, service: BookingService, guest: Actor
    ) -> None:
        with pytest.raises(BookingValidationError) as exc_info:
            service.request_reservation(guest, request(listing_id="LST-002", guest_count=3))
        assert exc_info.value.code == ErrorCode.MAX_GUESTS_EXCEEDED
        assert exc_info.value.details == {"requested": "3", "maximum": "2"}

    def test_stay_too_long_rejected(
        self, repository: InMemoryReservationRepository, listings, guest: Actor
    ) -> None:
        service = BookingService(repository, listings, max_stay_nights=7)
        with pytest.raises(BookingValidationError) as exc_info:
            service.request_reservation(guest, request(D(2025, 7, 1), D(2025, 7, 9)))
        assert exc_info.value.code == ErrorCode.STAY_TOO_LONG

    def test_unknown_listing(self, service: BookingService, guest: Actor) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            service.request_reservation(guest, request(listing_id="LST-404"))
        assert exc_info.value.code == ErrorCode.LISTING_NOT_FOUND

    def test_system_cannot_reserve(self, service: BookingService) -> None:
        with pytest.raises(UnauthorizedError):
            service.request_reservation(Actor.system(), request())

    def test_overlap_rejected_with_conflict_details(
        self, service: BookingService, guest: Actor, other_guest: Actor
    ) -> None:
        service.request_reservation(guest, request(D(2025, 7, 1), D(2025, 7, 5)))

        with pytest.raises(ConflictError) as exc_info:
            service.request_reservation(other_guest, request(D(2025, 7, 4), D(2025, 7, 6)))

        assert exc_info.value.code == ErrorCode.DATES_UNAVAILABLE
        assert exc_info.value.details["conflicts"] == "[2025-07-01, 2025-07-05)"

    def test_back_to_back_stays_allowed(
        self, service: BookingService, guest: Actor, other_guest: Actor
    ) -> None:
        service.request_reservation(guest, request(D(2025, 7, 1), D(2025, 7, 5)))
        second = service.request_reservation(other_guest, request(D(2025, 7, 5), D(2025, 7, 8)))
        assert second.status == Status.PENDING

    def test_same_dates_on_other_listing_allowed(
        self, service: BookingService, guest: Actor
    ) -> None:
        service.request_reservation(guest, request())
        other = service.request_reservation(guest, request(listing_id="LST-002", guest_count=1))
        assert other.listing_id == "LST-002"


class TestTransitionStatus:
    """Tests for transition_status()."""

    def test_host_confirms(
        self, service: BookingService, guest: Actor, host: Actor, clock
    ) -> None:
        reservation = service.request_reservation(guest, request())
        clock.advance(hours=2)

        confirmed = service.transition_status(host, reservation.reservation_id, Status.CONFIRMED)

        assert confirmed.status == Status.CONFIRMED
        assert confirmed.updated_at == clock.now
        assert confirmed.created_at == reservation.created_at
        assert service.get_reservation(host, reservation.reservation_id).status == Status.CONFIRMED

    def test_other_host_confirm_is_unauthorized(
        self, service: BookingService, guest: Actor, other_host: Actor
    ) -> None:
        """H2 does not own the listing, so the status stays PENDING."""
        reservation = service.request_reservation(guest, request())

        with pytest.raises(UnauthorizedError):
            service.transition_status(other_host, reservation.reservation_id, Status.CONFIRMED)

        assert service.repository.get(reservation.reservation_id).status == Status.PENDING

    def test_unauthorized_checked_before_transition_validity(
        self,
        service: BookingService,
        make_reservation: Callable[..., Reservation],
        other_guest: Actor,
    ) -> None:
        """A stranger gets Unauthorized even for a terminal reservation."""
        cancelled = make_reservation(D(2025, 7, 1), D(2025, 7, 3), status=Status.CANCELLED)

        with pytest.raises(UnauthorizedError):
            service.transition_status(other_guest, cancelled.reservation_id, Status.CONFIRMED)

    def test_requester_cancels_pending(
        self, service: BookingService, guest: Actor
    ) -> None:
        reservation = service.request_reservation(guest, request())
        cancelled = service.transition_status(guest, reservation.reservation_id, Status.CANCELLED)
        assert cancelled.status == Status.CANCELLED

    def test_requester_cannot_cancel_confirmed(
        self, service: BookingService, guest: Actor, host: Actor
    ) -> None:
        reservation = service.request_reservation(guest, request())
        service.transition_status(host, reservation.reservation_id, Status.CONFIRMED)

        with pytest.raises(UnauthorizedError):
            service.transition_status(guest, reservation.reservation_id, Status.CANCELLED)

    def test_host_cancels_confirmed(
        self, service: BookingService, guest: Actor, host: Actor
    ) -> None:
        reservation = service.request_reservation(guest, request())
        service.transition_status(host, reservation.reservation_id, Status.CONFIRMED)
        cancelled = service.transition_status(host, reservation.reservation_id, Status.CANCELLED)
        assert cancelled.status == Status.CANCELLED

    def test_host_completes_confirmed(
        self, service: BookingService, guest: Actor, host: Actor
    ) -> None:
        reservation = service.request_reservation(guest, request())
        service.transition_status(host, reservation.reservation_id, Status.CONFIRMED)
        completed = service.transition_status(host, reservation.reservation_id, Status.COMPLETED)
        assert completed.status == Status.COMPLETED

    @pytest.mark.parametrize("terminal", [Status.CANCELLED, Status.COMPLETED])
    @pytest.mark.parametrize("target", list(Status))
    def test_terminal_states_are_immutable(
        self,
        service: BookingService,
        make_reservation: Callable[..., Reservation],
        host: Actor,
        terminal: ReservationStatus,
        target: ReservationStatus,
    ) -> None:
        reservation = make_reservation(D(2025, 7, 1), D(2025, 7, 3), status=terminal)

        with pytest.raises(InvalidTransitionError):
            service.transition_status(host, reservation.reservation_id, target)

        assert service.repository.get(reservation.reservation_id).status == terminal

    def test_confirmed_to_pending_is_invalid(
        self, service: BookingService, guest: Actor, host: Actor
    ) -> None:
        reservation = service.request_reservation(guest, request())
        service.transition_status(host, reservation.reservation_id, Status.CONFIRMED)

        with pytest.raises(InvalidTransitionError):
            service.transition_status(host, reservation.reservation_id, Status.PENDING)

    def test_cancel_releases_exact_range(
        self, service: BookingService, guest: Actor, host: Actor
    ) -> None:
        reservation = service.request_reservation(guest, request(D(2025, 7, 1), D(2025, 7, 5)))
        service.transition_status(host, reservation.reservation_id, Status.CONFIRMED)
        assert service.is_available("LST-001", D(2025, 7, 1), D(2025, 7, 5)) is False

        service.transition_status(host, reservation.reservation_id, Status.CANCELLED)

        assert service.is_available("LST-001", D(2025, 7, 1), D(2025, 7, 5)) is True
        assert service.blocked_dates("LST-001") == set()

    def test_unknown_reservation(self, service: BookingService, host: Actor) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            service.transition_status(host, "RES-2025-MISSING0", Status.CONFIRMED)
        assert exc_info.value.code == ErrorCode.RESERVATION_NOT_FOUND

    def test_lost_race_reported_as_invalid_transition(
        self, service: BookingService, guest: Actor, host: Actor
    ) -> None:
        """Compare-and-set failure after the checks surfaces as InvalidTransition."""
        reservation = service.request_reservation(guest, request())
        real_update = service.repository.update_status

        def racing_update(reservation_id, new_status, *, expected, updated_at):
            # Another writer cancels between the checks and the write
            real_update(
                reservation_id, Status.CANCELLED, expected=Status.PENDING, updated_at=updated_at
            )
            return real_update(
                reservation_id, new_status, expected=expected, updated_at=updated_at
            )

        service.repository.update_status = racing_update  # type: ignore[method-assign]

        with pytest.raises(InvalidTransitionError) as exc_info:
            service.transition_status(host, reservation.reservation_id, Status.CONFIRMED)
        assert exc_info.value.details["current_status"] == "CANCELLED"

    def test_cancelled_write_with_unchanged_status_is_conflict(
        self, service: BookingService, guest: Actor, host: Actor
    ) -> None:
        """A write cancelled by a concurrent transaction is retryable, not invalid."""
        reservation = service.request_reservation(guest, request())
        real_update = service.repository.update_status

        def cancelled_update(reservation_id, new_status, *, expected, updated_at):
            # Transaction conflict: nothing written, status still PENDING
            return None

        service.repository.update_status = cancelled_update  # type: ignore[method-assign]

        with pytest.raises(ConflictError) as exc_info:
            service.transition_status(host, reservation.reservation_id, Status.CONFIRMED)
        assert exc_info.value.code == ErrorCode.CONCURRENT_UPDATE
        assert exc_info.value.details["current_status"] == "PENDING"
        assert service.repository.get(reservation.reservation_id).status == Status.PENDING

        # Retrying once the conflict clears succeeds
        service.repository.update_status = real_update  # type: ignore[method-assign]
        confirmed = service.transition_status(host, reservation.reservation_id, Status.CONFIRMED)
        assert confirmed.status == Status.CONFIRMED


class TestSystemTransitions:
    """Tests for expire_reservation() and complete_reservation()."""

    def test_expire_pending(self, service: BookingService, guest: Actor) -> None:
        reservation = service.request_reservation(guest, request())
        expired = service.expire_reservation(reservation.reservation_id)
        assert expired is not None
        assert expired.status == Status.CANCELLED

    def test_expire_is_noop_once_confirmed(
        self, service: BookingService, guest: Actor, host: Actor
    ) -> None:
        reservation = service.request_reservation(guest, request())
        service.transition_status(host, reservation.reservation_id, Status.CONFIRMED)

        assert service.expire_reservation(reservation.reservation_id) is None
        assert service.repository.get(reservation.reservation_id).status == Status.CONFIRMED

    def test_complete_after_check_out(
        self, service: BookingService, make_reservation: Callable[..., Reservation]
    ) -> None:
        past = make_reservation(D(2025, 5, 20), D(2025, 5, 25), status=Status.CONFIRMED)
        completed = service.complete_reservation(past.reservation_id)
        assert completed is not None
        assert completed.status == Status.COMPLETED

    def test_complete_before_check_out_is_invalid(
        self, service: BookingService, make_reservation: Callable[..., Reservation]
    ) -> None:
        ongoing = make_reservation(D(2025, 5, 30), D(2025, 6, 3), status=Status.CONFIRMED)
        with pytest.raises(InvalidTransitionError):
            service.complete_reservation(ongoing.reservation_id)

    def test_complete_is_noop_for_pending(
        self, service: BookingService, make_reservation: Callable[..., Reservation]
    ) -> None:
        pending = make_reservation(D(2025, 5, 20), D(2025, 5, 25))
        assert service.complete_reservation(pending.reservation_id) is None


class TestQueries:
    """Tests for get_reservation(), list_for_host() and list_all()."""

    def test_get_reservation_visibility(
        self,
        service: BookingService,
        guest: Actor,
        host: Actor,
        admin: Actor,
        other_guest: Actor,
        other_host: Actor,
    ) -> None:
        reservation = service.request_reservation(guest, request())

        for actor in (guest, host, admin):
            assert service.get_reservation(actor, reservation.reservation_id) == reservation
        for actor in (other_guest, other_host):
            with pytest.raises(UnauthorizedError):
                service.get_reservation(actor, reservation.reservation_id)

    def test_get_unknown_reservation(self, service: BookingService, admin: Actor) -> None:
        with pytest.raises(NotFoundError):
            service.get_reservation(admin, "RES-2025-MISSING0")

    def test_list_for_host_newest_first(
        self, service: BookingService, guest: Actor, host: Actor, clock
    ) -> None:
        first = service.request_reservation(guest, request(D(2025, 7, 1), D(2025, 7, 3)))
        clock.advance(minutes=5)
        second = service.request_reservation(guest, request(D(2025, 8, 1), D(2025, 8, 3)))
        service.request_reservation(guest, request(listing_id="LST-002", guest_count=1))

        listed = service.list_for_host(host)
        assert [r.reservation_id for r in listed] == [second.reservation_id, first.reservation_id]

    def test_list_for_host_by_listing(
        self, service: BookingService, guest: Actor, host: Actor, other_host: Actor
    ) -> None:
        reservation = service.request_reservation(guest, request())

        assert service.list_for_host(host, "LST-001") == [reservation]
        with pytest.raises(UnauthorizedError):
            service.list_for_host(other_host, "LST-001")
        with pytest.raises(NotFoundError):
            service.list_for_host(host, "LST-404")

    def test_list_for_host_requires_host_role(
        self, service: BookingService, guest: Actor
    ) -> None:
        with pytest.raises(UnauthorizedError):
            service.list_for_host(guest)

    def test_list_for_host_without_listings(self, service: BookingService) -> None:
        assert service.list_for_host(Actor(actor_id="host-9", role=ActorRole.HOST)) == []

    def test_list_all_admin_only(
        self, service: BookingService, guest: Actor, host: Actor, admin: Actor, clock
    ) -> None:
        first = service.request_reservation(guest, request())
        clock.advance(seconds=1)
        second = service.request_reservation(guest, request(listing_id="LST-002", guest_count=1))

        assert service.list_all(admin) == [second, first]
        with pytest.raises(UnauthorizedError):
            service.list_all(host)
