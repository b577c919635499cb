"""Capability checks for booking operations."""

from bookings.models import (
    Actor,
    ActorRelation,
    ActorRole,
    ErrorCode,
    Listing,
    Reservation,
    ReservationStatus,
    UnauthorizedError,
)

from .lifecycle import CAPABILITIES, REACHABLE_STATUSES

# Roles allowed to request a reservation. Hosts may book their own listing.
RESERVING_ROLES = frozenset({ActorRole.GUEST, ActorRole.HOST, ActorRole.ADMIN})


class AuthorizationGuard:
    """Decides whether an actor may perform an operation.

    Every check raises UnauthorizedError and runs before any business rule,
    so a forbidden caller learns nothing about the reservation's state.
    """

    def relation_to(
        self, actor: Actor, reservation: Reservation, listing: Listing
    ) -> ActorRelation | None:
        """Get how an actor relates to a reservation.

        Args:
            actor: Acting identity
            reservation: Target reservation
            listing: The reservation's listing

        Returns:
            SYSTEM for the system identity, OWNER for the listing's host,
            REQUESTER for the guest who booked, otherwise None
        """
        if actor.is_system:
            return ActorRelation.SYSTEM
        if actor.actor_id == listing.host_id:
            return ActorRelation.OWNER
        if actor.actor_id == reservation.guest_id:
            return ActorRelation.REQUESTER
        return None

    def require_can_reserve(self, actor: Actor) -> None:
        if actor.role not in RESERVING_ROLES:
            raise UnauthorizedError(
                ErrorCode.UNAUTHORIZED, details={"role": actor.role.value}
            )

    def require_can_list_all(self, actor: Actor) -> None:
        if actor.role != ActorRole.ADMIN:
            raise UnauthorizedError(
                ErrorCode.UNAUTHORIZED, details={"role": actor.role.value}
            )

    def require_can_list_hosted(self, actor: Actor) -> None:
        if actor.role != ActorRole.HOST:
            raise UnauthorizedError(
                ErrorCode.UNAUTHORIZED, details={"role": actor.role.value}
            )

    def require_can_list_listing(self, actor: Actor, listing: Listing) -> None:
        if actor.actor_id != listing.host_id:
            raise UnauthorizedError(
                ErrorCode.UNAUTHORIZED, details={"listing_id": listing.listing_id}
            )

    def require_can_view(
        self, actor: Actor, reservation: Reservation, listing: Listing
    ) -> None:
        if actor.is_admin or self.relation_to(actor, reservation, listing) is not None:
            return
        raise UnauthorizedError(
            ErrorCode.UNAUTHORIZED,
            details={"reservation_id": reservation.reservation_id},
        )

    def require_can_transition(
        self,
        actor: Actor,
        reservation: Reservation,
        listing: Listing,
        target: ReservationStatus,
    ) -> ActorRelation:
        """Check that an actor could ever move a reservation to ``target``.

        Does not look at the current status; the state machine does that next.
        Targets no transition ever reaches are left for the state machine to
        reject as invalid.

        Returns:
            The actor's relation to the reservation

        Raises:
            UnauthorizedError: The actor has no relation to the reservation,
                or its relation never grants ``target``
        """
        relation = self.relation_to(actor, reservation, listing)
        if relation is None or (
            target in REACHABLE_STATUSES and target not in CAPABILITIES[relation]
        ):
            raise UnauthorizedError(
                ErrorCode.UNAUTHORIZED,
                details={"reservation_id": reservation.reservation_id},
            )
        return relation
