"""Reservation status state machine.

    PENDING ──confirm──> CONFIRMED ──complete──> COMPLETED
       │                     │
       └──────cancel─────────┴──────────────────> CANCELLED

CANCELLED and COMPLETED are terminal. Each allowed edge lists the actor
relations that may take it.
"""

import datetime as dt

from bookings.models import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    ActorRelation,
    ErrorCode,
    InvalidTransitionError,
    Reservation,
    ReservationStatus,
    UnauthorizedError,
)

Status = ReservationStatus
Relation = ActorRelation

TRANSITIONS: dict[tuple[ReservationStatus, ReservationStatus], frozenset[ActorRelation]] = {
    (Status.PENDING, Status.CONFIRMED): frozenset({Relation.OWNER}),
    (Status.PENDING, Status.CANCELLED): frozenset(
        {Relation.OWNER, Relation.REQUESTER, Relation.SYSTEM}
    ),
    (Status.CONFIRMED, Status.CANCELLED): frozenset({Relation.OWNER}),
    (Status.CONFIRMED, Status.COMPLETED): frozenset({Relation.OWNER, Relation.SYSTEM}),
}


def _capabilities() -> dict[ActorRelation, frozenset[ReservationStatus]]:
    targets: dict[ActorRelation, set[ReservationStatus]] = {r: set() for r in ActorRelation}
    for (_, target), relations in TRANSITIONS.items():
        for relation in relations:
            targets[relation].add(target)
    return {relation: frozenset(statuses) for relation, statuses in targets.items()}


# Target statuses each relation can ever request, whatever the current status
CAPABILITIES: dict[ActorRelation, frozenset[ReservationStatus]] = _capabilities()

# Statuses some transition leads to; PENDING is only ever initial
REACHABLE_STATUSES: frozenset[ReservationStatus] = frozenset(
    target for _, target in TRANSITIONS
)


def releases_interval(status: ReservationStatus) -> bool:
    """True if entering ``status`` frees the reservation's dates."""
    return status not in ACTIVE_STATUSES


class ReservationStateMachine:
    """Validates a requested status change against the transition table."""

    def check(
        self,
        reservation: Reservation,
        target: ReservationStatus,
        relation: ActorRelation,
        *,
        today: dt.date,
    ) -> None:
        """Validate a transition for an already-authorized actor.

        Args:
            reservation: Current state of the reservation
            target: Requested status
            relation: How the actor relates to the reservation
            today: Current calendar day, for system completion

        Raises:
            InvalidTransitionError: The edge does not exist, or starts from a
                terminal status
            UnauthorizedError: The edge exists but not for this relation
        """
        current = reservation.status
        details = {
            "reservation_id": reservation.reservation_id,
            "current_status": current.value,
            "requested_status": target.value,
        }

        if current in TERMINAL_STATUSES:
            raise InvalidTransitionError(ErrorCode.INVALID_TRANSITION, details=details)

        allowed = TRANSITIONS.get((current, target))
        if allowed is None:
            raise InvalidTransitionError(ErrorCode.INVALID_TRANSITION, details=details)

        if relation not in allowed:
            raise UnauthorizedError(ErrorCode.UNAUTHORIZED, details=details)

        # The system only completes stays that have already ended
        if (
            relation == Relation.SYSTEM
            and target == Status.COMPLETED
            and reservation.check_out > today
        ):
            raise InvalidTransitionError(
                ErrorCode.INVALID_TRANSITION,
                details={**details, "check_out": reservation.check_out.isoformat()},
            )
