"""Enumeration types for booking data models."""

from enum import Enum


class ReservationStatus(str, Enum):
    """Status of a reservation."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


# Statuses whose interval blocks the listing calendar
ACTIVE_STATUSES: frozenset[ReservationStatus] = frozenset(
    {ReservationStatus.PENDING, ReservationStatus.CONFIRMED}
)

# No outgoing transitions
TERMINAL_STATUSES: frozenset[ReservationStatus] = frozenset(
    {ReservationStatus.CANCELLED, ReservationStatus.COMPLETED}
)


class ActorRole(str, Enum):
    """Role of the identity performing an operation."""

    GUEST = "GUEST"
    HOST = "HOST"
    ADMIN = "ADMIN"
    SYSTEM = "SYSTEM"


class ActorRelation(str, Enum):
    """How an actor relates to a specific reservation."""

    OWNER = "owner"  # host of the reserved listing
    REQUESTER = "requester"  # guest who made the reservation
    SYSTEM = "system"
