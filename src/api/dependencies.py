"""FastAPI dependency providers for services and the acting identity.

API Gateway validates the JWT and forwards identity claims as headers:
``x-user-sub`` carries the subject and ``x-user-role`` the role
(GUEST when absent). Requests without a subject are anonymous.

Usage in routes:
    @router.get("/reservations/{reservation_id}")
    async def get_reservation(
        actor: Actor = Depends(get_current_actor),
        service: BookingService = Depends(get_booking_service),
    ):
        ...

Testing:
    Override get_booking_service via app.dependency_overrides, or set
    BOOKINGS_STORAGE=memory and call reset_services() between tests.
"""

from fastapi import Request

from bookings.models import Actor, ActorRole, ErrorCode, UnauthorizedError
from bookings.services.booking import BookingService
from bookings.services.factory import get_booking_service as _get_booking_service
from bookings.services.factory import reset_services
from bookings.utils.logging import get_logger

logger = get_logger(__name__)

USER_SUB_HEADER = "x-user-sub"
USER_ROLE_HEADER = "x-user-role"

# Roles a client may claim; SYSTEM is reserved for scheduled jobs
CLIENT_ROLES = frozenset({ActorRole.GUEST, ActorRole.HOST, ActorRole.ADMIN})

__all__ = [
    "get_booking_service",
    "get_current_actor",
    "get_optional_actor",
    "reset_services",
]


def get_booking_service() -> BookingService:
    """Get the cached BookingService instance."""
    return _get_booking_service()


def get_optional_actor(request: Request) -> Actor | None:
    """Build the acting identity from API Gateway headers, if present.

    Unknown roles are treated as GUEST.
    """
    sub = request.headers.get(USER_SUB_HEADER)
    if not sub or not sub.strip():
        return None

    raw_role = (request.headers.get(USER_ROLE_HEADER) or ActorRole.GUEST.value).strip().upper()
    try:
        role = ActorRole(raw_role)
    except ValueError:
        role = ActorRole.GUEST
    if role not in CLIENT_ROLES:
        logger.warning("Rejected client role claim %s on %s", raw_role, request.url.path)
        role = ActorRole.GUEST

    return Actor(actor_id=sub.strip(), role=role)


def get_current_actor(request: Request) -> Actor:
    """Require an identity on the request.

    Raises:
        UnauthorizedError: AUTH_REQUIRED when no subject header is present
    """
    actor = get_optional_actor(request)
    if actor is None:
        logger.warning("auth_subject_missing", extra={"path": request.url.path})
        raise UnauthorizedError(ErrorCode.AUTH_REQUIRED)
    return actor
