"""API routes package.

FastAPI routers, organized by audience:

- health: Health check endpoint
- availability: Availability and blocked dates (public)
- reservations: Reservation requests and status changes
- host: Reservations on the caller's listings
- admin: Platform-wide reservation listing

All routers are registered in main.py with /api prefix.
"""

from api.routes.admin import router as admin_router
from api.routes.availability import router as availability_router
from api.routes.health import router as health_router
from api.routes.host import router as host_router
from api.routes.reservations import router as reservations_router

__all__ = [
    "admin_router",
    "availability_router",
    "health_router",
    "host_router",
    "reservations_router",
]
