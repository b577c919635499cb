"""FastAPI application for the listing bookings REST API.

This package provides REST endpoints for:
- Health checks
- Listing availability and blocked dates
- Reservation requests and lifecycle changes
- Host and admin reservation listings

In AWS the expiry sweep runs from the scheduled expiry-sweeper Lambda. For
long-running processes set EXPIRY_SWEEP_ENABLED=true to run it in-process.
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from api.exceptions import register_exception_handlers
from api.middleware.correlation import CorrelationIdMiddleware
from api.routes.admin import router as admin_router
from api.routes.availability import router as availability_router
from api.routes.health import router as health_router
from api.routes.host import router as host_router
from api.routes.reservations import router as reservations_router
from bookings import __version__
from bookings.config import get_settings
from bookings.services.factory import get_expiry_sweeper
from bookings.services.scheduler import expiry_loop
from bookings.utils.logging import configure_logging, get_logger

configure_logging(get_settings().log_level)
logger = get_logger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the in-process expiry sweep when enabled."""
    settings = get_settings()
    if not settings.sweep_enabled:
        yield
        return

    stop_event = asyncio.Event()
    task = asyncio.create_task(
        expiry_loop(
            get_expiry_sweeper(),
            stop_event,
            interval_seconds=settings.sweep_interval_seconds,
        )
    )
    logger.info(
        "Expiry sweep loop started (interval=%ss)", settings.sweep_interval_seconds
    )
    try:
        yield
    finally:
        stop_event.set()
        await task
        logger.info("Expiry sweep loop stopped")


app = FastAPI(
    title="Listing Bookings API",
    description="REST API for listing availability and reservations",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

# Include routers under /api prefix
# This matches CloudFront routing: /api/* → API Gateway
app.include_router(health_router, prefix="/api")
app.include_router(availability_router, prefix="/api")
app.include_router(reservations_router, prefix="/api")
app.include_router(host_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Root health check endpoint at /api/ping."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "bookings-api",
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run("api.main:app", host=host, port=port, reload=True, reload_dirs=["src"])
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
