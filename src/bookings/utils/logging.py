"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for request tracing
- Structured logging formatter for consistent log output
- Helper functions for reservation lifecycle and sweep logging

Usage:
    from bookings.utils.logging import get_logger, set_correlation_id

    # In middleware/request handler:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    logger.info("Reservation created", extra={"reservation_id": "RES-123"})
"""

import logging
import uuid
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bookings.models.sweep import SweepSummary

# Context variable for correlation ID - thread-safe and async-safe
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def generate_correlation_id() -> str:
    """Generate a new UUID-based correlation ID."""
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current request context.

    Args:
        correlation_id: Optional existing correlation ID. If None, generates new one.

    Returns:
        The correlation ID that was set
    """
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    """Get the current correlation ID, or None if not set."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID context."""
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter for structured log output with correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation-id"

        base = super().format(record)

        # Correlation ID prefix for easy grep/filtering
        return f"[{record.correlation_id}] {base}"


def get_logger(name: str) -> logging.Logger:
    """Get a logger with correlation ID support.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    return logger


def configure_logging(level: str | int = logging.INFO) -> None:
    """Install the structured formatter on the root logger.

    Safe to call more than once; only one handler is ever added.

    Args:
        level: Root log level name or number
    """
    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers:
        if isinstance(handler.formatter, StructuredFormatter):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(LOG_FORMAT))
    root.addHandler(handler)


def log_booking_operation(
    logger: logging.Logger,
    operation: str,
    *,
    reservation_id: str | None = None,
    listing_id: str | None = None,
    actor_id: str | None = None,
    status: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a reservation operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name (e.g., "request_reservation", "transition_status")
        reservation_id: Reservation ID if available
        listing_id: Listing ID if available
        actor_id: Acting identity
        status: Resulting reservation status
        error: Error code or message if the operation failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"operation": operation}

    if reservation_id:
        context["reservation_id"] = reservation_id
    if listing_id:
        context["listing_id"] = listing_id
    if actor_id:
        context["actor_id"] = actor_id
    if status:
        context["status"] = status
    if error:
        context["error"] = error

    context.update(extra)

    msg_parts = [f"Booking operation: {operation}"]
    for key, value in context.items():
        if key != "operation":
            msg_parts.append(f"{key}={value}")

    message = " | ".join(msg_parts)

    if error:
        logger.warning(message, extra=context)
    else:
        logger.info(message, extra=context)


def log_sweep_run(logger: logging.Logger, summary: "SweepSummary") -> None:
    """Log the outcome of an expiry sweep.

    Runs that changed nothing are logged at DEBUG to keep hourly ticks quiet;
    failures are logged at ERROR.

    Args:
        logger: Logger instance
        summary: Result of the sweep
    """
    context: dict[str, Any] = {
        "operation": "expiry_sweep",
        "cancelled_count": summary.cancelled_count,
        "completed_count": summary.completed_count,
        "failed_count": summary.failed_count,
        "threshold": summary.threshold.isoformat(),
    }

    message = (
        f"Expiry sweep: cancelled={summary.cancelled_count} "
        f"completed={summary.completed_count} failed={summary.failed_count}"
    )

    if summary.failed_count:
        logger.error(message, extra=context)
    elif summary.changed:
        logger.info(message, extra=context)
    else:
        logger.debug(message, extra=context)
