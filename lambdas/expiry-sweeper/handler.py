"""Expiry Sweeper Lambda - EventBridge Scheduled Rule Handler.

Runs one expiry sweep per invocation (hourly by default):
1. Cancels PENDING reservations older than PENDING_EXPIRY_HOURS
2. Completes CONFIRMED stays whose check-out has passed (AUTO_COMPLETE_STAYS)
3. Returns the sweep summary as JSON

A sweep that fails part-way leaves the remaining reservations for the next
invocation; the sweep itself never double-cancels.

Test events may pin the sweep time with {"now": "2025-06-01T12:00:00+00:00"}.
"""

import datetime as dt
from typing import Any

from bookings.config import get_settings
from bookings.services.factory import get_expiry_sweeper
from bookings.utils.clock import utc_now
from bookings.utils.logging import configure_logging, get_logger, set_correlation_id

configure_logging(get_settings().log_level)
logger = get_logger(__name__)


def resolve_now(event: dict[str, Any] | None) -> dt.datetime:
    """Get the sweep time from the event, or the current UTC time."""
    raw = (event or {}).get("now")
    if not raw:
        return utc_now()
    return dt.datetime.fromisoformat(raw)


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Lambda handler for the scheduled expiry sweep.

    Args:
        event: EventBridge scheduled event (or a test event with "now")
        context: Lambda context

    Returns:
        The sweep summary as a JSON-compatible dict
    """
    request_id = getattr(context, "aws_request_id", None)
    set_correlation_id(request_id)

    now = resolve_now(event)
    logger.info("Starting expiry sweep at %s", now.isoformat())

    summary = get_expiry_sweeper().run_expiry_sweep(now)
    return summary.model_dump(mode="json")
