"""In-process timer for the expiry sweep.

Production deployments trigger the sweep from a scheduled Lambda; this loop
serves long-running processes (local uvicorn, containers).
"""

import asyncio
import datetime as dt
from collections.abc import Callable
from typing import TYPE_CHECKING

from bookings.utils.clock import utc_now
from bookings.utils.logging import get_logger

if TYPE_CHECKING:
    from .expiry import ExpirySweeper

logger = get_logger(__name__)


async def expiry_loop(
    sweeper: "ExpirySweeper",
    stop_event: asyncio.Event,
    interval_seconds: float = 3600,
    clock: Callable[[], dt.datetime] = utc_now,
) -> None:
    """Run the sweep every ``interval_seconds`` until ``stop_event`` is set.

    Each tick runs in a worker thread so request handling is never blocked.
    A failed tick is logged and the loop carries on.
    """
    while not stop_event.is_set():
        try:
            await asyncio.to_thread(sweeper.run_expiry_sweep, clock())
        except Exception:
            logger.exception("Expiry sweep tick failed")
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            continue
