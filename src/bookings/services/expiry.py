"""Expiry sweeper for reservations that were never confirmed."""

import datetime as dt
from typing import TYPE_CHECKING

from bookings.models import SweepSummary
from bookings.utils.clock import as_utc
from bookings.utils.logging import get_logger, log_sweep_run

if TYPE_CHECKING:
    from .booking import BookingService

logger = get_logger(__name__)

DEFAULT_PENDING_TTL = dt.timedelta(hours=24)


class ExpirySweeper:
    """Cancels stale PENDING reservations and completes finished stays.

    Every change goes through BookingService with the system identity, so
    the sweep obeys the same locks and transition rules as manual updates.
    Running it repeatedly, or concurrently with itself, only ever changes a
    reservation once.
    """

    def __init__(
        self,
        service: "BookingService",
        *,
        pending_ttl: dt.timedelta = DEFAULT_PENDING_TTL,
        auto_complete: bool = True,
    ) -> None:
        """Initialize expiry sweeper.

        Args:
            service: Booking service used for every transition
            pending_ttl: How long a reservation may stay PENDING
            auto_complete: Also complete CONFIRMED stays whose check-out passed
        """
        self.service = service
        self.pending_ttl = pending_ttl
        self.auto_complete = auto_complete

    def run_expiry_sweep(self, now: dt.datetime) -> SweepSummary:
        """Run one sweep as of ``now``.

        A reservation that fails to update is logged and counted in
        ``failed_count``; it is still PENDING and the next sweep retries it.

        Args:
            now: Time the sweep evaluates against (naive values are UTC)

        Returns:
            Counts of cancelled, completed and failed reservations
        """
        now = as_utc(now)
        threshold = now - self.pending_ttl
        cancelled = completed = failed = 0

        for reservation in self.service.find_pending_older_than(threshold):
            try:
                if self.service.expire_reservation(reservation.reservation_id, now=now):
                    cancelled += 1
            except Exception:
                failed += 1
                logger.exception(
                    "Failed to expire reservation %s", reservation.reservation_id
                )

        if self.auto_complete:
            for reservation in self.service.find_confirmed_ending_by(now.date()):
                try:
                    if self.service.complete_reservation(
                        reservation.reservation_id, now=now
                    ):
                        completed += 1
                except Exception:
                    failed += 1
                    logger.exception(
                        "Failed to complete reservation %s", reservation.reservation_id
                    )

        summary = SweepSummary(
            started_at=now,
            threshold=threshold,
            cancelled_count=cancelled,
            completed_count=completed,
            failed_count=failed,
        )
        log_sweep_run(logger, summary)
        return summary
