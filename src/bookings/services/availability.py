"""Availability index for listing calendars."""

import bisect
import datetime as dt
from typing import TYPE_CHECKING

from bookings.models import DateInterval, to_day

if TYPE_CHECKING:
    from .repository import ReservationRepository


class AvailabilityIndex:
    """Answers availability questions from the active reservations of a listing.

    The index reads through to the repository on every query, so every
    write the repository accepts is reflected immediately.
    """

    def __init__(self, repository: "ReservationRepository") -> None:
        """Initialize availability index.

        Args:
            repository: Reservation repository
        """
        self.repository = repository

    def active_intervals(self, listing_id: str) -> list[DateInterval]:
        """Get the active intervals of a listing.

        Args:
            listing_id: Listing to inspect

        Returns:
            PENDING/CONFIRMED intervals sorted by check_in
        """
        intervals = self.repository.load_active_intervals(listing_id)
        return sorted(intervals, key=lambda i: i.check_in)

    def find_conflicts(
        self,
        listing_id: str,
        candidate: DateInterval,
        intervals: list[DateInterval] | None = None,
    ) -> list[DateInterval]:
        """Find the active intervals overlapping a candidate.

        Active intervals never overlap each other, so sorted by check_in they
        are also sorted by check_out. A binary search finds the first interval
        ending after the candidate starts; overlaps are contiguous from there.

        Args:
            listing_id: Listing to inspect
            candidate: Requested interval
            intervals: Pre-loaded active intervals (sorted by check_in)

        Returns:
            Overlapping intervals in check_in order
        """
        if intervals is None:
            intervals = self.active_intervals(listing_id)

        start = bisect.bisect_right(
            intervals, candidate.check_in, key=lambda i: i.check_out
        )
        conflicts = []
        for interval in intervals[start:]:
            if interval.check_in >= candidate.check_out:
                break
            conflicts.append(interval)
        return conflicts

    def is_available(
        self,
        listing_id: str,
        check_in: dt.date | dt.datetime,
        check_out: dt.date | dt.datetime,
    ) -> bool:
        """Check whether a date range is free on a listing.

        Args:
            listing_id: Listing to check
            check_in: First night
            check_out: Departure day (exclusive)

        Returns:
            True if no active reservation overlaps the range. An empty or
            inverted range is never available. A listing without reservations
            is always available.
        """
        start, end = to_day(check_in), to_day(check_out)
        if start >= end:
            return False
        candidate = DateInterval(check_in=start, check_out=end)
        return not self.find_conflicts(listing_id, candidate)

    def blocked_dates(self, listing_id: str) -> set[dt.date]:
        """Get every day blocked by an active reservation.

        Args:
            listing_id: Listing to inspect

        Returns:
            Unordered set of blocked calendar days
        """
        blocked: set[dt.date] = set()
        for interval in self.repository.load_active_intervals(listing_id):
            blocked.update(interval.days())
        return blocked

    def sorted_blocked_dates(self, listing_id: str) -> list[dt.date]:
        """Blocked days in ascending order, for calendar display."""
        return sorted(self.blocked_dates(listing_id))
