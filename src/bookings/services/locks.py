"""Per-listing mutual exclusion.

Reservation creation, status transitions and sweep-driven expiry for the
same listing run one at a time inside a process; different listings never
wait on each other.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class ListingLocks:
    """Registry of one lock per listing ID.

    A listing's lock lives only while some thread holds or waits for it, so
    the registry stays as small as the number of listings being written.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._users: dict[str, int] = {}

    def _lock_for(self, listing_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(listing_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[listing_id] = lock
            self._users[listing_id] = self._users.get(listing_id, 0) + 1
            return lock

    def _release(self, listing_id: str) -> None:
        with self._guard:
            remaining = self._users.get(listing_id, 0) - 1
            if remaining > 0:
                self._users[listing_id] = remaining
                return
            self._users.pop(listing_id, None)
            self._locks.pop(listing_id, None)

    @contextmanager
    def hold(self, listing_id: str) -> Iterator[None]:
        """Hold the listing's lock for the duration of the block."""
        lock = self._lock_for(listing_id)
        try:
            with lock:
                yield
        finally:
            self._release(listing_id)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
