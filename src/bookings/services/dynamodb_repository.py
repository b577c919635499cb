"""DynamoDB-backed reservation repository and listing directory.

Tables (names prefixed by DynamoDBService):

- ``reservations``: PK ``reservation_id``; GSI ``listing_id-index``
  (``listing_id`` / ``check_in``); GSI ``status-index`` (``status`` /
  ``created_at``).
- ``night-claims``: PK ``listing_id``, SK ``night``. One item per night held
  by an active reservation. Conditional puts on this table make DynamoDB
  itself reject overlapping reservations, even across processes.
- ``listings``: PK ``listing_id``; GSI ``host_id-index``.
"""

import datetime as dt
from collections.abc import Iterable
from typing import Any

from boto3.dynamodb.conditions import Attr, Key

from bookings.models import (
    ACTIVE_STATUSES,
    BookingValidationError,
    ConflictError,
    DateInterval,
    ErrorCode,
    Listing,
    NotFoundError,
    Reservation,
    ReservationStatus,
)
from bookings.utils.clock import as_utc

from .dynamodb import DynamoDBService, serialize_attribute
from .lifecycle import releases_interval
from .repository import newest_first

RESERVATIONS_TABLE = "reservations"
NIGHT_CLAIMS_TABLE = "night-claims"
LISTINGS_TABLE = "listings"

LISTING_INDEX = "listing_id-index"
STATUS_INDEX = "status-index"
HOST_INDEX = "host_id-index"

# DynamoDB caps a transaction at 100 items: one reservation plus its nights
MAX_NIGHTS_PER_TRANSACTION = 99


def format_timestamp(value: dt.datetime) -> str:
    """Fixed-width UTC ISO timestamp, so string order matches time order."""
    return as_utc(value).isoformat(timespec="microseconds")


def reservation_to_item(reservation: Reservation) -> dict[str, Any]:
    """Convert a Reservation to a DynamoDB item."""
    return {
        "reservation_id": reservation.reservation_id,
        "listing_id": reservation.listing_id,
        "guest_id": reservation.guest_id,
        "check_in": reservation.check_in.isoformat(),
        "check_out": reservation.check_out.isoformat(),
        "guest_count": reservation.guest_count,
        "status": reservation.status.value,
        "created_at": format_timestamp(reservation.created_at),
        "updated_at": format_timestamp(reservation.updated_at),
    }


def item_to_reservation(item: dict[str, Any]) -> Reservation:
    """Convert a DynamoDB item to a Reservation."""
    return Reservation(
        reservation_id=item["reservation_id"],
        listing_id=item["listing_id"],
        guest_id=item["guest_id"],
        check_in=dt.date.fromisoformat(item["check_in"]),
        check_out=dt.date.fromisoformat(item["check_out"]),
        guest_count=int(item["guest_count"]),
        status=ReservationStatus(item["status"]),
        created_at=dt.datetime.fromisoformat(item["created_at"]),
        updated_at=dt.datetime.fromisoformat(item["updated_at"]),
    )


class DynamoDBReservationRepository:
    """Reservation repository on DynamoDB."""

    def __init__(self, db: DynamoDBService) -> None:
        self.db = db

    def get(self, reservation_id: str) -> Reservation | None:
        item = self.db.get_item(RESERVATIONS_TABLE, {"reservation_id": reservation_id})
        if not item:
            return None
        return item_to_reservation(item)

    def load_active_intervals(self, listing_id: str) -> list[DateInterval]:
        items = self.db.query_by_gsi(
            table=RESERVATIONS_TABLE,
            index_name=LISTING_INDEX,
            partition_key_name="listing_id",
            partition_key_value=listing_id,
            filter_expression=Attr("status").is_in([s.value for s in ACTIVE_STATUSES]),
        )
        intervals = [
            DateInterval(
                check_in=dt.date.fromisoformat(item["check_in"]),
                check_out=dt.date.fromisoformat(item["check_out"]),
            )
            for item in items
        ]
        return sorted(intervals, key=lambda i: i.check_in)

    def insert_reservation(self, reservation: Reservation) -> Reservation:
        """Atomically store a reservation and claim each of its nights.

        Raises:
            ConflictError: A night is already claimed, or the ID exists
            BookingValidationError: Too many nights for one transaction
        """
        interval = reservation.interval
        if interval.nights > MAX_NIGHTS_PER_TRANSACTION:
            raise BookingValidationError(
                ErrorCode.STAY_TOO_LONG,
                details={
                    "nights": str(interval.nights),
                    "maximum": str(MAX_NIGHTS_PER_TRANSACTION),
                },
            )

        item = reservation_to_item(reservation)
        transact_items: list[dict[str, Any]] = [
            {
                "Put": {
                    "TableName": self.db.table_name(RESERVATIONS_TABLE),
                    "Item": {k: serialize_attribute(v) for k, v in item.items()},
                    "ConditionExpression": "attribute_not_exists(reservation_id)",
                }
            }
        ]

        # Only succeeds if no other reservation holds the night
        for night in interval.days():
            transact_items.append(
                {
                    "Put": {
                        "TableName": self.db.table_name(NIGHT_CLAIMS_TABLE),
                        "Item": {
                            "listing_id": {"S": reservation.listing_id},
                            "night": {"S": night.isoformat()},
                            "reservation_id": {"S": reservation.reservation_id},
                        },
                        "ConditionExpression": "attribute_not_exists(night)",
                    }
                }
            )

        if not self.db.transact_write(transact_items):
            raise ConflictError(
                ErrorCode.DATES_UNAVAILABLE,
                details={"requested": str(interval), "reason": "booking_conflict"},
            )
        return reservation

    def update_status(
        self,
        reservation_id: str,
        new_status: ReservationStatus,
        *,
        expected: ReservationStatus,
        updated_at: dt.datetime,
    ) -> Reservation | None:
        """Compare-and-set the status, releasing night claims when it frees dates."""
        current = self.get(reservation_id)
        if current is None:
            raise NotFoundError(
                ErrorCode.RESERVATION_NOT_FOUND,
                details={"reservation_id": reservation_id},
            )
        if current.status != expected:
            return None

        now = format_timestamp(updated_at)
        transact_items: list[dict[str, Any]] = [
            {
                "Update": {
                    "TableName": self.db.table_name(RESERVATIONS_TABLE),
                    "Key": {"reservation_id": {"S": reservation_id}},
                    "UpdateExpression": "SET #s = :new, updated_at = :now",
                    "ConditionExpression": "#s = :expected",
                    "ExpressionAttributeNames": {"#s": "status"},
                    "ExpressionAttributeValues": {
                        ":new": {"S": new_status.value},
                        ":expected": {"S": expected.value},
                        ":now": {"S": now},
                    },
                }
            }
        ]

        if releases_interval(new_status) and not releases_interval(expected):
            # Missing claims are tolerated; claims held by others are not touched
            for night in current.interval.days():
                transact_items.append(
                    {
                        "Delete": {
                            "TableName": self.db.table_name(NIGHT_CLAIMS_TABLE),
                            "Key": {
                                "listing_id": {"S": current.listing_id},
                                "night": {"S": night.isoformat()},
                            },
                            "ConditionExpression": (
                                "attribute_not_exists(night) OR reservation_id = :rid"
                            ),
                            "ExpressionAttributeValues": {
                                ":rid": {"S": reservation_id},
                            },
                        }
                    }
                )

        if not self.db.transact_write(transact_items):
            return None

        return current.model_copy(update={"status": new_status, "updated_at": as_utc(updated_at)})

    def find_pending_older_than(self, timestamp: dt.datetime) -> list[Reservation]:
        items = self.db.query_by_gsi(
            table=RESERVATIONS_TABLE,
            index_name=STATUS_INDEX,
            partition_key_name="status",
            partition_key_value=ReservationStatus.PENDING.value,
            sort_key_condition=Key("created_at").lt(format_timestamp(timestamp)),
        )
        return [item_to_reservation(item) for item in items]

    def find_confirmed_ending_by(self, day: dt.date) -> list[Reservation]:
        items = self.db.query_by_gsi(
            table=RESERVATIONS_TABLE,
            index_name=STATUS_INDEX,
            partition_key_name="status",
            partition_key_value=ReservationStatus.CONFIRMED.value,
            filter_expression=Attr("check_out").lte(day.isoformat()),
        )
        return [item_to_reservation(item) for item in items]

    def list_for_listings(self, listing_ids: Iterable[str]) -> list[Reservation]:
        reservations: list[Reservation] = []
        for listing_id in dict.fromkeys(listing_ids):
            items = self.db.query_by_gsi(
                table=RESERVATIONS_TABLE,
                index_name=LISTING_INDEX,
                partition_key_name="listing_id",
                partition_key_value=listing_id,
            )
            reservations.extend(item_to_reservation(item) for item in items)
        return newest_first(reservations)

    def list_all(self) -> list[Reservation]:
        items = self.db.scan(RESERVATIONS_TABLE)
        return newest_first(item_to_reservation(item) for item in items)


class DynamoDBListingDirectory:
    """Listing ownership and capacity stored in DynamoDB."""

    def __init__(self, db: DynamoDBService) -> None:
        self.db = db

    def get_listing(self, listing_id: str) -> Listing | None:
        item = self.db.get_item(LISTINGS_TABLE, {"listing_id": listing_id})
        if not item:
            return None
        return self._item_to_listing(item)

    def listings_for_host(self, host_id: str) -> list[Listing]:
        items = self.db.query_by_gsi(
            table=LISTINGS_TABLE,
            index_name=HOST_INDEX,
            partition_key_name="host_id",
            partition_key_value=host_id,
        )
        return [self._item_to_listing(item) for item in items]

    def put_listing(self, listing: Listing) -> bool:
        """Create or replace a listing record."""
        return self.db.put_item(
            LISTINGS_TABLE,
            {
                "listing_id": listing.listing_id,
                "host_id": listing.host_id,
                "max_guests": listing.max_guests,
            },
        )

    def _item_to_listing(self, item: dict[str, Any]) -> Listing:
        return Listing(
            listing_id=item["listing_id"],
            host_id=item["host_id"],
            max_guests=int(item["max_guests"]),
        )
