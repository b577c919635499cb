"""Pytest configuration and fixtures for the bookings tests.

This module provides reusable fixtures for testing:
- A controllable clock and a BookingService on in-memory storage
- Actors for the common roles (guest, host, other host, admin)
- DynamoDB mocking with moto
"""

import datetime as dt
import os
from collections.abc import Callable, Generator
from typing import Any

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-booking")

if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from bookings.models import (  # noqa: E402
    Actor,
    ActorRole,
    Listing,
    Reservation,
    ReservationStatus,
)
from bookings.services.booking import BookingService  # noqa: E402
from bookings.services.dynamodb import DynamoDBService  # noqa: E402
from bookings.services.factory import reset_services  # noqa: E402
from bookings.services.repository import (  # noqa: E402
    InMemoryListingDirectory,
    InMemoryReservationRepository,
)

TABLE_PREFIX = "test-booking"
NOW = dt.datetime(2025, 6, 1, 12, 0, tzinfo=dt.UTC)

LISTING_ID = "LST-001"
OTHER_LISTING_ID = "LST-002"
HOST_ID = "host-1"
OTHER_HOST_ID = "host-2"
GUEST_ID = "guest-1"
OTHER_GUEST_ID = "guest-2"


class FixedClock:
    """Clock returning a settable time; advance() moves it forward."""

    def __init__(self, now: dt.datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs: float) -> dt.datetime:
        self.now = self.now + dt.timedelta(**kwargs)
        return self.now


# === Service state ===


@pytest.fixture(autouse=True)
def reset_service_singletons() -> Generator[None, None, None]:
    """Reset cached services, settings and the DynamoDB singleton.

    Tests using mock_aws then get a fresh service instance inside the mock
    context rather than one created by a previous test.
    """
    reset_services()
    yield
    reset_services()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def listings() -> InMemoryListingDirectory:
    """Two listings with different hosts."""
    return InMemoryListingDirectory(
        [
            Listing(listing_id=LISTING_ID, host_id=HOST_ID, max_guests=4),
            Listing(listing_id=OTHER_LISTING_ID, host_id=OTHER_HOST_ID, max_guests=2),
        ]
    )


@pytest.fixture
def repository() -> InMemoryReservationRepository:
    return InMemoryReservationRepository()


@pytest.fixture
def service(
    repository: InMemoryReservationRepository,
    listings: InMemoryListingDirectory,
    clock: FixedClock,
) -> BookingService:
    """BookingService on in-memory storage with a fixed clock."""
    return BookingService(repository, listings, clock=clock)


@pytest.fixture
def make_reservation(
    repository: InMemoryReservationRepository,
) -> Callable[..., Reservation]:
    """Store a reservation directly, bypassing the service rules."""
    counter = iter(range(1, 10_000))

    def _make(
        check_in: dt.date,
        check_out: dt.date,
        *,
        status: ReservationStatus = ReservationStatus.PENDING,
        listing_id: str = LISTING_ID,
        guest_id: str = GUEST_ID,
        created_at: dt.datetime = NOW,
        guest_count: int = 2,
    ) -> Reservation:
        reservation = Reservation(
            reservation_id=f"RES-TEST-{next(counter):04d}",
            listing_id=listing_id,
            guest_id=guest_id,
            check_in=check_in,
            check_out=check_out,
            guest_count=guest_count,
            status=status,
            created_at=created_at,
            updated_at=created_at,
        )
        return repository.insert_reservation(reservation)

    return _make


# === Actors ===


@pytest.fixture
def guest() -> Actor:
    return Actor(actor_id=GUEST_ID, role=ActorRole.GUEST)


@pytest.fixture
def other_guest() -> Actor:
    return Actor(actor_id=OTHER_GUEST_ID, role=ActorRole.GUEST)


@pytest.fixture
def host() -> Actor:
    """Host of LST-001."""
    return Actor(actor_id=HOST_ID, role=ActorRole.HOST)


@pytest.fixture
def other_host() -> Actor:
    """Host of LST-002 only."""
    return Actor(actor_id=OTHER_HOST_ID, role=ActorRole.HOST)


@pytest.fixture
def admin() -> Actor:
    return Actor(actor_id="admin-1", role=ActorRole.ADMIN)


# === DynamoDB Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


@pytest.fixture
def dynamodb_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mocked DynamoDB client."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="eu-west-1")
        yield client


def _gsi(name: str, hash_key: str, range_key: str | None = None) -> dict[str, Any]:
    key_schema = [{"AttributeName": hash_key, "KeyType": "HASH"}]
    if range_key:
        key_schema.append({"AttributeName": range_key, "KeyType": "RANGE"})
    return {
        "IndexName": name,
        "KeySchema": key_schema,
        "Projection": {"ProjectionType": "ALL"},
    }


@pytest.fixture
def create_tables(dynamodb_client: Any) -> None:
    """Create all required DynamoDB tables for testing."""
    tables = [
        {
            "TableName": f"{TABLE_PREFIX}-reservations",
            "KeySchema": [{"AttributeName": "reservation_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "reservation_id", "AttributeType": "S"},
                {"AttributeName": "listing_id", "AttributeType": "S"},
                {"AttributeName": "check_in", "AttributeType": "S"},
                {"AttributeName": "status", "AttributeType": "S"},
                {"AttributeName": "created_at", "AttributeType": "S"},
            ],
            "GlobalSecondaryIndexes": [
                _gsi("listing_id-index", "listing_id", "check_in"),
                _gsi("status-index", "status", "created_at"),
            ],
        },
        {
            "TableName": f"{TABLE_PREFIX}-night-claims",
            "KeySchema": [
                {"AttributeName": "listing_id", "KeyType": "HASH"},
                {"AttributeName": "night", "KeyType": "RANGE"},
            ],
            "AttributeDefinitions": [
                {"AttributeName": "listing_id", "AttributeType": "S"},
                {"AttributeName": "night", "AttributeType": "S"},
            ],
        },
        {
            "TableName": f"{TABLE_PREFIX}-listings",
            "KeySchema": [{"AttributeName": "listing_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "listing_id", "AttributeType": "S"},
                {"AttributeName": "host_id", "AttributeType": "S"},
            ],
            "GlobalSecondaryIndexes": [_gsi("host_id-index", "host_id")],
        },
    ]

    for table in tables:
        dynamodb_client.create_table(**table, BillingMode="PAY_PER_REQUEST")


@pytest.fixture
def dynamodb_service(create_tables: None) -> DynamoDBService:
    """DynamoDBService bound to the mocked tables."""
    return DynamoDBService(table_prefix=TABLE_PREFIX)
