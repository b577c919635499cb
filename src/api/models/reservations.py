"""API models for reservation endpoints."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from bookings.models import Reservation, ReservationCreate, ReservationStatus


class ReservationCreateRequest(BaseModel):
    """Request to create a new reservation.

    Guest ID is not included - it's the acting identity.
    """

    model_config = ConfigDict(
        # Note: strict=False allows string-to-date coercion from JSON
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "listing_id": "LST-001",
                    "check_in": "2025-07-01",
                    "check_out": "2025-07-05",
                    "guest_count": 2,
                }
            ]
        },
    )

    listing_id: str = Field(..., min_length=1, description="Listing to reserve")
    check_in: date = Field(..., description="Check-in date (YYYY-MM-DD)", examples=["2025-07-01"])
    check_out: date = Field(
        ..., description="Check-out date (YYYY-MM-DD)", examples=["2025-07-05"]
    )
    # Range checks happen in the booking core so the error carries an ErrorCode
    guest_count: int = Field(default=1, description="Number of guests", examples=[2])

    def to_create(self) -> ReservationCreate:
        return ReservationCreate(
            listing_id=self.listing_id,
            check_in=self.check_in,
            check_out=self.check_out,
            guest_count=self.guest_count,
        )


class StatusUpdateRequest(BaseModel):
    """Request to move a reservation to a new status."""

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={"examples": [{"status": "CONFIRMED"}]},
    )

    status: ReservationStatus = Field(..., description="Requested status")


class ReservationListResponse(BaseModel):
    """List of reservations, newest first."""

    model_config = ConfigDict(strict=True)

    reservations: list[Reservation] = Field(default_factory=list)
    total_count: int = Field(default=0, ge=0)

    @classmethod
    def of(cls, reservations: list[Reservation]) -> "ReservationListResponse":
        return cls(reservations=reservations, total_count=len(reservations))
