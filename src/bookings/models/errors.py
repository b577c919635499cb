"""Standard error codes and exceptions for booking operations.

Every failure the core reports is a BookingError subclass carrying an
ErrorCode. The HTTP layer maps codes to status codes; callers that only
care about the kind of failure catch the subclass.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes returned by the booking core."""

    # Validation (ERR_VAL_xxx)
    INVALID_DATE_RANGE = "ERR_VAL_001"
    INVALID_GUEST_COUNT = "ERR_VAL_002"
    MAX_GUESTS_EXCEEDED = "ERR_VAL_003"
    STAY_TOO_LONG = "ERR_VAL_004"

    # Booking errors
    DATES_UNAVAILABLE = "ERR_001"
    RESERVATION_NOT_FOUND = "ERR_006"
    UNAUTHORIZED = "ERR_007"
    LISTING_NOT_FOUND = "ERR_009"
    INVALID_TRANSITION = "ERR_010"
    CONCURRENT_UPDATE = "ERR_011"

    # Authentication
    AUTH_REQUIRED = "ERR_AUTH_001"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_DATE_RANGE: "Check-out date must be after check-in date",
    ErrorCode.INVALID_GUEST_COUNT: "At least one guest is required",
    ErrorCode.MAX_GUESTS_EXCEEDED: "Number of guests exceeds the listing capacity",
    ErrorCode.STAY_TOO_LONG: "Requested stay exceeds the maximum number of nights",
    ErrorCode.DATES_UNAVAILABLE: "The requested dates are not available",
    ErrorCode.RESERVATION_NOT_FOUND: "Reservation not found",
    ErrorCode.UNAUTHORIZED: "Not authorized for this action",
    ErrorCode.LISTING_NOT_FOUND: "Listing not found",
    ErrorCode.INVALID_TRANSITION: "Reservation status cannot change this way",
    ErrorCode.CONCURRENT_UPDATE: "The reservation was being updated by another request",
    ErrorCode.AUTH_REQUIRED: "Authentication required to perform this action",
}

# Recovery suggestions for clients
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.INVALID_DATE_RANGE: "Choose a check-out date later than the check-in date",
    ErrorCode.INVALID_GUEST_COUNT: "Provide a positive number of guests",
    ErrorCode.MAX_GUESTS_EXCEEDED: "Reduce the number of guests or choose another listing",
    ErrorCode.STAY_TOO_LONG: "Split the stay into shorter reservations",
    ErrorCode.DATES_UNAVAILABLE: "Pick different dates using the blocked dates calendar",
    ErrorCode.RESERVATION_NOT_FOUND: "Verify the reservation ID",
    ErrorCode.UNAUTHORIZED: "Sign in with an account allowed to perform this action",
    ErrorCode.LISTING_NOT_FOUND: "Verify the listing ID",
    ErrorCode.INVALID_TRANSITION: "Reload the reservation to see its current status",
    ErrorCode.CONCURRENT_UPDATE: "Retry the status change",
    ErrorCode.AUTH_REQUIRED: "Sign in and retry",
}


class ErrorResponse(BaseModel):
    """Standard error body for failed booking operations."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class BookingError(Exception):
    """Base exception raised by booking operations.

    Can be caught and converted to an ErrorResponse for API responses.
    """

    default_code: ErrorCode = ErrorCode.UNAUTHORIZED

    def __init__(
        self,
        code: Optional[ErrorCode] = None,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code or self.default_code
        self.message = ERROR_MESSAGES[self.code]
        self.recovery = ERROR_RECOVERY[self.code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse.from_code(self.code, self.details)


class BookingValidationError(BookingError):
    """Malformed request: inverted date range, bad guest count."""

    default_code = ErrorCode.INVALID_DATE_RANGE


class ConflictError(BookingError):
    """Requested dates overlap an active reservation, or a concurrent write won."""

    default_code = ErrorCode.DATES_UNAVAILABLE


class NotFoundError(BookingError):
    """Reservation or listing identifier is unknown."""

    default_code = ErrorCode.RESERVATION_NOT_FOUND


class UnauthorizedError(BookingError):
    """Actor lacks the capability for the requested operation."""

    default_code = ErrorCode.UNAUTHORIZED


class InvalidTransitionError(BookingError):
    """Status change not allowed by the reservation state machine."""

    default_code = ErrorCode.INVALID_TRANSITION
