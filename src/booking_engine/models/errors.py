"""Standard error codes for the booking engine.

Every failure the engine reports is a BookingError subclass carrying one of
these codes. The API layer converts them to ErrorResponse bodies.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from .interval import DateInterval


class ErrorCode(str, Enum):
    """Standard error codes returned by engine operations."""

    INVALID_STAY_LENGTH = "ERR_001"
    GUEST_COUNT_EXCEEDED = "ERR_002"
    UNAVAILABLE = "ERR_003"
    NOT_OWNER = "ERR_004"
    NOT_PARTICIPANT = "ERR_005"
    INVALID_STATE = "ERR_006"
    LOCK_TIMEOUT = "ERR_007"
    RESERVATION_NOT_FOUND = "ERR_008"
    LISTING_NOT_FOUND = "ERR_009"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_STAY_LENGTH: "The requested stay length is not allowed for this listing",
    ErrorCode.GUEST_COUNT_EXCEEDED: "Number of guests is outside the listing's allowed range",
    ErrorCode.UNAVAILABLE: "The requested dates are not available",
    ErrorCode.NOT_OWNER: "Only the listing owner can perform this action",
    ErrorCode.NOT_PARTICIPANT: "Only the guest or the listing owner can perform this action",
    ErrorCode.INVALID_STATE: "The reservation cannot make this transition from its current state",
    ErrorCode.LOCK_TIMEOUT: "The listing is busy, please retry",
    ErrorCode.RESERVATION_NOT_FOUND: "Reservation not found",
    ErrorCode.LISTING_NOT_FOUND: "Listing not found",
}

# Recovery suggestions for callers
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.INVALID_STAY_LENGTH: "Choose a check-out after check-in within the listing's stay limits",
    ErrorCode.GUEST_COUNT_EXCEEDED: "Reduce the number of guests to the listing's capacity",
    ErrorCode.UNAVAILABLE: "Choose different dates that do not overlap existing reservations",
    ErrorCode.NOT_OWNER: "Ask the listing owner to respond to the request",
    ErrorCode.NOT_PARTICIPANT: "Verify the reservation belongs to the caller",
    ErrorCode.INVALID_STATE: "Reload the reservation to see its current status",
    ErrorCode.LOCK_TIMEOUT: "Retry the same request after a short delay",
    ErrorCode.RESERVATION_NOT_FOUND: "Verify the reservation ID",
    ErrorCode.LISTING_NOT_FOUND: "Verify the listing ID",
}


class ErrorResponse(BaseModel):
    """Standard error body for failed operations."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    retryable: bool = False
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
        retryable: bool = False,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error
            retryable: Whether the caller may retry unchanged

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            retryable=retryable,
            details=details,
        )


class BookingError(Exception):
    """Base exception raised by booking engine operations.

    Subclasses fix the error code; `retryable` tells the caller whether the
    same request may succeed if repeated without changes.
    """

    code: ErrorCode
    retryable: bool = False

    def __init__(
        self,
        details: Optional[dict[str, str]] = None,
        code: Optional[ErrorCode] = None,
    ):
        if code is not None:
            self.code = code
        self.message = ERROR_MESSAGES[self.code]
        self.recovery = ERROR_RECOVERY[self.code]
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse.from_code(self.code, self.details, self.retryable)


class InvalidStayLength(BookingError):
    code = ErrorCode.INVALID_STAY_LENGTH


class GuestCountExceeded(BookingError):
    code = ErrorCode.GUEST_COUNT_EXCEEDED


class Unavailable(BookingError):
    """Raised when the requested interval overlaps an occupying reservation."""

    code = ErrorCode.UNAVAILABLE

    def __init__(self, conflicts: "list[DateInterval]") -> None:
        self.conflicts = list(conflicts)
        super().__init__(
            details={"conflicts": ", ".join(str(c) for c in self.conflicts)}
        )


class NotOwner(BookingError):
    code = ErrorCode.NOT_OWNER


class NotParticipant(BookingError):
    code = ErrorCode.NOT_PARTICIPANT


class InvalidState(BookingError):
    code = ErrorCode.INVALID_STATE


class LockTimeout(BookingError):
    """Raised when a listing's lock cannot be acquired in time."""

    code = ErrorCode.LOCK_TIMEOUT
    retryable = True


class ReservationNotFound(BookingError):
    code = ErrorCode.RESERVATION_NOT_FOUND


class ListingNotFound(BookingError):
    code = ErrorCode.LISTING_NOT_FOUND
