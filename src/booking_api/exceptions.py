"""FastAPI exception handlers for converting BookingError to HTTP responses.

The ErrorCode-to-HTTP status mapping:
- 400 Bad Request: stay length or guest count rejected
- 403 Forbidden: caller is not the owner / not a participant
- 404 Not Found: unknown reservation or listing
- 409 Conflict: dates taken or transition not allowed
- 503 Service Unavailable: listing lock timed out (retryable)

Usage:
    from booking_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from booking_engine.models import BookingError, ErrorCode
from booking_engine.utils.logging import get_logger

logger = get_logger(__name__)

# Seconds a client should wait before retrying a retryable error
RETRY_AFTER_SECONDS = 1

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_STAY_LENGTH: HTTP_400_BAD_REQUEST,
    ErrorCode.GUEST_COUNT_EXCEEDED: HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_OWNER: HTTP_403_FORBIDDEN,
    ErrorCode.NOT_PARTICIPANT: HTTP_403_FORBIDDEN,
    ErrorCode.RESERVATION_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.LISTING_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.UNAVAILABLE: HTTP_409_CONFLICT,
    ErrorCode.INVALID_STATE: HTTP_409_CONFLICT,
    ErrorCode.LOCK_TIMEOUT: HTTP_503_SERVICE_UNAVAILABLE,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode.

    Args:
        code: The ErrorCode to map

    Returns:
        HTTP status code, defaults to 400 if not explicitly mapped.
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Convert a BookingError to a JSON ErrorResponse.

    Retryable errors also carry a Retry-After header.
    """
    headers = {"Retry-After": str(RETRY_AFTER_SECONDS)} if exc.retryable else None
    return JSONResponse(
        status_code=get_http_status_for_error(exc.code),
        content=exc.to_response().model_dump(mode="json"),
        headers=headers,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without exposing internals."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error_code": "ERR_INTERNAL",
            "message": "An unexpected error occurred",
            "recovery": "Please try again later or contact support",
            "retryable": False,
            "details": None,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(BookingError, booking_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
