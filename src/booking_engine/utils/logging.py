"""Logging helpers for the booking engine.

Every record carries the correlation ID of the request (or scheduled run)
that produced it. The ID lives in a ContextVar, so it follows the request
into FastAPI's threadpool and is isolated between concurrent requests.

Usage:
    from booking_engine.utils.logging import get_logger, set_correlation_id

    set_correlation_id(request.headers.get("X-Correlation-ID"))

    logger = get_logger(__name__)
    log_reservation_operation(logger, "cancel_reservation", reservation_id=rid)
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

NO_CORRELATION_ID = "no-correlation-id"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context.

    Args:
        correlation_id: Incoming ID; a new UUID is generated when empty

    Returns:
        The ID now bound
    """
    cid = correlation_id or str(uuid.uuid4())
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Stamps `correlation_id` onto every record passing through."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class StructuredFormatter(logging.Formatter):
    """Prefixes each line with `[correlation_id]`."""

    def format(self, record: logging.LogRecord) -> str:
        cid = getattr(record, "correlation_id", None) or get_correlation_id()
        return f"[{cid or NO_CORRELATION_ID}] {super().format(record)}"


def get_logger(name: str) -> logging.Logger:
    """Get a logger that stamps correlation IDs.

    Args:
        name: Logger name (usually __name__)
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())
    return logger


def configure_logging(level: str = "INFO") -> None:
    """Attach a structured stream handler to the root logger.

    Calling it again only updates the level.

    Args:
        level: Root log level name
    """
    root = logging.getLogger()
    root.setLevel(level)
    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


def log_reservation_operation(
    logger: logging.Logger,
    operation: str,
    *,
    reservation_id: str | None = None,
    listing_id: str | None = None,
    actor_id: str | None = None,
    status: str | None = None,
    amount: int | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Emit one structured line for an engine operation.

    Failed operations (those with an `error` code) log at WARNING: they are
    expected outcomes such as overlapping dates, not faults.

    Args:
        logger: Logger instance
        operation: Engine operation, e.g. "propose_reservation"
        reservation_id: Reservation the operation touched
        listing_id: Listing the operation touched
        actor_id: Calling user
        status: Resulting reservation status
        amount: Charge or refund in minor units
        error: ErrorCode value when the operation failed
        **extra: Further context fields
    """
    fields = {
        "reservation_id": reservation_id,
        "listing_id": listing_id,
        "actor_id": actor_id,
        "status": status,
        "amount": amount,
        "error": error,
        **extra,
    }
    context = {"operation": operation, **{k: v for k, v in fields.items() if v is not None}}

    message = " | ".join(
        [f"Reservation operation: {operation}"]
        + [f"{key}={value}" for key, value in context.items() if key != "operation"]
    )
    logger.log(logging.WARNING if error else logging.INFO, message, extra=context)
