"""Scheduled jobs.

expire_completed_stays_handler is invoked by a scheduled EventBridge rule
(e.g. hourly). It is safe to run more than once for the same period.
"""

from typing import Any

from booking_api.dependencies import get_engine
from booking_engine.utils.logging import get_logger, set_correlation_id

logger = get_logger(__name__)


def expire_completed_stays_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Complete every confirmed stay whose check-out has passed.

    Args:
        event: EventBridge scheduled event (its id becomes the correlation ID)
        context: Lambda context (unused)

    Returns:
        Count and IDs of reservations completed by this run
    """
    set_correlation_id(event.get("id"))
    completed = get_engine().expire_completed_stays()
    logger.info("Completed %d stays", len(completed))
    return {
        "completed": len(completed),
        "reservation_ids": [r.reservation_id for r in completed],
    }
