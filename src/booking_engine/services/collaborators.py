"""Ports to the collaborators around the engine.

- ListingStore: read-only access to listing rate configs and owners
- EventDispatcher: routes domain events to subscribers (notifications etc.)
- PaymentCollaborator: receives amounts to charge or refund

The engine calls all of them outside any listing lock and never lets their
failures change reservation state.
"""

import json
import threading
from collections.abc import Callable
from concurrent.futures import Executor
from pathlib import Path
from typing import Protocol

from booking_engine.models import (
    DomainEventType,
    ListingNotFound,
    RateConfig,
    Reservation,
    ReservationEvent,
)
from booking_engine.utils.logging import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[ReservationEvent], None]

# Subscribe to this to receive every event type
ALL_EVENTS = "*"

DEFAULT_LISTINGS_FILE = Path(__file__).parent.parent / "data" / "listings.json"


class ListingStore(Protocol):
    """Read-only accessor for listing data owned by the application."""

    def get_rate_config(self, listing_id: str) -> RateConfig:
        """Rate config for a listing. Raises ListingNotFound."""
        ...

    def get_owner_id(self, listing_id: str) -> str:
        """Owner user ID for a listing. Raises ListingNotFound."""
        ...

    def get_listing_ids_for_owner(self, owner_id: str) -> list[str]:
        """IDs of all listings owned by a user."""
        ...


class InMemoryListingStore:
    """Dictionary-backed ListingStore for tests and local runs."""

    def __init__(self) -> None:
        self._listings: dict[str, tuple[str, RateConfig]] = {}
        self._mutex = threading.Lock()

    def add_listing(self, listing_id: str, owner_id: str, rate: RateConfig) -> None:
        with self._mutex:
            self._listings[listing_id] = (owner_id, rate)

    @classmethod
    def from_json(cls, json_path: Path | str | None = None) -> "InMemoryListingStore":
        """Load listings from a JSON file.

        The file holds `{"listings": [{"listing_id", "owner_id", "rate"}]}`
        where `rate` carries the RateConfig fields.

        Args:
            json_path: Path to JSON file. If None, uses the bundled listings.

        Returns:
            Store holding every listing in the file

        Raises:
            FileNotFoundError: If JSON file doesn't exist.
            json.JSONDecodeError: If JSON is invalid.
            pydantic.ValidationError: If a rate is invalid.
        """
        json_path = Path(json_path) if json_path else DEFAULT_LISTINGS_FILE
        with open(json_path) as f:
            data = json.load(f)

        store = cls()
        for listing in data.get("listings", []):
            store.add_listing(
                listing["listing_id"],
                listing["owner_id"],
                RateConfig.model_validate(listing["rate"]),
            )
        logger.info("Loaded %d listings from %s", len(store._listings), json_path)
        return store

    def _get(self, listing_id: str) -> tuple[str, RateConfig]:
        with self._mutex:
            listing = self._listings.get(listing_id)
        if listing is None:
            raise ListingNotFound(details={"listing_id": listing_id})
        return listing

    def get_rate_config(self, listing_id: str) -> RateConfig:
        return self._get(listing_id)[1]

    def get_owner_id(self, listing_id: str) -> str:
        return self._get(listing_id)[0]

    def get_listing_ids_for_owner(self, owner_id: str) -> list[str]:
        with self._mutex:
            return sorted(lid for lid, (oid, _) in self._listings.items() if oid == owner_id)


class EventDispatcher:
    """Publishes reservation events to subscribers.

    Handlers are isolated from each other: a failing handler is logged and
    the remaining handlers still run. With an executor, delivery happens in
    the background and publish() returns immediately.
    """

    def __init__(self, executor: Executor | None = None) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}
        self._executor = executor
        self._mutex = threading.Lock()

    def subscribe(self, event_type: DomainEventType | str, handler: EventHandler) -> None:
        """Register a handler for an event type, or ALL_EVENTS.

        Multiple handlers can be registered for the same event type.
        """
        key = event_type.value if isinstance(event_type, DomainEventType) else event_type
        with self._mutex:
            self._handlers.setdefault(key, []).append(handler)
        logger.debug("Registered event handler for %s", key)

    def publish(self, event: ReservationEvent) -> None:
        """Deliver an event to its subscribers without raising."""
        with self._mutex:
            handlers = list(self._handlers.get(event.event_type.value, []))
            handlers += self._handlers.get(ALL_EVENTS, [])

        if not handlers:
            logger.debug("No handlers registered for event %s", event.event_type.value)
            return

        logger.info(
            "Publishing event: %s (ID: %s) reservation=%s",
            event.event_type.value,
            event.event_id,
            event.reservation_id,
        )
        for handler in handlers:
            if self._executor is not None:
                self._executor.submit(self._deliver, handler, event)
            else:
                self._deliver(handler, event)

    def _deliver(self, handler: EventHandler, event: ReservationEvent) -> None:
        try:
            handler(event)
        except Exception:
            logger.exception(
                "Error in event handler %s for event %s",
                getattr(handler, "__name__", repr(handler)),
                event.event_type.value,
            )


class PaymentCollaborator(Protocol):
    """Executes the actual money movement for the engine's amounts."""

    def charge(self, reservation: Reservation, amount: int) -> None:
        """Charge the guest `amount` for a newly requested reservation."""
        ...

    def refund(self, reservation: Reservation, amount: int) -> None:
        """Refund `amount` to the guest for a cancelled reservation."""
        ...
