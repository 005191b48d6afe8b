"""DynamoDB storage backend.

Tables (names are prefixed with the configured table prefix):

- reservations: PK reservation_id, GSIs listing_id-index and guest_id-index
  (sort key created_at) and status-index (sort key check_out)
- calendar: PK listing_id, SK night; one item per occupied night
- listings: PK listing_id, GSI owner_id-index; read-only to the engine

The per-listing lock is process-local, so the tables guard themselves:
occupying a stay writes every night with attribute_not_exists(night), and
status writes are conditional on the status the writer read, committed in
the same transaction as the nights they release.
"""

import datetime as dt
from collections.abc import Callable
from decimal import Decimal
from typing import Any

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from booking_engine.config import EngineSettings, get_settings
from booking_engine.models import (
    DateInterval,
    InvalidState,
    ListingNotFound,
    RateConfig,
    Reservation,
    ReservationStatus,
    Unavailable,
)
from booking_engine.services.calendar import CalendarIndex
from booking_engine.services.repository import ReservationRepository, _newest_first
from booking_engine.utils.logging import get_logger

logger = get_logger(__name__)

RESERVATIONS_TABLE = "reservations"
CALENDAR_TABLE = "calendar"
LISTINGS_TABLE = "listings"

# DynamoDB limit on items per TransactWriteItems call
MAX_TRANSACT_ITEMS = 100

# Module-level singleton for connection reuse
_dynamodb_service_instance: "DynamoDBService | None" = None


def get_dynamodb_service(settings: EngineSettings | None = None) -> "DynamoDBService":
    """Get or create the singleton DynamoDB service instance.

    Args:
        settings: Engine settings. Only used on first call.

    Returns:
        Shared DynamoDBService instance
    """
    global _dynamodb_service_instance
    if _dynamodb_service_instance is None:
        _dynamodb_service_instance = DynamoDBService((settings or get_settings()).table_prefix)
    return _dynamodb_service_instance


def reset_dynamodb_service() -> None:
    """Reset the singleton instance (for testing only).

    This allows tests to create a fresh DynamoDBService inside
    a mock_aws context.
    """
    global _dynamodb_service_instance
    _dynamodb_service_instance = None


def _serialize_dynamodb(value: Any) -> dict[str, Any]:
    """Serialize a Python value to DynamoDB's low-level attribute format."""
    if isinstance(value, str):
        return {"S": value}
    elif isinstance(value, bool):
        return {"BOOL": value}
    elif isinstance(value, int):
        return {"N": str(value)}
    elif value is None:
        return {"NULL": True}
    elif isinstance(value, list):
        return {"L": [_serialize_dynamodb(v) for v in value]}
    elif isinstance(value, dict):
        return {"M": {k: _serialize_dynamodb(v) for k, v in value.items()}}
    else:
        return {"S": str(value)}


def _from_dynamodb(value: Any) -> Any:
    """Convert resource-API values back to plain Python (Decimal -> int)."""
    if isinstance(value, Decimal):
        return int(value)
    if isinstance(value, list):
        return [_from_dynamodb(v) for v in value]
    if isinstance(value, set):
        return {_from_dynamodb(v) for v in value}
    if isinstance(value, dict):
        return {k: _from_dynamodb(v) for k, v in value.items()}
    return value


def _reservation_to_item(reservation: Reservation) -> dict[str, Any]:
    return reservation.model_dump(mode="json", exclude_none=True)


def _item_to_reservation(item: dict[str, Any]) -> Reservation:
    return Reservation.model_validate(_from_dynamodb(item))


class DynamoDBService:
    """Thin wrapper over boto3 with prefixed table names."""

    def __init__(self, table_prefix: str) -> None:
        """Initialize DynamoDB service.

        Args:
            table_prefix: Prefix prepended to every table name
        """
        self.name_prefix = table_prefix
        self._dynamodb = boto3.resource("dynamodb")
        self._client = boto3.client("dynamodb")

    def table_name(self, table: str) -> str:
        """Get full table name with prefix."""
        return f"{self.name_prefix}-{table}"

    def _get_table(self, table: str) -> Any:
        """Get DynamoDB table resource."""
        return self._dynamodb.Table(self.table_name(table))

    def get_item(
        self,
        table: str,
        key: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Get a single item by key.

        Args:
            table: Table name without prefix
            key: Primary key dict

        Returns:
            Item dict or None if not found
        """
        response = self._get_table(table).get_item(Key=key, ConsistentRead=True)
        item: dict[str, Any] | None = response.get("Item")
        return item

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: Any | None = None,
    ) -> bool:
        """Put an item into the table.

        Args:
            table: Table name without prefix
            item: Item to store
            condition_expression: Optional condition for write

        Returns:
            True if successful, False if condition failed
        """
        try:
            kwargs: dict[str, Any] = {"Item": item}
            if condition_expression is not None:
                kwargs["ConditionExpression"] = condition_expression

            self._get_table(table).put_item(**kwargs)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return False
            raise

    def delete_item(
        self,
        table: str,
        key: dict[str, Any],
        condition_expression: Any | None = None,
    ) -> bool:
        """Delete an item by key.

        Args:
            table: Table name without prefix
            key: Primary key dict
            condition_expression: Optional condition for the delete

        Returns:
            True if deleted (or didn't exist), False if condition failed
        """
        try:
            kwargs: dict[str, Any] = {"Key": key}
            if condition_expression is not None:
                kwargs["ConditionExpression"] = condition_expression

            self._get_table(table).delete_item(**kwargs)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return False
            raise

    def query(
        self,
        table: str,
        key_condition: Any,
        index_name: str | None = None,
        filter_expression: Any | None = None,
        scan_index_forward: bool = True,
    ) -> list[dict[str, Any]]:
        """Query table or GSI, following pagination to the end.

        Args:
            table: Table name without prefix
            key_condition: Boto3 Key condition
            index_name: GSI name (optional)
            filter_expression: Additional filter (optional)
            scan_index_forward: Sort order (True=ascending)

        Returns:
            List of items
        """
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": key_condition,
            "ScanIndexForward": scan_index_forward,
        }
        if index_name:
            kwargs["IndexName"] = index_name
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression

        items: list[dict[str, Any]] = []
        while True:
            response = self._get_table(table).query(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def transact_write(
        self,
        items: list[dict[str, Any]],
    ) -> bool:
        """Execute transactional write for multiple items.

        Args:
            items: List of TransactWriteItem dicts

        Returns:
            True if successful, False if transaction failed
        """
        try:
            self._client.transact_write_items(TransactItems=items)  # type: ignore[arg-type]
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "TransactionCanceledException":
                return False
            raise


class DynamoDBCalendarIndex(CalendarIndex):
    """Calendar index with one item per occupied night.

    The reservation record is the source of truth for occupancy. Night items
    whose reservation no longer occupies the calendar (left behind when a
    release spanning several transactions was cut short) are ignored by
    `conflicts` and cleared by the next `occupy` on the listing.
    """

    def __init__(
        self,
        db: DynamoDBService,
        holds_nights: Callable[[str], bool] | None = None,
    ) -> None:
        """Initialize the calendar index.

        Args:
            db: DynamoDB service
            holds_nights: Whether a reservation ID still occupies its nights;
                every night item counts when omitted
        """
        self.db = db
        self.holds_nights = holds_nights

    def _nights(self, listing_id: str, interval: DateInterval) -> list[dict[str, Any]]:
        last_night = interval.check_out - dt.timedelta(days=1)
        return self.db.query(
            CALENDAR_TABLE,
            Key("listing_id").eq(listing_id)
            & Key("night").between(interval.check_in.isoformat(), last_night.isoformat()),
        )

    def _holders(self, listing_id: str, interval: DateInterval) -> dict[str, DateInterval]:
        holders: dict[str, DateInterval] = {}
        for item in self._nights(listing_id, interval):
            if item["reservation_id"] not in holders:
                holders[item["reservation_id"]] = DateInterval(
                    check_in=dt.date.fromisoformat(item["check_in"]),
                    check_out=dt.date.fromisoformat(item["check_out"]),
                )
        return holders

    def _holds(self, reservation_id: str) -> bool:
        return self.holds_nights is None or self.holds_nights(reservation_id)

    def conflicts(
        self,
        listing_id: str,
        interval: DateInterval,
        exclude_reservation_id: str | None = None,
    ) -> list[DateInterval]:
        found = [
            other
            for reservation_id, other in self._holders(listing_id, interval).items()
            if reservation_id != exclude_reservation_id and self._holds(reservation_id)
        ]
        return sorted(found, key=lambda i: (i.check_in, i.check_out))

    def occupy_items(
        self,
        listing_id: str,
        reservation_id: str,
        interval: DateInterval,
    ) -> list[dict[str, Any]]:
        """Conditional Put items claiming every night of `interval`."""
        table_name = self.db.table_name(CALENDAR_TABLE)
        now = dt.datetime.now(dt.UTC).isoformat()
        return [
            {
                "Put": {
                    "TableName": table_name,
                    "Item": {
                        "listing_id": {"S": listing_id},
                        "night": {"S": night.isoformat()},
                        "reservation_id": {"S": reservation_id},
                        "check_in": {"S": interval.check_in.isoformat()},
                        "check_out": {"S": interval.check_out.isoformat()},
                        "updated_at": {"S": now},
                    },
                    "ConditionExpression": "attribute_not_exists(night)",
                }
            }
            for night in interval.nights_iter()
        ]

    def release_items(self, listing_id: str, reservation_id: str) -> list[dict[str, Any]]:
        """Delete items for every night the reservation currently holds."""
        table_name = self.db.table_name(CALENDAR_TABLE)
        held = self.db.query(
            CALENDAR_TABLE,
            Key("listing_id").eq(listing_id),
            filter_expression=Attr("reservation_id").eq(reservation_id),
        )
        return [
            {
                "Delete": {
                    "TableName": table_name,
                    "Key": {
                        "listing_id": {"S": listing_id},
                        "night": {"S": item["night"]},
                    },
                    "ConditionExpression": "reservation_id = :rid",
                    "ExpressionAttributeValues": {":rid": {"S": reservation_id}},
                }
            }
            for item in held
        ]

    def clear_leftovers(self, listing_id: str, interval: DateInterval) -> None:
        """Delete night items of reservations that no longer occupy them."""
        for reservation_id in self._holders(listing_id, interval):
            if not self._holds(reservation_id):
                logger.warning(
                    "Clearing leftover nights of %s on listing %s", reservation_id, listing_id
                )
                self.release(listing_id, reservation_id)

    def occupy(
        self,
        listing_id: str,
        reservation_id: str,
        interval: DateInterval,
        first_batch: list[dict[str, Any]] | None = None,
    ) -> None:
        """Write one conditional item per night.

        Args:
            listing_id: Listing to occupy
            reservation_id: Owning reservation
            interval: Nights to occupy
            first_batch: Extra transaction items committed with the first
                batch of nights

        Raises:
            Unavailable: Another reservation already holds one of the nights
        """
        self.clear_leftovers(listing_id, interval)
        items = [*(first_batch or []), *self.occupy_items(listing_id, reservation_id, interval)]

        for start in range(0, len(items), MAX_TRANSACT_ITEMS):
            if self.db.transact_write(items[start : start + MAX_TRANSACT_ITEMS]):
                continue
            if start > 0:
                self.release(listing_id, reservation_id)
            logger.warning(
                "Calendar write rejected for listing %s reservation %s",
                listing_id,
                reservation_id,
            )
            raise Unavailable(
                self.conflicts(listing_id, interval, exclude_reservation_id=reservation_id)
            )

    def release(self, listing_id: str, reservation_id: str) -> None:
        items = self.release_items(listing_id, reservation_id)
        for start in range(0, len(items), MAX_TRANSACT_ITEMS):
            if not self.db.transact_write(items[start : start + MAX_TRANSACT_ITEMS]):
                raise RuntimeError(
                    f"Failed to release calendar for reservation {reservation_id}"
                )


class DynamoDBReservationRepository(ReservationRepository):
    """Reservation repository backed by DynamoDB.

    Status writes are conditional on the status the caller read, so a
    writer holding a stale version loses even when it runs in another
    process. The record and its released nights share one transaction.
    """

    def __init__(self, db: DynamoDBService, calendar: DynamoDBCalendarIndex | None = None) -> None:
        self.db = db
        self.calendar = calendar or DynamoDBCalendarIndex(db, holds_nights=self._holds_nights)

    def _holds_nights(self, reservation_id: str) -> bool:
        reservation = self.get(reservation_id)
        return reservation is not None and reservation.status.occupies_calendar

    def _record_put(self, reservation: Reservation, condition: dict[str, Any]) -> dict[str, Any]:
        return {
            "Put": {
                "TableName": self.db.table_name(RESERVATIONS_TABLE),
                "Item": {
                    k: _serialize_dynamodb(v)
                    for k, v in _reservation_to_item(reservation).items()
                },
                **condition,
            }
        }

    def get(self, reservation_id: str) -> Reservation | None:
        item = self.db.get_item(RESERVATIONS_TABLE, {"reservation_id": reservation_id})
        if not item:
            return None
        return _item_to_reservation(item)

    def add(self, reservation: Reservation) -> None:
        if not reservation.status.occupies_calendar:
            raise ValueError("Only occupying reservations can be added")
        record = self._record_put(
            reservation, {"ConditionExpression": "attribute_not_exists(reservation_id)"}
        )
        try:
            self.calendar.occupy(
                reservation.listing_id,
                reservation.reservation_id,
                reservation.interval,
                first_batch=[record],
            )
        except Unavailable:
            # A long stay can fail after its first batch committed the record
            self.db.delete_item(
                RESERVATIONS_TABLE,
                {"reservation_id": reservation.reservation_id},
                condition_expression=Attr("status").eq(reservation.status.value),
            )
            raise

    def replace(self, reservation: Reservation, expected_status: ReservationStatus) -> None:
        record = self._record_put(
            reservation,
            {
                "ConditionExpression": "#status = :expected",
                "ExpressionAttributeNames": {"#status": "status"},
                "ExpressionAttributeValues": {":expected": {"S": expected_status.value}},
            },
        )
        releases: list[dict[str, Any]] = []
        if not reservation.status.occupies_calendar:
            releases = self.calendar.release_items(
                reservation.listing_id, reservation.reservation_id
            )
        in_record_batch = MAX_TRANSACT_ITEMS - 1

        if not self.db.transact_write([record, *releases[:in_record_batch]]):
            current = self.get(reservation.reservation_id)
            if current is None:
                raise KeyError(reservation.reservation_id)
            if current.status != expected_status:
                raise InvalidState(
                    details={
                        "reservation_id": reservation.reservation_id,
                        "status": current.status.value,
                        "expected_status": expected_status.value,
                    }
                )
            raise RuntimeError(
                f"Failed to write reservation {reservation.reservation_id}"
            )

        rest = releases[in_record_batch:]
        for start in range(0, len(rest), MAX_TRANSACT_ITEMS):
            if not self.db.transact_write(rest[start : start + MAX_TRANSACT_ITEMS]):
                # Leftover nights are ignored and cleared by the calendar
                logger.warning(
                    "Partial calendar release for reservation %s", reservation.reservation_id
                )
                return

    def list_by_listing(self, listing_id: str) -> list[Reservation]:
        items = self.db.query(
            RESERVATIONS_TABLE,
            Key("listing_id").eq(listing_id),
            index_name="listing_id-index",
            scan_index_forward=False,
        )
        return _newest_first([_item_to_reservation(i) for i in items])

    def list_by_guest(self, guest_id: str) -> list[Reservation]:
        items = self.db.query(
            RESERVATIONS_TABLE,
            Key("guest_id").eq(guest_id),
            index_name="guest_id-index",
            scan_index_forward=False,
        )
        return _newest_first([_item_to_reservation(i) for i in items])

    def list_confirmed_due(self, today: dt.date) -> list[Reservation]:
        items = self.db.query(
            RESERVATIONS_TABLE,
            Key("status").eq(ReservationStatus.CONFIRMED.value)
            & Key("check_out").lte(today.isoformat()),
            index_name="status-index",
        )
        return [_item_to_reservation(i) for i in items]


class DynamoDBListingStore:
    """Read-only ListingStore over the listings table.

    Items hold `listing_id`, `owner_id` and a `rate` map with the RateConfig
    fields. The owner_id-index GSI serves owner lookups.
    """

    def __init__(self, db: DynamoDBService) -> None:
        self.db = db

    def _get(self, listing_id: str) -> dict[str, Any]:
        item = self.db.get_item(LISTINGS_TABLE, {"listing_id": listing_id})
        if not item:
            raise ListingNotFound(details={"listing_id": listing_id})
        return item

    def get_rate_config(self, listing_id: str) -> RateConfig:
        return RateConfig.model_validate(_from_dynamodb(self._get(listing_id)["rate"]))

    def get_owner_id(self, listing_id: str) -> str:
        owner_id: str = self._get(listing_id)["owner_id"]
        return owner_id

    def get_listing_ids_for_owner(self, owner_id: str) -> list[str]:
        items = self.db.query(
            LISTINGS_TABLE,
            Key("owner_id").eq(owner_id),
            index_name="owner_id-index",
        )
        return sorted(item["listing_id"] for item in items)
