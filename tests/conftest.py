"""Pytest configuration and fixtures for booking engine tests.

This module provides reusable fixtures for testing:
- A listing store with two priced listings
- A controllable clock
- A ReservationEngine wired to in-memory storage
- DynamoDB tables mocked with moto
"""

import datetime as dt
import os
from collections.abc import Generator
from typing import Any

import boto3
import pytest
from moto import mock_aws

from booking_engine.models import Actor, ActorRole, RateConfig
from booking_engine.services import (
    EventDispatcher,
    InMemoryListingStore,
    ListingLockManager,
    ReservationEngine,
)
from tests.factories import (
    GUEST_ID,
    LISTING_ID,
    OTHER_GUEST_ID,
    OTHER_LISTING_ID,
    OWNER_ID,
    FakeClock,
)

# === Environment Setup ===

os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-booking")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")


# === Engine Fixtures ===


@pytest.fixture(autouse=True)
def reset_api_services() -> Generator[None, None, None]:
    """Reset cached API singletons before and after each test."""
    from booking_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


@pytest.fixture
def rate_config() -> RateConfig:
    """Rate config from the pricing walkthrough (amounts in minor units)."""
    return RateConfig(
        nightly_rate=1_000_000,
        weekend_surcharge=200_000,
        extra_guest_fee=50_000,
        base_guests=2,
        max_guests=4,
    )


@pytest.fixture
def listing_store(rate_config: RateConfig) -> InMemoryListingStore:
    """Listing store with two listings owned by OWNER_ID."""
    store = InMemoryListingStore()
    store.add_listing(LISTING_ID, OWNER_ID, rate_config)
    store.add_listing(OTHER_LISTING_ID, OWNER_ID, rate_config)
    return store


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at noon on 2026-07-01, two weeks before STAY."""
    return FakeClock(dt.datetime(2026, 7, 1, 12, 0, tzinfo=dt.UTC))


@pytest.fixture
def events() -> EventDispatcher:
    return EventDispatcher()


@pytest.fixture
def engine(
    listing_store: InMemoryListingStore,
    clock: FakeClock,
    events: EventDispatcher,
) -> ReservationEngine:
    """Engine with in-memory storage and a short lock timeout."""
    return ReservationEngine(
        listing_store,
        locks=ListingLockManager(timeout=0.5),
        events=events,
        clock=clock,
    )


@pytest.fixture
def guest() -> Actor:
    return Actor(user_id=GUEST_ID, role=ActorRole.GUEST)


@pytest.fixture
def other_guest() -> Actor:
    return Actor(user_id=OTHER_GUEST_ID, role=ActorRole.GUEST)


@pytest.fixture
def owner() -> Actor:
    return Actor(user_id=OWNER_ID, role=ActorRole.OWNER)


# === DynamoDB Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


@pytest.fixture
def dynamodb_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mocked DynamoDB client."""
    with mock_aws():
        yield boto3.client("dynamodb", region_name="eu-west-1")


@pytest.fixture
def create_tables(dynamodb_client: Any) -> None:
    """Create the reservations, calendar and listings tables."""
    dynamodb_client.create_table(
        TableName="test-booking-reservations",
        KeySchema=[{"AttributeName": "reservation_id", "KeyType": "HASH"}],
        AttributeDefinitions=[
            {"AttributeName": "reservation_id", "AttributeType": "S"},
            {"AttributeName": "listing_id", "AttributeType": "S"},
            {"AttributeName": "guest_id", "AttributeType": "S"},
            {"AttributeName": "created_at", "AttributeType": "S"},
            {"AttributeName": "status", "AttributeType": "S"},
            {"AttributeName": "check_out", "AttributeType": "S"},
        ],
        GlobalSecondaryIndexes=[
            {
                "IndexName": "listing_id-index",
                "KeySchema": [
                    {"AttributeName": "listing_id", "KeyType": "HASH"},
                    {"AttributeName": "created_at", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
            {
                "IndexName": "guest_id-index",
                "KeySchema": [
                    {"AttributeName": "guest_id", "KeyType": "HASH"},
                    {"AttributeName": "created_at", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
            {
                "IndexName": "status-index",
                "KeySchema": [
                    {"AttributeName": "status", "KeyType": "HASH"},
                    {"AttributeName": "check_out", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    dynamodb_client.create_table(
        TableName="test-booking-calendar",
        KeySchema=[
            {"AttributeName": "listing_id", "KeyType": "HASH"},
            {"AttributeName": "night", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "listing_id", "AttributeType": "S"},
            {"AttributeName": "night", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    dynamodb_client.create_table(
        TableName="test-booking-listings",
        KeySchema=[{"AttributeName": "listing_id", "KeyType": "HASH"}],
        AttributeDefinitions=[
            {"AttributeName": "listing_id", "AttributeType": "S"},
            {"AttributeName": "owner_id", "AttributeType": "S"},
        ],
        GlobalSecondaryIndexes=[
            {
                "IndexName": "owner_id-index",
                "KeySchema": [{"AttributeName": "owner_id", "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
        BillingMode="PAY_PER_REQUEST",
    )
