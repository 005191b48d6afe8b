"""FastAPI dependency injection providers.

Services are lazily instantiated and cached with @lru_cache, so one engine
(and therefore one set of listing locks) serves the whole process.

Service Dependency Graph:
    EngineSettings (get_settings)
        ├── ReservationRepository (memory or DynamoDB)
        ├── ListingStore (bundled JSON or DynamoDB)
        ├── EventDispatcher
        └── ReservationEngine

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from fastapi import Header, HTTPException
from starlette.status import HTTP_401_UNAUTHORIZED

from booking_engine.config import STORAGE_DYNAMODB, get_settings
from booking_engine.models import Actor, ActorRole
from booking_engine.services import (
    DynamoDBListingStore,
    DynamoDBReservationRepository,
    EventDispatcher,
    InMemoryListingStore,
    InMemoryReservationRepository,
    ListingStore,
    ReservationEngine,
    ReservationRepository,
    get_dynamodb_service,
)


@lru_cache
def get_listing_store() -> ListingStore:
    """Get cached listing store for the configured storage backend.

    The memory backend loads listings from BOOKING_LISTINGS_FILE, or the
    bundled listings when unset.
    """
    settings = get_settings()
    if settings.storage_backend == STORAGE_DYNAMODB:
        return DynamoDBListingStore(get_dynamodb_service(settings))
    return InMemoryListingStore.from_json(settings.listings_file)


@lru_cache
def get_reservation_repository() -> ReservationRepository:
    """Get cached repository for the configured storage backend."""
    settings = get_settings()
    if settings.storage_backend == STORAGE_DYNAMODB:
        return DynamoDBReservationRepository(get_dynamodb_service(settings))
    return InMemoryReservationRepository()


@lru_cache
def get_event_dispatcher() -> EventDispatcher:
    """Get cached event dispatcher."""
    return EventDispatcher()


@lru_cache
def get_engine() -> ReservationEngine:
    """Get cached ReservationEngine wired to the other singletons."""
    return ReservationEngine(
        listings=get_listing_store(),
        repository=get_reservation_repository(),
        events=get_event_dispatcher(),
        settings=get_settings(),
    )


def get_actor(
    x_user_sub: str | None = Header(default=None),
    x_user_role: ActorRole = Header(default=ActorRole.GUEST),
) -> Actor:
    """Build the acting user from gateway-injected identity headers.

    The API gateway validates the JWT and forwards the subject as
    x-user-sub and the claimed role as x-user-role.
    """
    if not x_user_sub:
        raise HTTPException(
            status_code=HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return Actor(user_id=x_user_sub, role=x_user_role)


def reset_services() -> None:
    """Clear all cached service instances.

    Also resets cached settings and the DynamoDB singleton.
    """
    from booking_engine.services.dynamodb import reset_dynamodb_service

    get_engine.cache_clear()
    get_event_dispatcher.cache_clear()
    get_reservation_repository.cache_clear()
    get_listing_store.cache_clear()
    get_settings.cache_clear()

    reset_dynamodb_service()
