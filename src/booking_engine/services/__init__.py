"""Booking engine services."""

from .calendar import CalendarIndex, InMemoryCalendarIndex
from .collaborators import (
    ALL_EVENTS,
    EventDispatcher,
    InMemoryListingStore,
    ListingStore,
    PaymentCollaborator,
)
from .dynamodb import (
    DynamoDBCalendarIndex,
    DynamoDBListingStore,
    DynamoDBReservationRepository,
    DynamoDBService,
    get_dynamodb_service,
    reset_dynamodb_service,
)
from .engine import ReservationEngine
from .locks import ListingLockManager
from .pricing import PricingCalculator, calculate_price, validate_guest_count, validate_stay
from .refund_policy_service import RefundPolicyService
from .repository import InMemoryReservationRepository, ReservationRepository
from .state_machine import ReservationStateMachine, Transition

__all__ = [
    "ALL_EVENTS",
    "CalendarIndex",
    "DynamoDBCalendarIndex",
    "DynamoDBListingStore",
    "DynamoDBReservationRepository",
    "DynamoDBService",
    "EventDispatcher",
    "InMemoryCalendarIndex",
    "InMemoryListingStore",
    "InMemoryReservationRepository",
    "ListingLockManager",
    "ListingStore",
    "PaymentCollaborator",
    "PricingCalculator",
    "RefundPolicyService",
    "ReservationEngine",
    "ReservationRepository",
    "ReservationStateMachine",
    "Transition",
    "calculate_price",
    "get_dynamodb_service",
    "reset_dynamodb_service",
    "validate_guest_count",
    "validate_stay",
]
