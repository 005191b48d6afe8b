"""Environment-driven configuration for the booking engine."""

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_LOCK_TIMEOUT_SECONDS = 5.0
# 10% expressed in basis points
DEFAULT_SERVICE_FEE_BPS = 1000

STORAGE_MEMORY = "memory"
STORAGE_DYNAMODB = "dynamodb"


@dataclass(frozen=True)
class EngineSettings:
    """Runtime settings for the engine and its storage."""

    environment: str = "dev"
    lock_timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS
    service_fee_bps: int = DEFAULT_SERVICE_FEE_BPS
    storage_backend: str = STORAGE_MEMORY
    table_prefix: str = "booking-dev"
    log_level: str = "INFO"
    # None means the bundled listings file
    listings_file: str | None = None

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Build settings from environment variables.

        Returns:
            EngineSettings with defaults for anything unset
        """
        environment = os.getenv("ENVIRONMENT", "dev")
        backend = os.getenv("BOOKING_STORAGE_BACKEND", STORAGE_MEMORY).lower()
        if backend not in (STORAGE_MEMORY, STORAGE_DYNAMODB):
            raise ValueError(f"Unknown BOOKING_STORAGE_BACKEND: {backend}")

        return cls(
            environment=environment,
            lock_timeout_seconds=float(
                os.getenv("BOOKING_LOCK_TIMEOUT_SECONDS", DEFAULT_LOCK_TIMEOUT_SECONDS)
            ),
            service_fee_bps=int(os.getenv("BOOKING_SERVICE_FEE_BPS", DEFAULT_SERVICE_FEE_BPS)),
            storage_backend=backend,
            # Allow override via DYNAMODB_TABLE_PREFIX for testing
            table_prefix=os.getenv("DYNAMODB_TABLE_PREFIX", f"booking-{environment}"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            listings_file=os.getenv("BOOKING_LISTINGS_FILE") or None,
        )


@lru_cache
def get_settings() -> EngineSettings:
    """Get cached settings for the current process."""
    return EngineSettings.from_env()
