"""API routes package.

- availability: availability checks and price quotes per listing
- reservations: reservation lifecycle for guests and owners

All routers are registered in main.py with /api prefix.
"""

from booking_api.routes.availability import router as availability_router
from booking_api.routes.reservations import router as reservations_router

__all__ = ["availability_router", "reservations_router"]
