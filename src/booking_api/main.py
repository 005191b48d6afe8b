"""FastAPI application for the booking engine REST API.

Exposes availability checks, price quotes and the reservation lifecycle
under /api. Runs behind API Gateway via Mangum or locally via uvicorn.
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from booking_api.exceptions import register_exception_handlers
from booking_api.middleware import CorrelationIdMiddleware
from booking_api.routes import availability_router, reservations_router
from booking_engine import __version__
from booking_engine.config import get_settings
from booking_engine.utils.logging import configure_logging

configure_logging(get_settings().log_level)

app = FastAPI(
    title="Booking Engine API",
    description="REST API for listing availability, pricing and reservations",
    version=__version__,
)

# Configure CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

register_exception_handlers(app)

app.include_router(availability_router, prefix="/api")
app.include_router(reservations_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Health check endpoint."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "booking-api",
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run("booking_api.main:app", host=host, port=port, reload=True)
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
