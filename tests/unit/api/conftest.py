"""Fixtures for API tests."""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from booking_api.dependencies import get_engine
from booking_api.main import app
from booking_engine.services import ReservationEngine


@pytest.fixture
def client(engine: ReservationEngine) -> Generator[TestClient, None, None]:
    """TestClient whose engine uses the fixed test clock."""
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()
