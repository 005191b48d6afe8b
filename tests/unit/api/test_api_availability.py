"""Tests for availability and quote endpoints."""

from fastapi.testclient import TestClient

from tests.factories import GUEST_HEADERS, LISTING_ID

PARAMS = {"check_in": "2026-07-16", "check_out": "2026-07-19", "guest_count": 3}


class TestCheckAvailability:
    def test_free_dates(self, client: TestClient) -> None:
        response = client.get(f"/api/listings/{LISTING_ID}/availability", params=PARAMS)

        assert response.status_code == 200
        data = response.json()
        assert data["available"] is True
        assert data["conflicting_intervals"] == []

    def test_conflicting_dates(self, client: TestClient) -> None:
        body = {"listing_id": LISTING_ID, **PARAMS}
        client.post("/api/reservations", json=body, headers=GUEST_HEADERS)

        response = client.get(
            f"/api/listings/{LISTING_ID}/availability",
            params={"check_in": "2026-07-18", "check_out": "2026-07-20"},
        )

        data = response.json()
        assert data["available"] is False
        assert data["conflicting_intervals"] == [
            {"check_in": "2026-07-16", "check_out": "2026-07-19"}
        ]

    def test_inverted_dates_400(self, client: TestClient) -> None:
        response = client.get(
            f"/api/listings/{LISTING_ID}/availability",
            params={"check_in": "2026-07-19", "check_out": "2026-07-16"},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "ERR_001"

    def test_unknown_listing_404(self, client: TestClient) -> None:
        response = client.get("/api/listings/LST-missing/availability", params=PARAMS)

        assert response.status_code == 404
        assert response.json()["error_code"] == "ERR_009"


class TestQuote:
    def test_quote(self, client: TestClient) -> None:
        response = client.get(f"/api/listings/{LISTING_ID}/quote", params=PARAMS)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3_685_000
        assert data["service_fee"] == 335_000
        assert len(data["nightly"]) == 3

    def test_too_many_guests_400(self, client: TestClient) -> None:
        response = client.get(
            f"/api/listings/{LISTING_ID}/quote", params={**PARAMS, "guest_count": 9}
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "ERR_002"
