"""
Tests for Reports API
======================

Tests dashboards and per-medication breakdowns, plus health endpoints.
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient


@pytest.fixture
def medication(client: TestClient):
    response = client.post("/api/v1/medications/", json={
        "name": "Atorvastatin",
        "dosage": "20mg",
        "scheduled_time": "2024-06-01T21:00:00",
        "supply": 10,
        "low_supply_threshold": 3
    })
    return response.json()


class TestReportsApi:
    """Tests for report endpoints"""

    @pytest.mark.api
    def test_empty_dashboard(self, client: TestClient):
        data = client.get("/api/v1/reports/dashboard").json()

        assert data["weekly_rate"] == 0
        assert data["monthly_rate"] == 0
        assert data["total_doses"] == 0

    @pytest.mark.api
    def test_dashboard_for_medication(self, client: TestClient, medication):
        client.post("/api/v1/adherence/dose/taken", json={"medication_id": medication["id"]})

        data = client.get("/api/v1/reports/dashboard", params={"medication_id": medication["id"]}).json()

        assert data["weekly_rate"] == 100
        assert data["streak"] == 1
        assert data["medication_id"] == medication["id"]

    @pytest.mark.api
    def test_medication_dashboards(self, client: TestClient, medication):
        data = client.get("/api/v1/reports/medications").json()

        assert data["total"] == 1
        assert data["dashboards"][0]["medication_name"] == "Atorvastatin"

    @pytest.mark.api
    def test_breakdown(self, client: TestClient, medication):
        response = client.get(f"/api/v1/reports/medications/{medication['id']}")

        data = response.json()
        assert response.status_code == status.HTTP_200_OK
        assert set(data["time_of_day"]) == {"morning", "afternoon", "evening", "night"}
        assert data["supply"] == 10
        assert data["low_supply"] is False

    @pytest.mark.api
    def test_breakdown_not_found(self, client: TestClient):
        response = client.get("/api/v1/reports/medications/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestHealth:
    """Tests for health endpoints"""

    @pytest.mark.api
    def test_root(self, client: TestClient):
        data = client.get("/").json()

        assert data["name"] == "PillPal"
        assert data["status"] == "healthy"

    @pytest.mark.api
    def test_health(self, client: TestClient):
        data = client.get("/health").json()

        assert data["checks"]["database"]["status"] == "up"
        assert "reminders" in data["checks"]["notifications"]
        assert data["checks"]["database"]["rows"]["medications"] == 0
