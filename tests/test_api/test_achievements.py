"""
Tests for Achievements API
===========================

Tests listing achievements, progress updates and evaluation.
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient


class TestAchievementsApi:
    """Tests for achievement endpoints"""

    @pytest.mark.api
    def test_list_initializes_catalog(self, client: TestClient):
        response = client.get("/api/v1/achievements/")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [a["id"] for a in data["achievements"]] == [
            "first_medication", "perfect_week", "medication_master", "early_bird", "sharing_care"
        ]
        assert data["completed_count"] == 0

    @pytest.mark.api
    def test_progress_is_clamped(self, client: TestClient):
        response = client.put("/api/v1/achievements/perfect_week/progress", json={"progress": 12})

        data = response.json()
        assert data["progress"] == 7
        assert data["completed"] is True

    @pytest.mark.api
    def test_progress_never_decreases(self, client: TestClient):
        client.put("/api/v1/achievements/medication_master/progress", json={"progress": 12})

        response = client.put("/api/v1/achievements/medication_master/progress", json={"progress": 4})

        assert response.json()["progress"] == 12

    @pytest.mark.api
    def test_progress_unknown_achievement(self, client: TestClient):
        response = client.put("/api/v1/achievements/unknown/progress", json={"progress": 1})

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.api
    def test_progress_negative_rejected(self, client: TestClient):
        response = client.put("/api/v1/achievements/perfect_week/progress", json={"progress": -1})

        assert response.status_code == 422

    @pytest.mark.api
    def test_evaluate_after_first_medication(self, client: TestClient):
        client.post("/api/v1/medications/", json={
            "name": "Metformin",
            "dosage": "500mg",
            "scheduled_time": "2024-06-01T08:00:00",
            "supply": 30
        })

        data = client.post("/api/v1/achievements/evaluate").json()

        completed = {a["id"] for a in data["achievements"] if a["completed"]}
        assert "first_medication" in completed
        assert "perfect_week" not in completed
