"""
Tests for Report Service
Tests dashboard packaging of adherence figures
"""

import pytest
from datetime import timedelta


class TestDashboard:
    """Tests for get_dashboard"""

    @pytest.mark.asyncio
    async def test_empty_dashboard(self, report_service, db_session, fixed_now):
        dashboard = await report_service.get_dashboard(now=fixed_now, db=db_session)

        assert dashboard.to_dict() == {
            "weekly_rate": 0.0,
            "monthly_rate": 0.0,
            "streak": 0,
            "total_doses": 0,
            "missed_doses": 0,
            "medication_id": None,
            "medication_name": None,
        }

    @pytest.mark.asyncio
    async def test_weekly_vs_monthly(self, report_service, db_session, sample_medication, log_dose, fixed_now):
        log_dose(sample_medication.id, fixed_now - timedelta(hours=2), taken=True)
        log_dose(sample_medication.id, fixed_now - timedelta(days=1, hours=2), taken=True)
        log_dose(sample_medication.id, fixed_now - timedelta(days=2, hours=2), taken=False)
        log_dose(sample_medication.id, fixed_now - timedelta(days=20), taken=False)

        dashboard = await report_service.get_dashboard(sample_medication.id, now=fixed_now, db=db_session)

        assert dashboard.weekly_rate == 66.7
        assert dashboard.monthly_rate == 50.0
        assert dashboard.streak == 2
        assert dashboard.total_doses == 4
        assert dashboard.missed_doses == 2


class TestMedicationBreakdown:
    """Tests for per-medication breakdowns"""

    @pytest.mark.asyncio
    async def test_breakdown(self, report_service, db_session, make_medication, log_dose, fixed_now):
        medication = make_medication(name="Metformin", supply=4, low_supply_threshold=5)
        log_dose(medication.id, fixed_now.replace(hour=8), taken=True)

        breakdown = await report_service.get_medication_breakdown(medication.id, now=fixed_now, db=db_session)

        assert breakdown["dashboard"]["medication_name"] == "Metformin"
        assert breakdown["time_of_day"]["morning"] == 1
        assert breakdown["weekly_stats"]["Wednesday"] == 1
        assert breakdown["supply"] == 4
        assert breakdown["low_supply"] is True

    @pytest.mark.asyncio
    async def test_breakdown_missing(self, report_service, db_session):
        assert await report_service.get_medication_breakdown(999, db=db_session) is None

    @pytest.mark.asyncio
    async def test_all_dashboards_lowest_first(self, report_service, db_session, make_medication, log_dose, fixed_now):
        good = make_medication(name="Atorvastatin")
        poor = make_medication(name="Metformin")
        log_dose(good.id, fixed_now - timedelta(hours=1), taken=True)
        log_dose(poor.id, fixed_now - timedelta(hours=1), taken=False)

        dashboards = await report_service.get_all_medication_dashboards(now=fixed_now, db=db_session)

        assert [d.medication_name for d in dashboards] == ["Metformin", "Atorvastatin"]
        assert dashboards[0].monthly_rate == 0.0
        assert dashboards[1].monthly_rate == 100.0
