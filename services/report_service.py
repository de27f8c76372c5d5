"""
Report Service
Packages adherence figures into dashboard views
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Any
from datetime import datetime
from sqlalchemy.orm import Session

from config import adherence_config
from services.adherence_service import AdherenceService, adherence_service
from services.medication_service import MedicationService, medication_service


logger = logging.getLogger(__name__)


@dataclass
class AdherenceDashboard:
    """Weekly vs monthly comparison for one medication or the whole account"""
    weekly_rate: float
    monthly_rate: float
    streak: int
    total_doses: int
    missed_doses: int
    medication_id: Optional[int] = None
    medication_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ReportService:
    """
    Service for dashboard reports.

    Adds no computation of its own: it calls the adherence service with
    different windows and packages the results identically for
    single-medication and account-wide views.
    """

    def __init__(
        self,
        adherence: Optional[AdherenceService] = None,
        medications: Optional[MedicationService] = None
    ):
        self.adherence = adherence or adherence_service
        self.medications = medications or medication_service

    async def get_dashboard(
        self,
        medication_id: Optional[int] = None,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> AdherenceDashboard:
        """Weekly and monthly rates, streak and monthly dose counts"""
        weekly = await self.adherence.calculate_weekly_adherence(medication_id, now, db)
        monthly_report = await self.adherence.generate_adherence_report(
            adherence_config.MONTHLY_WINDOW_DAYS, medication_id, now, db
        )
        monthly = await self.adherence.calculate_monthly_adherence(medication_id, now, db)

        return AdherenceDashboard(
            weekly_rate=round(weekly, 1),
            monthly_rate=round(monthly, 1),
            streak=monthly_report.streak,
            total_doses=monthly_report.total_doses,
            missed_doses=monthly_report.missed_doses,
            medication_id=medication_id
        )

    async def get_medication_breakdown(
        self,
        medication_id: int,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> Optional[Dict[str, Any]]:
        """Dashboard plus time-of-day and weekday stats for one medication"""
        medication = await self.medications.get_medication(medication_id, db=db)
        if not medication:
            return None

        dashboard = await self.get_dashboard(medication_id, now, db)
        dashboard.medication_name = medication.name
        time_of_day = await self.adherence.get_time_of_day_stats(medication_id, db)
        weekly_stats = await self.adherence.get_weekly_adherence_stats(medication_id, now, db)

        return {
            "dashboard": dashboard.to_dict(),
            "time_of_day": time_of_day.to_dict(),
            "weekly_stats": weekly_stats,
            "supply": medication.supply,
            "low_supply": medication.is_low_supply
        }

    async def get_all_medication_dashboards(
        self,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> List[AdherenceDashboard]:
        """One dashboard per medication, lowest monthly rate first"""
        dashboards = []
        for medication in await self.medications.list_medications(db=db):
            dashboard = await self.get_dashboard(medication.id, now, db)
            dashboard.medication_name = medication.name
            dashboards.append(dashboard)

        # Lowest first to highlight problems
        dashboards.sort(key=lambda d: d.monthly_rate)
        return dashboards


# Singleton instance
report_service = ReportService()
