"""
Services Module
Business logic layer for the PillPal application
"""

from services.history_service import HistoryService, history_service
from services.medication_service import MedicationService, medication_service
from services.adherence_service import AdherenceService, adherence_service
from services.dose_service import DoseService, dose_service
from services.achievement_service import AchievementService, achievement_service
from services.report_service import ReportService, report_service


__all__ = [
    # Service classes
    "HistoryService",
    "MedicationService",
    "AdherenceService",
    "DoseService",
    "AchievementService",
    "ReportService",
    # Singleton instances
    "history_service",
    "medication_service",
    "adherence_service",
    "dose_service",
    "achievement_service",
    "report_service",
]
