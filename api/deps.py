"""
API Dependencies
Common dependencies for FastAPI endpoints
"""

from database import get_db


class ServiceDependency:
    """
    Dependency injection for services
    """

    @staticmethod
    def get_medication_service():
        from services.medication_service import medication_service
        return medication_service

    @staticmethod
    def get_history_service():
        from services.history_service import history_service
        return history_service

    @staticmethod
    def get_dose_service():
        from services.dose_service import dose_service
        return dose_service

    @staticmethod
    def get_adherence_service():
        from services.adherence_service import adherence_service
        return adherence_service

    @staticmethod
    def get_achievement_service():
        from services.achievement_service import achievement_service
        return achievement_service

    @staticmethod
    def get_report_service():
        from services.report_service import report_service
        return report_service


# Service dependency instances
services = ServiceDependency()

__all__ = ["get_db", "services", "ServiceDependency"]
