"""
Achievement Service
Catalog of achievements and progress tracking
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Any
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from database import get_db_context
import models
from services.adherence_service import AdherenceService, adherence_service
from services.medication_service import MedicationService, medication_service


logger = logging.getLogger(__name__)


AVAILABLE_ACHIEVEMENTS: List[Dict[str, Any]] = [
    {
        "id": "first_medication",
        "name": "First Steps",
        "description": "Add your first medication",
        "icon": "medal-outline",
        "target": 1,
    },
    {
        "id": "perfect_week",
        "name": "Perfect Week",
        "description": "Take all medications for 7 days straight",
        "icon": "star-outline",
        "target": 7,
    },
    {
        "id": "medication_master",
        "name": "Medication Master",
        "description": "Achieve 100% adherence for 30 days",
        "icon": "trophy-outline",
        "target": 30,
    },
    # No trigger yet; kept as catalog entries
    {
        "id": "early_bird",
        "name": "Early Bird",
        "description": "Take all morning medications on time for 5 days",
        "icon": "sunny-outline",
        "target": 5,
    },
    {
        "id": "sharing_care",
        "name": "Sharing Care",
        "description": "Connect with a caregiver or family member",
        "icon": "people-outline",
        "target": 1,
    },
]


class UpdateStatus(str, Enum):
    """Outcome of an achievement progress update"""
    UPDATED = "updated"
    NOT_FOUND = "not_found"
    STORAGE_ERROR = "storage_error"


@dataclass
class AchievementUpdate:
    """Typed result of update_progress"""
    status: UpdateStatus
    achievement: Optional[models.Achievement] = None
    newly_completed: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == UpdateStatus.UPDATED


# ==================== PREDICATES ====================

def is_first_medication(medication_count: int) -> bool:
    return medication_count >= 1


def is_perfect_week(weekly_adherence: float) -> bool:
    return weekly_adherence >= 100


def is_medication_master(monthly_adherence: float) -> bool:
    return monthly_adherence >= 100


def apply_progress(achievement: models.Achievement, new_progress: int) -> bool:
    """
    Move progress toward target without ever going backwards.

    Returns True if this call completed the achievement.
    """
    was_completed = bool(achievement.completed)
    clamped = min(max(new_progress, 0), achievement.target)
    achievement.progress = max(achievement.progress or 0, clamped)
    achievement.completed = was_completed or achievement.progress >= achievement.target
    return achievement.completed and not was_completed


class AchievementService:
    """
    Service for achievement progress

    Every achievement follows the same pattern: a pure predicate over
    adherence figures, and when it holds, a call to update_progress.
    """

    def __init__(
        self,
        adherence: Optional[AdherenceService] = None,
        medications: Optional[MedicationService] = None
    ):
        self.adherence = adherence or adherence_service
        self.medications = medications or medication_service

    async def initialize_achievements(self, db: Optional[Session] = None) -> int:
        """
        Insert catalog entries missing from storage

        Returns:
            Number of achievements created
        """
        def _init(session: Session) -> int:
            existing = {a.id for a in session.query(models.Achievement.id).all()}
            created = 0
            for entry in AVAILABLE_ACHIEVEMENTS:
                if entry["id"] in existing:
                    continue
                session.add(models.Achievement(progress=0, completed=False, **entry))
                created += 1
            session.commit()
            if created:
                logger.info(f"Initialized {created} achievements")
            return created

        try:
            if db:
                return _init(db)

            with get_db_context() as session:
                return _init(session)
        except SQLAlchemyError as e:
            logger.error(f"Error initializing achievements: {e}")
            return 0

    async def get_achievements(self, db: Optional[Session] = None) -> List[models.Achievement]:
        """All achievements in catalog order"""
        order = {entry["id"]: i for i, entry in enumerate(AVAILABLE_ACHIEVEMENTS)}

        def _get(session: Session) -> List[models.Achievement]:
            achievements = session.query(models.Achievement).all()
            return sorted(achievements, key=lambda a: order.get(a.id, len(order)))

        try:
            if db:
                return _get(db)

            with get_db_context() as session:
                return _get(session)
        except SQLAlchemyError as e:
            logger.error(f"Error getting achievements: {e}")
            return []

    async def get_achievement(
        self,
        achievement_id: str,
        db: Optional[Session] = None
    ) -> Optional[models.Achievement]:
        def _get(session: Session) -> Optional[models.Achievement]:
            return session.get(models.Achievement, achievement_id)

        try:
            if db:
                return _get(db)

            with get_db_context() as session:
                return _get(session)
        except SQLAlchemyError as e:
            logger.error(f"Error getting achievement {achievement_id}: {e}")
            return None

    async def update_progress(
        self,
        achievement_id: str,
        new_progress: int,
        db: Optional[Session] = None
    ) -> AchievementUpdate:
        """
        Set progress, clamped to target and never lower than before

        Storage errors are logged and reported through the result, not raised.
        """
        def _update(session: Session) -> AchievementUpdate:
            achievement = session.get(models.Achievement, achievement_id)
            if not achievement:
                return AchievementUpdate(status=UpdateStatus.NOT_FOUND)

            newly_completed = apply_progress(achievement, new_progress)
            achievement.updated_at = datetime.utcnow()
            session.commit()
            session.refresh(achievement)

            if newly_completed:
                logger.info(f"Achievement {achievement_id} completed")
            return AchievementUpdate(
                status=UpdateStatus.UPDATED,
                achievement=achievement,
                newly_completed=newly_completed
            )

        try:
            if db:
                return _update(db)

            with get_db_context() as session:
                return _update(session)
        except SQLAlchemyError as e:
            logger.error(f"Error updating achievement {achievement_id}: {e}")
            if db:
                db.rollback()
            return AchievementUpdate(status=UpdateStatus.STORAGE_ERROR, error=str(e))

    # ==================== CHECKS ====================

    async def check_first_medication(
        self,
        medication_count: int,
        db: Optional[Session] = None
    ) -> Optional[AchievementUpdate]:
        if is_first_medication(medication_count):
            return await self.update_progress("first_medication", 1, db=db)
        return None

    async def check_perfect_week(
        self,
        weekly_adherence: float,
        db: Optional[Session] = None
    ) -> Optional[AchievementUpdate]:
        if is_perfect_week(weekly_adherence):
            return await self.update_progress("perfect_week", 7, db=db)
        return None

    async def check_medication_master(
        self,
        monthly_adherence: float,
        db: Optional[Session] = None
    ) -> Optional[AchievementUpdate]:
        if is_medication_master(monthly_adherence):
            return await self.update_progress("medication_master", 30, db=db)
        return None

    async def evaluate_achievements(
        self,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> List[AchievementUpdate]:
        """Run every wired check against current figures"""
        await self.initialize_achievements(db=db)

        medication_count = await self.medications.count_medications(db=db)
        weekly = await self.adherence.calculate_weekly_adherence(now=now, db=db)
        monthly = await self.adherence.calculate_monthly_adherence(now=now, db=db)

        results = [
            await self.check_first_medication(medication_count, db=db),
            await self.check_perfect_week(weekly, db=db),
            await self.check_medication_master(monthly, db=db),
        ]
        return [r for r in results if r is not None]


# Singleton instance
achievement_service = AchievementService()
