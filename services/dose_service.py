"""
Dose Service
Records dose responses: appends the dose event, then updates supply
"""

import logging
from typing import Optional, Tuple
from datetime import datetime
from sqlalchemy.orm import Session

import models
from models import DoseAction
from services.history_service import HistoryService, history_service, to_epoch_millis
from services.medication_service import MedicationService, medication_service


logger = logging.getLogger(__name__)


class DoseService:
    """
    Service for taking, skipping and missing doses.

    The dose event is appended before the supply is touched. The two writes
    are sequenced, not transactional.
    """

    def __init__(
        self,
        history: Optional[HistoryService] = None,
        medications: Optional[MedicationService] = None
    ):
        self.history = history or history_service
        self.medications = medications or medication_service

    async def take_dose(
        self,
        medication_id: int,
        notes: Optional[str] = None,
        taken_at: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> Optional[Tuple[models.HistoryEntry, models.Medication]]:
        """
        Log a taken dose and decrement supply

        Returns:
            (entry, medication) or None when the medication does not exist

        Raises:
            SQLAlchemyError: if either write fails; the event may already
                be stored when the supply update is the one that fails
        """
        medication = await self.medications.require_medication(medication_id, db=db)
        if not medication:
            return None

        timestamp = to_epoch_millis(taken_at) if taken_at else None
        entry = await self.history.append(
            medication_id, taken=True, timestamp=timestamp, notes=notes, db=db
        )
        updated = await self.medications.decrement_supply(medication_id, now=taken_at, db=db)
        # Deleted between the two writes
        return entry, updated or medication

    async def skip_dose(
        self,
        medication_id: int,
        notes: Optional[str] = None,
        skipped_at: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> Optional[models.HistoryEntry]:
        """Log a dose the user chose not to take"""
        medication = await self.medications.require_medication(medication_id, db=db)
        if not medication:
            return None

        timestamp = to_epoch_millis(skipped_at) if skipped_at else None
        return await self.history.append(
            medication_id, taken=False, timestamp=timestamp, notes=notes, db=db
        )

    async def record_missed_dose(
        self,
        medication_id: int,
        missed_at: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> Optional[models.HistoryEntry]:
        """Log a dose detected as missed"""
        return await self.skip_dose(
            medication_id, notes="Missed dose", skipped_at=missed_at, db=db
        )

    async def handle_notification_response(
        self,
        medication_id: int,
        action: str,
        db: Optional[Session] = None
    ) -> Optional[models.HistoryEntry]:
        """
        Route a reminder response

        TAKE appends a taken event, SKIP a not-taken one. SNOOZE and unknown
        actions log nothing.
        """
        normalized = action.upper()
        if normalized == "TAKEN":  # older clients
            normalized = DoseAction.TAKE.value
        try:
            dose_action = DoseAction(normalized)
        except ValueError:
            logger.warning(f"Ignoring unknown action {action!r} for medication {medication_id}")
            return None

        if dose_action == DoseAction.TAKE:
            result = await self.take_dose(medication_id, db=db)
            return result[0] if result else None
        if dose_action == DoseAction.SKIP:
            return await self.skip_dose(medication_id, db=db)

        logger.info(f"Reminder for medication {medication_id} snoozed")
        return None


# Singleton instance
dose_service = DoseService()
