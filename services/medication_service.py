"""
Medication Service
Medication records, supply tracking and the reminders tied to them
"""

import logging
from typing import Dict, List, Optional, Any
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from database import get_db_context
import models
from actions.reminder_scheduler import ReminderScheduler, reminder_scheduler


logger = logging.getLogger(__name__)

# Changing any of these changes the reminder's time or content
REMINDER_FIELDS = {"name", "dosage", "instructions", "scheduled_time"}

# Free-text fields where an explicit None clears the value
CLEARABLE_FIELDS = {"frequency", "instructions"}


class MedicationService:
    """
    Service for medication-related operations

    User-initiated writes raise on storage failure; reads log and return
    an empty result instead.
    """

    ALLOWED_UPDATE_FIELDS = {
        "name", "dosage", "frequency", "instructions",
        "scheduled_time", "low_supply_threshold"
    }

    def __init__(self, scheduler: Optional[ReminderScheduler] = None):
        self.scheduler = scheduler or reminder_scheduler

    def _fetch(self, session: Session, medication_id: int) -> Optional[models.Medication]:
        return session.query(models.Medication).filter(
            models.Medication.id == medication_id
        ).first()

    async def _sync_low_supply_alert(
        self,
        session: Session,
        medication: models.Medication,
        now: Optional[datetime] = None
    ):
        """Arm the low-supply alert when supply <= threshold, clear it otherwise"""
        if medication.is_low_supply:
            result = await self.scheduler.schedule_low_supply_alert(medication, now)
            medication.low_supply_handle = result.handle if result.success else None
            if not result.success:
                logger.error(
                    f"Low-supply alert for medication {medication.id} not registered: {result.error}"
                )
        elif medication.low_supply_handle:
            await self.scheduler.cancel_low_supply_alert(medication.id, medication.low_supply_handle)
            medication.low_supply_handle = None
        session.commit()

    async def add_medication(
        self,
        name: str,
        dosage: str,
        scheduled_time: datetime,
        supply: int = 0,
        low_supply_threshold: int = 0,
        frequency: str = "",
        instructions: str = "",
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> models.Medication:
        """
        Add a new medication and schedule its daily reminder

        Args:
            name: Medication name
            dosage: Dosage (e.g., "500mg")
            scheduled_time: Reminder time; only hour and minute are used
            supply: Doses on hand
            low_supply_threshold: Alert once supply is at or below this
            frequency: Frequency description (e.g., "once daily")
            instructions: Special instructions
            now: Reference time for the first reminder
            db: Database session

        Returns:
            Created Medication object
        """
        if supply < 0:
            raise ValueError("Supply cannot be negative")
        if low_supply_threshold < 0:
            raise ValueError("Low supply threshold cannot be negative")

        async def _add(session: Session) -> models.Medication:
            medication = models.Medication(
                name=name,
                dosage=dosage,
                frequency=frequency,
                instructions=instructions,
                scheduled_time=scheduled_time,
                supply=supply,
                low_supply_threshold=low_supply_threshold
            )
            session.add(medication)
            session.commit()
            session.refresh(medication)
            logger.info(f"Added medication {medication.id}: {name}")

            result = await self.scheduler.schedule(medication, now)
            if result.success:
                medication.reminder_handle = result.handle
                session.commit()
            else:
                logger.error(f"Reminder for medication {medication.id} not scheduled: {result.error}")

            if medication.is_low_supply:
                await self._sync_low_supply_alert(session, medication, now)

            return medication

        if db:
            return await _add(db)

        with get_db_context() as session:
            return await _add(session)

    async def get_medication(
        self,
        medication_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.Medication]:
        """Get medication by ID; None when missing or unreadable"""
        def _get(session: Session) -> Optional[models.Medication]:
            return self._fetch(session, medication_id)

        try:
            if db:
                return _get(db)

            with get_db_context() as session:
                return _get(session)
        except SQLAlchemyError as e:
            logger.error(f"Error getting medication {medication_id}: {e}")
            return None

    async def require_medication(
        self,
        medication_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.Medication]:
        """Get medication by ID ahead of a write; storage errors propagate"""
        if db:
            return self._fetch(db, medication_id)

        with get_db_context() as session:
            return self._fetch(session, medication_id)

    async def list_medications(self, db: Optional[Session] = None) -> List[models.Medication]:
        """All medications ordered by name"""
        def _list(session: Session) -> List[models.Medication]:
            return session.query(models.Medication).order_by(models.Medication.name).all()

        try:
            if db:
                return _list(db)

            with get_db_context() as session:
                return _list(session)
        except SQLAlchemyError as e:
            logger.error(f"Error listing medications: {e}")
            return []

    async def count_medications(self, db: Optional[Session] = None) -> int:
        medications = await self.list_medications(db=db)
        return len(medications)

    async def update_medication(
        self,
        medication_id: int,
        updates: Dict[str, Any],
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> Optional[models.Medication]:
        """
        Update medication information

        The reminder is replaced when its time or content changes, and the
        low-supply alert is re-evaluated when the threshold changes.
        """
        threshold = updates.get("low_supply_threshold")
        if threshold is not None and threshold < 0:
            raise ValueError("Low supply threshold cannot be negative")

        async def _update(session: Session) -> Optional[models.Medication]:
            medication = self._fetch(session, medication_id)
            if not medication:
                return None

            changed = set()
            for field, value in updates.items():
                if field not in self.ALLOWED_UPDATE_FIELDS:
                    continue
                if value is None:
                    if field not in CLEARABLE_FIELDS:
                        continue
                    value = ""
                if getattr(medication, field) != value:
                    setattr(medication, field, value)
                    changed.add(field)

            medication.updated_at = datetime.utcnow()
            session.commit()
            session.refresh(medication)

            if changed & REMINDER_FIELDS:
                result = await self.scheduler.reschedule(medication.reminder_handle, medication, now)
                medication.reminder_handle = result.handle if result.success else None
                session.commit()
                if not result.success:
                    logger.error(f"Reminder for medication {medication_id} not rescheduled: {result.error}")

            if "low_supply_threshold" in changed:
                await self._sync_low_supply_alert(session, medication, now)

            logger.info(f"Updated medication {medication_id}: {sorted(changed)}")
            return medication

        if db:
            return await _update(db)

        with get_db_context() as session:
            return await _update(session)

    async def delete_medication(
        self,
        medication_id: int,
        db: Optional[Session] = None
    ) -> bool:
        """Delete a medication and cancel its reminders. History is kept."""
        async def _delete(session: Session) -> bool:
            medication = self._fetch(session, medication_id)
            if not medication:
                return False

            await self.scheduler.cancel(medication.reminder_handle)
            await self.scheduler.cancel_low_supply_alert(medication_id, medication.low_supply_handle)

            session.delete(medication)
            session.commit()
            logger.info(f"Deleted medication {medication_id}")
            return True

        if db:
            return await _delete(db)

        with get_db_context() as session:
            return await _delete(session)

    async def update_supply(
        self,
        medication_id: int,
        new_supply: int,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> Optional[models.Medication]:
        """
        Set remaining supply

        Arms the low-supply alert when supply <= threshold and clears it
        once supply is back above.
        """
        if new_supply < 0:
            raise ValueError("Supply cannot be negative")

        async def _update(session: Session) -> Optional[models.Medication]:
            medication = self._fetch(session, medication_id)
            if not medication:
                return None

            medication.supply = new_supply
            medication.updated_at = datetime.utcnow()
            session.commit()
            logger.info(f"Supply for medication {medication_id} set to {new_supply}")

            await self._sync_low_supply_alert(session, medication, now)
            session.refresh(medication)
            return medication

        if db:
            return await _update(db)

        with get_db_context() as session:
            return await _update(session)

    async def decrement_supply(
        self,
        medication_id: int,
        amount: int = 1,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> Optional[models.Medication]:
        """Reduce supply by amount, never below zero"""
        async def _decrement(session: Session) -> Optional[models.Medication]:
            medication = self._fetch(session, medication_id)
            if not medication:
                return None
            return await self.update_supply(
                medication_id, max(0, medication.supply - amount), now=now, db=session
            )

        if db:
            return await _decrement(db)

        with get_db_context() as session:
            return await _decrement(session)

    async def get_low_supply_medications(self, db: Optional[Session] = None) -> List[models.Medication]:
        """Medications with supply at or below their threshold"""
        def _get(session: Session) -> List[models.Medication]:
            return session.query(models.Medication).filter(
                models.Medication.supply <= models.Medication.low_supply_threshold
            ).all()

        try:
            if db:
                return _get(db)

            with get_db_context() as session:
                return _get(session)
        except SQLAlchemyError as e:
            logger.error(f"Error checking low supply medications: {e}")
            return []


# Singleton instance
medication_service = MedicationService()
