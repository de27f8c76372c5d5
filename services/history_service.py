"""
History Service
Append-only log of dose events (taken / missed)
"""

import logging
from typing import List, Optional
from datetime import datetime, timedelta
from sqlalchemy.orm import Session

from database import get_db_context
import models


logger = logging.getLogger(__name__)

MILLIS_PER_DAY = 24 * 60 * 60 * 1000


def to_epoch_millis(value: datetime) -> int:
    """Convert a local (naive) or aware datetime to epoch milliseconds"""
    return int(round(value.timestamp() * 1000))


def from_epoch_millis(millis: int) -> datetime:
    """Convert epoch milliseconds to a naive local datetime"""
    return datetime.fromtimestamp(millis / 1000)


def now_millis(now: Optional[datetime] = None) -> int:
    return to_epoch_millis(now or datetime.now())


class HistoryService:
    """
    Event log for dose events.

    Writes propagate storage errors to the caller. Reads return entries in
    no guaranteed order; callers sort when order matters.
    """

    async def append(
        self,
        medication_id: int,
        taken: bool,
        timestamp: Optional[int] = None,
        notes: Optional[str] = None,
        db: Optional[Session] = None
    ) -> models.HistoryEntry:
        """
        Append a dose event

        Args:
            medication_id: Medication the dose belongs to
            taken: True if the dose was taken, False if skipped/missed
            timestamp: Epoch millis of the dose, defaults to now
            notes: Optional free text
            db: Database session

        Returns:
            Created HistoryEntry with its id assigned
        """
        def _append(session: Session) -> models.HistoryEntry:
            entry = models.HistoryEntry(
                medication_id=medication_id,
                timestamp=timestamp if timestamp is not None else now_millis(),
                taken=taken,
                notes=notes
            )
            session.add(entry)
            session.commit()
            session.refresh(entry)

            logger.info(
                f"Logged dose event {entry.id} for medication {medication_id}: "
                f"{'taken' if taken else 'not taken'}"
            )
            return entry

        if db:
            return _append(db)

        with get_db_context() as session:
            return _append(session)

    async def query_all(self, db: Optional[Session] = None) -> List[models.HistoryEntry]:
        """All dose events"""
        def _query(session: Session) -> List[models.HistoryEntry]:
            return session.query(models.HistoryEntry).all()

        if db:
            return _query(db)

        with get_db_context() as session:
            return _query(session)

    async def query_by_medication(
        self,
        medication_id: int,
        db: Optional[Session] = None
    ) -> List[models.HistoryEntry]:
        """Dose events for one medication"""
        def _query(session: Session) -> List[models.HistoryEntry]:
            return session.query(models.HistoryEntry).filter(
                models.HistoryEntry.medication_id == medication_id
            ).all()

        if db:
            return _query(db)

        with get_db_context() as session:
            return _query(session)

    async def query_by_time_window(
        self,
        since_epoch_millis: int,
        medication_id: Optional[int] = None,
        db: Optional[Session] = None
    ) -> List[models.HistoryEntry]:
        """Dose events with timestamp >= since_epoch_millis"""
        def _query(session: Session) -> List[models.HistoryEntry]:
            query = session.query(models.HistoryEntry).filter(
                models.HistoryEntry.timestamp >= since_epoch_millis
            )
            if medication_id is not None:
                query = query.filter(models.HistoryEntry.medication_id == medication_id)
            return query.all()

        if db:
            return _query(db)

        with get_db_context() as session:
            return _query(session)

    async def query_recent(
        self,
        days: int = 7,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> List[models.HistoryEntry]:
        """Dose events from the last `days` days, newest first"""
        since = now_millis(now) - days * MILLIS_PER_DAY
        entries = await self.query_by_time_window(since, db=db)
        return sorted(entries, key=lambda e: e.timestamp, reverse=True)

    async def query_between(
        self,
        start: datetime,
        end: datetime,
        medication_id: Optional[int] = None,
        db: Optional[Session] = None
    ) -> List[models.HistoryEntry]:
        """Dose events with start <= timestamp <= end (both inclusive)"""
        start_ms = to_epoch_millis(start)
        end_ms = to_epoch_millis(end)

        def _query(session: Session) -> List[models.HistoryEntry]:
            query = session.query(models.HistoryEntry).filter(
                models.HistoryEntry.timestamp >= start_ms,
                models.HistoryEntry.timestamp <= end_ms
            )
            if medication_id is not None:
                query = query.filter(models.HistoryEntry.medication_id == medication_id)
            return query.all()

        if db:
            return _query(db)

        with get_db_context() as session:
            return _query(session)


def day_bounds(target: datetime) -> tuple:
    """Local start (00:00:00.000) and end (23:59:59.999) of target's day"""
    start = target.replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=1) - timedelta(milliseconds=1)
    return start, end


# Singleton instance
history_service = HistoryService()
