"""
Adherence Service
Adherence rates, streaks, missed doses and time-of-day statistics computed
from the dose event log
"""

import logging
import math
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Any, Iterable
from datetime import datetime, date, timedelta
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

import models
from models import TimeOfDay
from config import adherence_config
from services.history_service import (
    HistoryService,
    history_service,
    from_epoch_millis,
    now_millis,
    day_bounds,
    MILLIS_PER_DAY,
)


logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


@dataclass
class AdherenceReport:
    """Adherence summary over a day window"""
    adherence_rate: int
    streak: int
    missed_doses: int
    total_doses: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TimeOfDayStats:
    """Taken-dose counts per time-of-day bucket"""
    morning: int = 0
    afternoon: int = 0
    evening: int = 0
    night: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def round_half_up(value: float) -> int:
    """Round to nearest integer, .5 rounds up (66.67 -> 67, 50.5 -> 51)"""
    return int(math.floor(value + 0.5))


def rate_of(entries: Iterable[models.HistoryEntry]) -> float:
    """Percentage of taken entries; 0.0 when there are none"""
    entries = list(entries)
    if not entries:
        return 0.0
    taken = sum(1 for e in entries if e.taken)
    return (taken / len(entries)) * 100


def bucket_for_hour(hour: int) -> TimeOfDay:
    """Map an hour of day to its bucket: [6,12) [12,18) [18,24) [0,6)"""
    if adherence_config.MORNING_START_HOUR <= hour < adherence_config.AFTERNOON_START_HOUR:
        return TimeOfDay.MORNING
    if adherence_config.AFTERNOON_START_HOUR <= hour < adherence_config.EVENING_START_HOUR:
        return TimeOfDay.AFTERNOON
    if hour >= adherence_config.EVENING_START_HOUR:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def streak_from_days(taken_days: Iterable[date], today: date) -> int:
    """
    Count consecutive calendar days ending today that hold a taken dose.

    Returns 0 when today has no taken dose. Several doses on one day count
    as a single day.
    """
    days = set(taken_days)
    if today not in days:
        return 0

    streak = 0
    current = today
    while current in days:
        streak += 1
        current -= timedelta(days=1)
    return streak


class AdherenceService:
    """
    Service for adherence statistics.

    Every method here is a read: storage failures are logged and a safe
    default is returned instead of raising. All methods take an optional
    medication_id so the same figures serve one medication or the whole
    account.
    """

    def __init__(self, history: Optional[HistoryService] = None):
        self.history = history or history_service

    async def _window_entries(
        self,
        days: int,
        medication_id: Optional[int],
        now: Optional[datetime],
        db: Optional[Session]
    ) -> List[models.HistoryEntry]:
        since = now_millis(now) - days * MILLIS_PER_DAY
        return await self.history.query_by_time_window(
            since, medication_id=medication_id, db=db
        )

    async def _all_entries(
        self,
        medication_id: Optional[int],
        db: Optional[Session]
    ) -> List[models.HistoryEntry]:
        if medication_id is not None:
            return await self.history.query_by_medication(medication_id, db=db)
        return await self.history.query_all(db=db)

    async def calculate_daily_adherence(
        self,
        target_date: Optional[date] = None,
        medication_id: Optional[int] = None,
        db: Optional[Session] = None
    ) -> float:
        """
        Adherence percentage for one local calendar day

        Args:
            target_date: Day to evaluate, defaults to today
            medication_id: Optional specific medication
            db: Database session

        Returns:
            Percentage in [0, 100]; 0 when the day has no entries
        """
        target = target_date or date.today()
        start, end = day_bounds(datetime.combine(target, datetime.min.time()))
        try:
            entries = await self.history.query_between(
                start, end, medication_id=medication_id, db=db
            )
            return rate_of(entries)
        except SQLAlchemyError as e:
            logger.error(f"Error calculating daily adherence: {e}")
            return 0.0

    async def calculate_windowed_adherence(
        self,
        days: int,
        medication_id: Optional[int] = None,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> float:
        """
        Adherence percentage over entries with timestamp >= now - days

        Returns:
            Percentage in [0, 100]; 0 when the window has no entries
        """
        try:
            entries = await self._window_entries(days, medication_id, now, db)
            return rate_of(entries)
        except SQLAlchemyError as e:
            logger.error(f"Error calculating {days}-day adherence: {e}")
            return 0.0

    async def calculate_weekly_adherence(
        self,
        medication_id: Optional[int] = None,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> float:
        return await self.calculate_windowed_adherence(
            adherence_config.WEEKLY_WINDOW_DAYS, medication_id, now, db
        )

    async def calculate_monthly_adherence(
        self,
        medication_id: Optional[int] = None,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> float:
        return await self.calculate_windowed_adherence(
            adherence_config.MONTHLY_WINDOW_DAYS, medication_id, now, db
        )

    async def get_missed_doses(
        self,
        days: int = adherence_config.DEFAULT_MISSED_DOSE_DAYS,
        medication_id: Optional[int] = None,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> List[models.HistoryEntry]:
        """Entries with taken == False inside the window, newest first"""
        try:
            entries = await self._window_entries(days, medication_id, now, db)
        except SQLAlchemyError as e:
            logger.error(f"Error getting missed doses: {e}")
            return []

        missed = [e for e in entries if not e.taken]
        missed.sort(key=lambda e: e.timestamp, reverse=True)
        return missed

    async def count_missed_doses(
        self,
        days: int = adherence_config.DEFAULT_REPORT_DAYS,
        medication_id: Optional[int] = None,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> int:
        missed = await self.get_missed_doses(days, medication_id, now, db)
        return len(missed)

    async def get_current_streak(
        self,
        medication_id: Optional[int] = None,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> int:
        """
        Consecutive calendar days, ending today, with at least one taken dose

        Returns 0 when the most recent taken dose is not from today.
        """
        try:
            entries = await self._all_entries(medication_id, db)
        except SQLAlchemyError as e:
            logger.error(f"Error calculating streak: {e}")
            return 0

        today = (now or datetime.now()).date()
        taken_days = (from_epoch_millis(e.timestamp).date() for e in entries if e.taken)
        return streak_from_days(taken_days, today)

    async def generate_adherence_report(
        self,
        days: int = adherence_config.DEFAULT_REPORT_DAYS,
        medication_id: Optional[int] = None,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> AdherenceReport:
        """
        Adherence report for the last `days` days

        The rate is rounded to the nearest integer here and nowhere else.
        """
        try:
            entries = await self._window_entries(days, medication_id, now, db)
        except SQLAlchemyError as e:
            logger.error(f"Error generating adherence report: {e}")
            return AdherenceReport(adherence_rate=0, streak=0, missed_doses=0, total_doses=0)

        streak = await self.get_current_streak(medication_id, now, db)

        return AdherenceReport(
            adherence_rate=round_half_up(rate_of(entries)),
            streak=streak,
            missed_doses=sum(1 for e in entries if not e.taken),
            total_doses=len(entries)
        )

    async def get_time_of_day_stats(
        self,
        medication_id: Optional[int] = None,
        db: Optional[Session] = None
    ) -> TimeOfDayStats:
        """
        Taken doses per time-of-day bucket

        Missed entries are left out of this breakdown.
        """
        stats = TimeOfDayStats()
        try:
            entries = await self._all_entries(medication_id, db)
        except SQLAlchemyError as e:
            logger.error(f"Error calculating time of day stats: {e}")
            return stats

        for entry in entries:
            if not entry.taken:
                continue
            bucket = bucket_for_hour(from_epoch_millis(entry.timestamp).hour)
            setattr(stats, bucket.value, getattr(stats, bucket.value) + 1)

        return stats

    async def get_weekly_adherence_stats(
        self,
        medication_id: Optional[int] = None,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> Dict[str, int]:
        """Taken doses per weekday name over the last 7 days"""
        stats = {name: 0 for name in WEEKDAY_NAMES}
        try:
            entries = await self._window_entries(
                adherence_config.WEEKLY_WINDOW_DAYS, medication_id, now, db
            )
        except SQLAlchemyError as e:
            logger.error(f"Error calculating weekly adherence stats: {e}")
            return stats

        for entry in entries:
            if entry.taken:
                weekday = from_epoch_millis(entry.timestamp).weekday()
                stats[WEEKDAY_NAMES[weekday]] += 1

        return stats

    async def get_daily_trend(
        self,
        days: int = 7,
        medication_id: Optional[int] = None,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> List[Dict[str, Any]]:
        """Per-day totals for the last `days` calendar days, oldest first"""
        today = (now or datetime.now()).date()
        first_day = today - timedelta(days=days - 1)
        start, _ = day_bounds(datetime.combine(first_day, datetime.min.time()))
        _, end = day_bounds(datetime.combine(today, datetime.min.time()))

        try:
            entries = await self.history.query_between(
                start, end, medication_id=medication_id, db=db
            )
        except SQLAlchemyError as e:
            logger.error(f"Error calculating daily trend: {e}")
            entries = []

        by_day: Dict[date, List[models.HistoryEntry]] = {}
        for entry in entries:
            by_day.setdefault(from_epoch_millis(entry.timestamp).date(), []).append(entry)

        trend = []
        for offset in range(days):
            day = first_day + timedelta(days=offset)
            day_entries = by_day.get(day, [])
            trend.append({
                "date": day.isoformat(),
                "taken": sum(1 for e in day_entries if e.taken),
                "total": len(day_entries),
                "adherence_rate": round(rate_of(day_entries), 1)
            })
        return trend


# Singleton instance
adherence_service = AdherenceService()
