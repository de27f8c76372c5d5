"""
Adherence API Router
Endpoints for dose logging and adherence statistics
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from api.deps import get_db, services
from api.schemas.adherence import (
    DoseLog,
    NotificationResponse,
    HistoryEntryResponse,
    DoseTakenResponse,
    HistoryList,
    AdherenceRate,
    AdherenceStreak,
    AdherenceReportResponse,
    TimeOfDayResponse,
    WeeklyStatsResponse,
    DailyTrendList,
)


router = APIRouter(prefix="/adherence", tags=["adherence"])


def _not_found(medication_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Medication {medication_id} not found"
    )


# ==================== DOSE LOGGING ====================

@router.post("/dose/taken", response_model=DoseTakenResponse, status_code=status.HTTP_201_CREATED)
async def log_dose_taken(dose_data: DoseLog, db: Session = Depends(get_db)):
    """
    Log a taken dose

    The dose event is stored first, then supply is decremented and the
    low-supply alert re-evaluated.
    """
    dose_service = services.get_dose_service()

    result = await dose_service.take_dose(
        dose_data.medication_id,
        notes=dose_data.notes,
        taken_at=dose_data.logged_at,
        db=db
    )
    if result is None:
        raise _not_found(dose_data.medication_id)

    entry, medication = result
    return DoseTakenResponse(
        entry=HistoryEntryResponse.model_validate(entry),
        supply=medication.supply,
        low_supply=medication.is_low_supply
    )


@router.post("/dose/skipped", response_model=HistoryEntryResponse, status_code=status.HTTP_201_CREATED)
async def log_dose_skipped(dose_data: DoseLog, db: Session = Depends(get_db)):
    """Log a dose the user chose not to take"""
    dose_service = services.get_dose_service()

    entry = await dose_service.skip_dose(
        dose_data.medication_id,
        notes=dose_data.notes,
        skipped_at=dose_data.logged_at,
        db=db
    )
    if entry is None:
        raise _not_found(dose_data.medication_id)
    return entry


@router.post("/dose/missed", response_model=HistoryEntryResponse, status_code=status.HTTP_201_CREATED)
async def log_dose_missed(dose_data: DoseLog, db: Session = Depends(get_db)):
    """Log a missed dose"""
    dose_service = services.get_dose_service()

    entry = await dose_service.record_missed_dose(
        dose_data.medication_id,
        missed_at=dose_data.logged_at,
        db=db
    )
    if entry is None:
        raise _not_found(dose_data.medication_id)
    return entry


@router.post("/notification-response", response_model=Optional[HistoryEntryResponse])
async def notification_response(response: NotificationResponse, db: Session = Depends(get_db)):
    """Handle a reminder response; TAKE and SKIP log a dose, SNOOZE does not"""
    dose_service = services.get_dose_service()

    return await dose_service.handle_notification_response(
        response.medication_id, response.action.value, db=db
    )


@router.get("/history", response_model=HistoryList)
async def get_history(
    days: int = Query(default=7, ge=1, le=365),
    medication_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Dose events from the last N days, newest first"""
    history_service = services.get_history_service()

    entries = await history_service.query_recent(days, db=db)
    if medication_id is not None:
        entries = [e for e in entries if e.medication_id == medication_id]
    return HistoryList(
        entries=[HistoryEntryResponse.model_validate(e) for e in entries],
        total=len(entries)
    )


# ==================== STATISTICS ====================

@router.get("/daily", response_model=AdherenceRate)
async def get_daily_adherence(
    target_date: Optional[date] = None,
    medication_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Adherence for one calendar day (defaults to today)"""
    adherence_service = services.get_adherence_service()

    target = target_date or date.today()
    rate = await adherence_service.calculate_daily_adherence(target, medication_id, db=db)
    return AdherenceRate(adherence_rate=rate, date=target.isoformat(), medication_id=medication_id)


@router.get("/rate", response_model=AdherenceRate)
async def get_adherence_rate(
    days: int = Query(default=7, ge=1, le=365),
    medication_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Adherence over the last N days"""
    adherence_service = services.get_adherence_service()

    rate = await adherence_service.calculate_windowed_adherence(days, medication_id, db=db)
    return AdherenceRate(adherence_rate=rate, days=days, medication_id=medication_id)


@router.get("/streak", response_model=AdherenceStreak)
async def get_streak(medication_id: Optional[int] = None, db: Session = Depends(get_db)):
    """Consecutive days ending today with a taken dose"""
    adherence_service = services.get_adherence_service()

    streak = await adherence_service.get_current_streak(medication_id, db=db)
    return AdherenceStreak(current_streak=streak, medication_id=medication_id)


@router.get("/missed", response_model=HistoryList)
async def get_missed_doses(
    days: int = Query(default=7, ge=1, le=365),
    medication_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Missed doses in the last N days"""
    adherence_service = services.get_adherence_service()

    missed = await adherence_service.get_missed_doses(days, medication_id, db=db)
    return HistoryList(
        entries=[HistoryEntryResponse.model_validate(e) for e in missed],
        total=len(missed)
    )


@router.get("/report", response_model=AdherenceReportResponse)
async def get_adherence_report(
    days: int = Query(default=30, ge=1, le=365),
    medication_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Rounded adherence rate, streak and dose counts over N days"""
    adherence_service = services.get_adherence_service()

    report = await adherence_service.generate_adherence_report(days, medication_id, db=db)
    return AdherenceReportResponse(**report.to_dict(), days=days, medication_id=medication_id)


@router.get("/time-of-day", response_model=TimeOfDayResponse)
async def get_time_of_day_stats(medication_id: Optional[int] = None, db: Session = Depends(get_db)):
    """Taken doses by morning / afternoon / evening / night"""
    adherence_service = services.get_adherence_service()

    stats = await adherence_service.get_time_of_day_stats(medication_id, db=db)
    return TimeOfDayResponse(**stats.to_dict(), medication_id=medication_id)


@router.get("/weekly-stats", response_model=WeeklyStatsResponse)
async def get_weekly_stats(medication_id: Optional[int] = None, db: Session = Depends(get_db)):
    """Taken doses per weekday over the last 7 days"""
    adherence_service = services.get_adherence_service()

    stats = await adherence_service.get_weekly_adherence_stats(medication_id, db=db)
    return WeeklyStatsResponse(stats=stats, medication_id=medication_id)


@router.get("/trend", response_model=DailyTrendList)
async def get_daily_trend(
    days: int = Query(default=7, ge=1, le=90),
    medication_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Per-day adherence for the last N days"""
    adherence_service = services.get_adherence_service()

    trend = await adherence_service.get_daily_trend(days, medication_id, db=db)
    return DailyTrendList(days=days, trend=trend)
