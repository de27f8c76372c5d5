"""
Adherence Schemas
Pydantic models for dose logging and adherence statistics
"""

from typing import Optional, List, Dict
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict, computed_field

from models import DoseAction


# ==================== REQUEST SCHEMAS ====================

class DoseLog(BaseModel):
    """Schema for logging a taken, skipped or missed dose"""
    medication_id: int
    notes: Optional[str] = Field(None, max_length=500)
    logged_at: Optional[datetime] = None


class NotificationResponse(BaseModel):
    """User response delivered by the notification subsystem"""
    medication_id: int
    action: DoseAction


# ==================== RESPONSE SCHEMAS ====================

class HistoryEntryResponse(BaseModel):
    """Schema for a dose event"""
    id: int
    medication_id: int
    timestamp: int
    taken: bool
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def logged_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000)


class DoseTakenResponse(BaseModel):
    """Dose event plus the medication's remaining supply"""
    entry: HistoryEntryResponse
    supply: int
    low_supply: bool


class HistoryList(BaseModel):
    """Dose events, newest first"""
    entries: List[HistoryEntryResponse]
    total: int


class AdherenceRate(BaseModel):
    """Adherence percentage over a window"""
    adherence_rate: float = Field(..., ge=0, le=100)
    days: Optional[int] = None
    date: Optional[str] = None
    medication_id: Optional[int] = None


class AdherenceStreak(BaseModel):
    """Current streak in days"""
    current_streak: int
    medication_id: Optional[int] = None


class AdherenceReportResponse(BaseModel):
    """Adherence report over a window"""
    adherence_rate: int = Field(..., ge=0, le=100)
    streak: int
    missed_doses: int
    total_doses: int
    days: int
    medication_id: Optional[int] = None


class TimeOfDayResponse(BaseModel):
    """Taken doses per time-of-day bucket"""
    morning: int
    afternoon: int
    evening: int
    night: int
    medication_id: Optional[int] = None


class WeeklyStatsResponse(BaseModel):
    """Taken doses per weekday over the last 7 days"""
    stats: Dict[str, int]
    medication_id: Optional[int] = None


class DailyTrendPoint(BaseModel):
    """Single day in an adherence trend"""
    date: str
    taken: int
    total: int
    adherence_rate: float


class DailyTrendList(BaseModel):
    """Per-day adherence trend"""
    days: int
    trend: List[DailyTrendPoint]
