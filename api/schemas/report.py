"""
Report Schemas
Pydantic models for dashboards and achievements
"""

from typing import Optional, List, Dict
from pydantic import BaseModel, Field, ConfigDict


class DashboardResponse(BaseModel):
    """Weekly vs monthly adherence comparison"""
    weekly_rate: float = Field(..., ge=0, le=100)
    monthly_rate: float = Field(..., ge=0, le=100)
    streak: int
    total_doses: int
    missed_doses: int
    medication_id: Optional[int] = None
    medication_name: Optional[str] = None


class MedicationBreakdownResponse(BaseModel):
    """Dashboard with time-of-day and weekday stats for one medication"""
    dashboard: DashboardResponse
    time_of_day: Dict[str, int]
    weekly_stats: Dict[str, int]
    supply: int
    low_supply: bool


class DashboardList(BaseModel):
    """Per-medication dashboards"""
    dashboards: List[DashboardResponse]
    total: int


# ==================== ACHIEVEMENTS ====================

class AchievementResponse(BaseModel):
    """Achievement with progress"""
    id: str
    name: str
    description: str
    icon: str
    progress: int
    target: int
    completed: bool

    model_config = ConfigDict(from_attributes=True)


class AchievementList(BaseModel):
    """All achievements"""
    achievements: List[AchievementResponse]
    completed_count: int


class ProgressUpdate(BaseModel):
    """Schema for updating achievement progress"""
    progress: int = Field(..., ge=0)
