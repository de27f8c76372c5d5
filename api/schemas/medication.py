"""
Medication Schemas
Pydantic models for medication-related API requests and responses
"""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict


# ==================== BASE SCHEMAS ====================

class MedicationBase(BaseModel):
    """Base medication schema"""
    name: str = Field(..., min_length=1, max_length=255)
    dosage: str = Field(..., min_length=1, max_length=100)
    frequency: str = Field(default="", max_length=100)
    instructions: str = ""


# ==================== REQUEST SCHEMAS ====================

class MedicationCreate(MedicationBase):
    """Schema for creating a new medication"""
    scheduled_time: datetime
    supply: int = Field(default=0, ge=0)
    low_supply_threshold: int = Field(default=0, ge=0)


class MedicationUpdate(BaseModel):
    """Schema for updating medication"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    dosage: Optional[str] = Field(None, min_length=1, max_length=100)
    frequency: Optional[str] = Field(None, max_length=100)
    instructions: Optional[str] = None
    scheduled_time: Optional[datetime] = None
    low_supply_threshold: Optional[int] = Field(None, ge=0)


class SupplyUpdate(BaseModel):
    """Schema for setting remaining supply"""
    supply: int = Field(..., ge=0)


# ==================== RESPONSE SCHEMAS ====================

class MedicationResponse(MedicationBase):
    """Schema for medication response"""
    id: int
    scheduled_time: datetime
    supply: int
    low_supply_threshold: int
    is_low_supply: bool
    reminder_handle: Optional[str] = None
    low_supply_handle: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MedicationList(BaseModel):
    """List of medications"""
    medications: List[MedicationResponse]
    total: int
    low_supply_count: int
