"""
Database Models
SQLAlchemy ORM models for PillPal
"""

from sqlalchemy import Column, Integer, BigInteger, String, Boolean, DateTime, Text, Index, CheckConstraint
from datetime import datetime
from enum import Enum as PyEnum

from config import TableNames
from database import Base


# ==================== ENUMS ====================

class DoseAction(str, PyEnum):
    """User responses to a dose reminder"""
    TAKE = "TAKE"
    SKIP = "SKIP"
    SNOOZE = "SNOOZE"


class TimeOfDay(str, PyEnum):
    """Time-of-day buckets for taken doses"""
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


# ==================== MODELS ====================

class Medication(Base):
    """Medication record with daily reminder time and remaining supply"""
    __tablename__ = TableNames.MEDICATIONS

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(255), nullable=False)
    dosage = Column(String(100), nullable=False)  # e.g., "500mg"
    frequency = Column(String(100), default="")  # free text, "once daily"
    instructions = Column(Text, default="")

    # Only hour/minute drive the recurring reminder
    scheduled_time = Column(DateTime, nullable=False)

    # Supply tracking
    supply = Column(Integer, nullable=False, default=0)
    low_supply_threshold = Column(Integer, nullable=False, default=0)

    # Trigger handles from the notification subsystem
    reminder_handle = Column(String(64))
    low_supply_handle = Column(String(64))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("supply >= 0", name="ck_medications_supply_non_negative"),
    )

    @property
    def is_low_supply(self) -> bool:
        return self.supply <= self.low_supply_threshold


class HistoryEntry(Base):
    """Dose event: one taken or missed dose. Append-only."""
    __tablename__ = TableNames.HISTORY_ENTRIES

    id = Column(Integer, primary_key=True, index=True)
    # Reference only; history outlives deleted medications
    medication_id = Column(Integer, nullable=False, index=True)

    timestamp = Column(BigInteger, nullable=False)  # epoch millis
    taken = Column(Boolean, nullable=False, default=False)
    notes = Column(Text)

    __table_args__ = (
        Index("ix_history_medication_timestamp", "medication_id", "timestamp"),
        Index("ix_history_timestamp", "timestamp"),
    )


class Achievement(Base):
    """Achievement progress, one row per catalog entry"""
    __tablename__ = TableNames.ACHIEVEMENTS

    id = Column(String(64), primary_key=True)  # slug, e.g. "perfect_week"

    # Display metadata
    name = Column(String(100), nullable=False)
    description = Column(Text, default="")
    icon = Column(String(64), default="")

    progress = Column(Integer, nullable=False, default=0)
    target = Column(Integer, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
