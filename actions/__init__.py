"""
Actions Module
Reminder scheduling for medications and low-supply alerts
"""

from .reminder_scheduler import (
    ReminderScheduler,
    SchedulingResult,
    compute_first_fire,
    trigger_for,
    reminder_scheduler
)


__all__ = [
    "ReminderScheduler",
    "SchedulingResult",
    "compute_first_fire",
    "trigger_for",
    "reminder_scheduler"
]
