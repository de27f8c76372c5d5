"""
Reminder Scheduler
Derives daily reminder triggers from medication schedules and registers
them, plus low-supply alerts, with the notification subsystem
"""

import asyncio
import logging
from typing import Dict, Any, Optional, Callable, Awaitable
from dataclasses import dataclass
from datetime import datetime, timedelta

from config import settings
from tools.notification_service import (
    LocalNotificationService,
    NotificationRegistrationError,
    NotificationRequest,
    NotificationType,
    DailyTrigger,
    notification_service,
)


logger = logging.getLogger(__name__)


@dataclass
class SchedulingResult:
    """Outcome of registering a trigger"""
    success: bool
    handle: Optional[str] = None
    next_fire_at: Optional[datetime] = None
    attempts: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "handle": self.handle,
            "next_fire_at": self.next_fire_at.isoformat() if self.next_fire_at else None,
            "attempts": self.attempts,
            "error": self.error
        }


def compute_first_fire(hour: int, minute: int, now: Optional[datetime] = None) -> datetime:
    """
    First fire time for a daily hour:minute trigger

    Today at hour:minute if that is still ahead of now, otherwise the same
    hour:minute on the next calendar day.
    """
    now = now or datetime.now()
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def trigger_for(scheduled_time: datetime) -> DailyTrigger:
    """Daily trigger projected from a medication's scheduled time"""
    return DailyTrigger(hour=scheduled_time.hour, minute=scheduled_time.minute)


class ReminderScheduler:
    """
    Registers daily medication reminders and low-supply alerts.

    Responsibilities:
    - Project a medication's scheduled time onto a daily trigger
    - Replace triggers on edit (cancel, then register with full content)
    - Keep at most one low-supply alert per medication
    - Retry transient registration failures with exponential backoff
    """

    def __init__(
        self,
        notifications: Optional[LocalNotificationService] = None,
        max_retries: Optional[int] = None,
        base_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.notifications = notifications or notification_service
        self.max_retries = settings.REMINDER_MAX_RETRIES if max_retries is None else max_retries
        self.base_delay = settings.REMINDER_RETRY_BASE_DELAY if base_delay is None else base_delay
        self._sleep = sleep
        self._low_supply_handles: Dict[int, str] = {}

    def build_reminder_request(self, medication) -> NotificationRequest:
        """Reminder content for a medication"""
        body = medication.dosage
        if medication.instructions:
            body = f"{medication.dosage} - {medication.instructions}"
        return NotificationRequest(
            title=f"Time to take {medication.name}",
            body=body,
            daily_trigger=trigger_for(medication.scheduled_time),
            payload={"medicationId": medication.id, "type": NotificationType.MEDICATION_REMINDER.value},
            notification_type=NotificationType.MEDICATION_REMINDER
        )

    def build_low_supply_request(self, medication) -> NotificationRequest:
        """Low-supply alert content for a medication"""
        return NotificationRequest(
            title=f"Low supply: {medication.name}",
            body=f"Only {medication.supply} doses of {medication.name} left. Time to refill.",
            daily_trigger=DailyTrigger(
                hour=settings.LOW_SUPPLY_ALERT_HOUR,
                minute=settings.LOW_SUPPLY_ALERT_MINUTE
            ),
            payload={"medicationId": medication.id, "type": NotificationType.LOW_SUPPLY_ALERT.value},
            notification_type=NotificationType.LOW_SUPPLY_ALERT
        )

    async def _register(self, request: NotificationRequest, now: Optional[datetime]) -> SchedulingResult:
        attempts = 0
        last_error = None

        while attempts <= self.max_retries:
            attempts += 1
            try:
                handle = await self.notifications.schedule_notification(request)
                trigger = request.daily_trigger
                return SchedulingResult(
                    success=True,
                    handle=handle,
                    next_fire_at=compute_first_fire(trigger.hour, trigger.minute, now),
                    attempts=attempts
                )
            except NotificationRegistrationError as e:
                last_error = str(e)
                if attempts > self.max_retries:
                    break
                delay = self.base_delay * (2 ** (attempts - 1))
                logger.warning(
                    f"Registration of '{request.title}' rejected (attempt {attempts}): {e}; "
                    f"retrying in {delay:.2f}s"
                )
                await self._sleep(delay)

        logger.error(f"Giving up on '{request.title}' after {attempts} attempts: {last_error}")
        return SchedulingResult(success=False, attempts=attempts, error=last_error)

    async def schedule(self, medication, now: Optional[datetime] = None) -> SchedulingResult:
        """Register a daily reminder at the medication's hour:minute"""
        result = await self._register(self.build_reminder_request(medication), now)
        if result.success:
            logger.info(
                f"Reminder for medication {medication.id} first fires at {result.next_fire_at}"
            )
        return result

    async def reschedule(
        self,
        handle: Optional[str],
        medication,
        now: Optional[datetime] = None
    ) -> SchedulingResult:
        """Replace an existing reminder with one rebuilt from the medication"""
        await self.cancel(handle)
        return await self.schedule(medication, now)

    async def cancel(self, handle: Optional[str]) -> None:
        """Cancel a trigger. Unknown or empty handles are ignored."""
        if not handle:
            return
        try:
            cancelled = await self.notifications.cancel_notification(handle)
        except NotificationRegistrationError as e:
            logger.warning(f"Could not cancel notification {handle}: {e}")
            return
        if not cancelled:
            logger.debug(f"Notification {handle} was not scheduled")

    async def schedule_low_supply_alert(
        self,
        medication,
        now: Optional[datetime] = None
    ) -> SchedulingResult:
        """
        Register the daily low-supply alert for a medication

        Any alert already registered for the medication is replaced, so
        repeated calls while supply stays low leave exactly one trigger.
        """
        existing = self._low_supply_handles.pop(medication.id, None)
        await self.cancel(existing)
        if medication.low_supply_handle and medication.low_supply_handle != existing:
            await self.cancel(medication.low_supply_handle)

        result = await self._register(self.build_low_supply_request(medication), now)
        if result.success:
            self._low_supply_handles[medication.id] = result.handle
            logger.info(
                f"Low-supply alert armed for medication {medication.id} "
                f"(supply {medication.supply} <= {medication.low_supply_threshold})"
            )
        return result

    async def cancel_low_supply_alert(self, medication_id: int, handle: Optional[str] = None) -> None:
        """Cancel the low-supply alert for a medication, if any"""
        existing = self._low_supply_handles.pop(medication_id, None)
        await self.cancel(existing)
        if handle and handle != existing:
            await self.cancel(handle)

    def get_low_supply_handle(self, medication_id: int) -> Optional[str]:
        return self._low_supply_handles.get(medication_id)


# Singleton instance
reminder_scheduler = ReminderScheduler()
