"""
Notification Service Tool
Local registry of daily-repeating notifications and user responses
"""

import logging
import uuid
from typing import Dict, List, Optional, Any, Callable, Awaitable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    """Types of scheduled notifications"""
    MEDICATION_REMINDER = "medication_reminder"
    LOW_SUPPLY_ALERT = "low_supply_alert"


class NotificationRegistrationError(Exception):
    """Raised when the notification subsystem rejects a registration"""


@dataclass(frozen=True)
class DailyTrigger:
    """Fires every day at hour:minute local time"""
    hour: int
    minute: int

    def __post_init__(self):
        if not 0 <= self.hour <= 23 or not 0 <= self.minute <= 59:
            raise ValueError(f"Invalid trigger time {self.hour}:{self.minute}")

    def to_dict(self) -> Dict[str, int]:
        return {"hour": self.hour, "minute": self.minute}


@dataclass
class NotificationRequest:
    """Notification registration request"""
    title: str
    body: str
    daily_trigger: DailyTrigger
    payload: Dict[str, Any] = field(default_factory=dict)
    notification_type: NotificationType = NotificationType.MEDICATION_REMINDER


@dataclass
class ScheduledNotification:
    """A registered recurring notification"""
    handle: str
    request: NotificationRequest
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "handle": self.handle,
            "title": self.request.title,
            "body": self.request.body,
            "payload": self.request.payload,
            "daily_trigger": self.request.daily_trigger.to_dict(),
            "notification_type": self.request.notification_type.value,
            "created_at": self.created_at.isoformat()
        }

    def is_due(self, current_time: datetime) -> bool:
        """True during the minute the trigger fires"""
        trigger = self.request.daily_trigger
        return current_time.hour == trigger.hour and current_time.minute == trigger.minute


ResponseHandler = Callable[[int, str], Awaitable[Any]]


class LocalNotificationService:
    """
    In-process notification subsystem.

    Stores daily triggers keyed by an opaque handle and routes user
    responses ({medication_id, action}) to a registered handler.
    """

    def __init__(self):
        self._scheduled: Dict[str, ScheduledNotification] = {}
        self._response_handler: Optional[ResponseHandler] = None

    def _generate_handle(self) -> str:
        return str(uuid.uuid4())

    async def schedule_notification(self, request: NotificationRequest) -> str:
        """
        Register a daily-repeating notification

        Returns:
            Opaque handle identifying the trigger
        """
        handle = self._generate_handle()
        self._scheduled[handle] = ScheduledNotification(handle=handle, request=request)
        logger.info(
            f"Scheduled {request.notification_type.value} {handle} daily at "
            f"{request.daily_trigger.hour:02d}:{request.daily_trigger.minute:02d}"
        )
        return handle

    async def cancel_notification(self, handle: str) -> bool:
        """Cancel a trigger; returns False when the handle is unknown"""
        if self._scheduled.pop(handle, None) is None:
            return False
        logger.info(f"Cancelled notification {handle}")
        return True

    def get_notification(self, handle: str) -> Optional[ScheduledNotification]:
        return self._scheduled.get(handle)

    async def get_scheduled_notifications(
        self,
        notification_type: Optional[NotificationType] = None
    ) -> List[ScheduledNotification]:
        """All registered notifications, optionally filtered by type"""
        scheduled = list(self._scheduled.values())
        if notification_type:
            scheduled = [n for n in scheduled if n.request.notification_type == notification_type]
        return scheduled

    def get_due_notifications(self, current_time: Optional[datetime] = None) -> List[ScheduledNotification]:
        now = current_time or datetime.now()
        return [n for n in self._scheduled.values() if n.is_due(now)]

    def register_response_handler(self, handler: ResponseHandler):
        """Register the coroutine called when the user responds to a notification"""
        self._response_handler = handler
        logger.info("Registered notification response handler")

    async def dispatch_response(self, medication_id: int, action: str) -> Any:
        """Deliver a user response to the registered handler"""
        if self._response_handler is None:
            logger.warning(f"No response handler for action {action} on medication {medication_id}")
            return None
        return await self._response_handler(medication_id, action)


# Singleton instance
notification_service = LocalNotificationService()
