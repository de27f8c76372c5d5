"""
Tools Package
Notification subsystem used by the reminder scheduler
"""

from .notification_service import (
    LocalNotificationService,
    NotificationRegistrationError,
    NotificationRequest,
    NotificationType,
    ScheduledNotification,
    DailyTrigger,
    notification_service
)

__all__ = [
    "LocalNotificationService",
    "NotificationRegistrationError",
    "NotificationRequest",
    "NotificationType",
    "ScheduledNotification",
    "DailyTrigger",
    "notification_service"
]
