"""
Dispatch notifications (team assignment and reporter update emails).

Senders never raise; they return a NotificationResult.
"""

from app.services.notifications.base import NotificationResult, NotificationSender
from app.services.notifications.log_provider import LogNotificationSender
from app.services.notifications.smtp_provider import SmtpNotificationSender
from app.services.notifications.registry import get_notification_sender

__all__ = [
    "LogNotificationSender",
    "NotificationResult",
    "NotificationSender",
    "SmtpNotificationSender",
    "get_notification_sender",
]
