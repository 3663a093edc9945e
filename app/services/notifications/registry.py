"""
Notification Sender Registry.

Selects the SMTP sender when EMAIL_HOST, EMAIL_USER and EMAIL_PASS are all
set; otherwise logs notifications instead of sending them.
"""

from typing import Optional
import logging

from app.services.notifications.base import NotificationSender
from app.services.notifications.log_provider import LogNotificationSender
from app.services.notifications.smtp_provider import SmtpNotificationSender

logger = logging.getLogger(__name__)

_sender: Optional[NotificationSender] = None


def get_notification_sender() -> NotificationSender:
    """
    Get or create the global notification sender.

    Returns:
        NotificationSender: SMTP sender if configured, else log-only sender
    """
    global _sender
    if _sender is not None:
        return _sender

    smtp = SmtpNotificationSender()
    if smtp.is_configured():
        _sender = smtp
        logger.info("✅ SMTP notification sender registered")
    else:
        _sender = LogNotificationSender()
        logger.warning("⚠️ Email configuration is incomplete, notifications will be logged only")
    return _sender
