"""
SMTP notification sender.

smtplib is blocking, so sends run in the default executor. On
authentication or connection failures the sender disables itself and
falls back to log-only delivery for the rest of the process lifetime.
"""

import asyncio
import logging
import smtplib
import uuid
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional, Sequence

from app.core.settings import settings
from app.models.incident import Incident
from app.models.team import AssignmentRecord, Team
from app.services.notifications.base import NotificationResult, NotificationSender
from app.services.notifications.log_provider import LogNotificationSender
from app.services.notifications.messages import reporter_update_message, team_assignment_message

logger = logging.getLogger(__name__)

# Failures that mean the transport itself is unusable, not just this message
TRANSPORT_FAILURES = (smtplib.SMTPAuthenticationError, smtplib.SMTPConnectError, ConnectionError, TimeoutError)


class SmtpNotificationSender(NotificationSender):

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        secure: Optional[bool] = None,
    ):
        self.host = host or settings.EMAIL_HOST
        self.port = port or settings.EMAIL_PORT
        self.user = user or settings.EMAIL_USER
        self.password = password or settings.EMAIL_PASS
        self.secure = settings.EMAIL_SECURE if secure is None else secure
        self.sender = settings.EMAIL_FROM
        self.available = True
        self._fallback = LogNotificationSender()

    def is_configured(self) -> bool:
        return bool(self.host and self.user and self.password)

    def _build_message(self, recipients: List[str], subject: str, text: str, html: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = ", ".join(recipients)
        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html, "html"))
        return msg

    def _smtp_send(self, msg: MIMEMultipart) -> None:
        """Blocking SMTP send (called via executor)."""
        timeout = settings.EMAIL_TIMEOUT_SECONDS
        if self.secure:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=timeout)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=timeout)
        with server:
            if not self.secure:
                server.starttls()
            server.login(self.user, self.password)
            server.send_message(msg)

    async def _send(self, recipients: List[str], subject: str, text: str, html: str) -> NotificationResult:
        message_id = str(uuid.uuid4())
        try:
            msg = self._build_message(recipients, subject, text, html)
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, lambda: self._smtp_send(msg))
            logger.info(f"Email {message_id} sent to {', '.join(recipients)}")
            return NotificationResult(success=True, message_id=message_id, recipients=recipients)
        except TRANSPORT_FAILURES as e:
            self.available = False
            logger.error(f"SMTP transport failure, switching to mock email mode: {e}")
            return NotificationResult(success=False, recipients=recipients, mock_mode=True, error=str(e))
        except Exception as e:
            logger.error(f"Error sending email to {', '.join(recipients)}: {e}")
            return NotificationResult(success=False, recipients=recipients, error=str(e))

    async def notify_team(self, team: Team, incident: Incident, assignment: AssignmentRecord) -> NotificationResult:
        if not self.available or not self.is_configured():
            return await self._fallback.notify_team(team, incident, assignment)
        try:
            recipients = self.team_recipients(team)
            subject, text, html = team_assignment_message(team, incident, assignment)
        except Exception as e:
            logger.error(f"Failed to build notification for team {getattr(team, 'id', None)}: {e}")
            return NotificationResult(success=False, error=str(e))
        return await self._send(recipients, subject, text, html)

    async def notify_reporter(self, incident: Incident, assigned_teams: Sequence) -> NotificationResult:
        if not self.available or not self.is_configured():
            return await self._fallback.notify_reporter(incident, assigned_teams)
        try:
            recipient = self.reporter_recipient(incident)
            subject, text, html = reporter_update_message(incident, assigned_teams)
        except Exception as e:
            logger.error(f"Failed to build reporter notification for incident {getattr(incident, 'id', None)}: {e}")
            return NotificationResult(success=False, error=str(e))
        return await self._send([recipient], subject, text, html)
