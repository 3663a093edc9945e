"""
Notification Sender Base Interface.

Defines the contract for notification transports.
All senders must implement this interface.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional, Sequence
import logging

from pydantic import BaseModel, Field

from app.core.settings import settings
from app.models.incident import Incident
from app.models.team import AssignmentRecord, Team

logger = logging.getLogger(__name__)


class NotificationResult(BaseModel):
    """
    Standardized send result.

    Senders return this instead of raising so callers can log and move on.
    """
    success: bool
    message_id: Optional[str] = None
    recipients: List[str] = Field(default_factory=list)
    mock_mode: bool = False
    error: Optional[str] = None
    sent_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationSender(ABC):
    """
    Abstract base class for notification transports.

    Contract:
    - MUST NEVER raise past notify_team / notify_reporter.
    - MUST accept incomplete data; a missing address falls back to
      settings.FALLBACK_NOTIFICATION_EMAIL.
    """

    @abstractmethod
    async def notify_team(
        self,
        team: Team,
        incident: Incident,
        assignment: AssignmentRecord,
    ) -> NotificationResult:
        raise NotImplementedError

    @abstractmethod
    async def notify_reporter(
        self,
        incident: Incident,
        assigned_teams: Sequence,
    ) -> NotificationResult:
        raise NotImplementedError

    @staticmethod
    def team_recipients(team: Optional[Team]) -> List[str]:
        emails = team.contact_emails() if team else []
        if not emails:
            logger.warning(
                f"No email addresses found for team {getattr(team, 'id', None)}, using fallback email"
            )
            emails = [settings.FALLBACK_NOTIFICATION_EMAIL]
        return emails

    @staticmethod
    def reporter_recipient(incident: Optional[Incident]) -> str:
        email = incident.reporter_email if incident else None
        if not email:
            logger.warning(
                f"No reporter email found for incident {getattr(incident, 'id', None)}, using fallback email"
            )
            email = settings.FALLBACK_NOTIFICATION_EMAIL
        return email
