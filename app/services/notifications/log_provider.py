"""
Log-only notification sender (mock mode).

Used when SMTP is not configured. Logs what would have been sent and
always succeeds.
"""

from datetime import datetime, timezone
from typing import Sequence
import logging

from app.models.incident import Incident
from app.models.team import AssignmentRecord, Team
from app.services.notifications.base import NotificationResult, NotificationSender
from app.services.notifications.messages import reporter_update_message, team_assignment_message

logger = logging.getLogger(__name__)


def _mock_id(prefix: str) -> str:
    return f"{prefix}-{int(datetime.now(timezone.utc).timestamp() * 1000)}"


class LogNotificationSender(NotificationSender):

    async def notify_team(self, team: Team, incident: Incident, assignment: AssignmentRecord) -> NotificationResult:
        try:
            recipients = self.team_recipients(team)
            subject, text, _ = team_assignment_message(team, incident, assignment)
            logger.info(f"[MOCK EMAIL] To: {', '.join(recipients)} | Subject: {subject}")
            logger.debug(text)
            return NotificationResult(
                success=True,
                message_id=_mock_id("mock-team-notification"),
                recipients=recipients,
                mock_mode=True,
            )
        except Exception as e:
            logger.error(f"Failed to build team notification for team {getattr(team, 'id', None)}: {e}")
            return NotificationResult(success=False, mock_mode=True, error=str(e))

    async def notify_reporter(self, incident: Incident, assigned_teams: Sequence) -> NotificationResult:
        try:
            recipient = self.reporter_recipient(incident)
            subject, text, _ = reporter_update_message(incident, assigned_teams)
            logger.info(f"[MOCK EMAIL] To: {recipient} | Subject: {subject}")
            logger.debug(text)
            return NotificationResult(
                success=True,
                message_id=_mock_id("mock-reporter-notification"),
                recipients=[recipient],
                mock_mode=True,
            )
        except Exception as e:
            logger.error(f"Failed to build reporter notification for incident {getattr(incident, 'id', None)}: {e}")
            return NotificationResult(success=False, mock_mode=True, error=str(e))
