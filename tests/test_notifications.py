import asyncio
import smtplib

from app.core.settings import settings
from app.models.incident import Incident
from app.models.team import AssignmentPriority, AssignmentRecord, Team
from app.services.notifications import LogNotificationSender, SmtpNotificationSender
from app.services.notifications.messages import reporter_update_message, team_assignment_message

INCIDENT = Incident(
    id="inc-1",
    type="Fire",
    title="Warehouse <fire>",
    description="Smoke",
    location={"lat": 21.2, "lng": 72.78, "address": "Ring Road"},
)
TEAM = Team(id="t1", name="Engine 1", type="Fire Response", members=[{"name": "Lead", "email": "lead@example.org"}])
ASSIGNMENT = AssignmentRecord(
    incident_id="inc-1", team_id="t1", priority=AssignmentPriority.HIGH, instructions="Contain fire."
)


def test_team_message_contents():
    subject, text, html = team_assignment_message(TEAM, INCIDENT, ASSIGNMENT)
    assert subject == "URGENT: New incident assignment - Fire: Warehouse <fire>"
    assert "Priority: High" in text
    assert "query=21.2,72.78" in text
    assert "Warehouse &lt;fire&gt;" in html


def test_reporter_message_uses_placeholder_when_no_teams():
    _, text, _ = reporter_update_message(INCIDENT, [])
    assert "Response Team (Emergency)" in text
    assert "ETA: Approximately 25 minutes" in text


def test_reporter_message_lists_teams():
    _, text, _ = reporter_update_message(INCIDENT, [{"name": "Engine 1", "type": "Fire Response", "distance": 2.5}])
    assert "Distance: 2.50 km" in text
    assert "ETA: Approximately 13 minutes" in text


def test_recipients_fall_back_to_configured_address():
    no_contact = Team(id="t2", type="Medical")
    assert LogNotificationSender.team_recipients(no_contact) == [settings.FALLBACK_NOTIFICATION_EMAIL]
    assert LogNotificationSender.team_recipients(TEAM) == ["lead@example.org"]
    assert LogNotificationSender.reporter_recipient(INCIDENT) == settings.FALLBACK_NOTIFICATION_EMAIL


def test_log_sender_always_succeeds():
    result = asyncio.run(LogNotificationSender().notify_team(TEAM, INCIDENT, ASSIGNMENT))
    assert result.success
    assert result.mock_mode


def test_smtp_sender_sends_via_executor(monkeypatch):
    sender = SmtpNotificationSender(host="smtp.example.org", user="u", password="p")
    sent = []
    monkeypatch.setattr(sender, "_smtp_send", lambda msg: sent.append(msg))

    result = asyncio.run(sender.notify_team(TEAM, INCIDENT, ASSIGNMENT))

    assert result.success
    assert not result.mock_mode
    assert sent[0]["To"] == "lead@example.org"


def test_smtp_auth_failure_switches_to_log_mode(monkeypatch):
    sender = SmtpNotificationSender(host="smtp.example.org", user="u", password="bad")

    def reject(msg):
        raise smtplib.SMTPAuthenticationError(535, b"auth failed")

    monkeypatch.setattr(sender, "_smtp_send", reject)

    failed = asyncio.run(sender.notify_reporter(INCIDENT, []))
    assert not failed.success
    assert not sender.available

    fallback = asyncio.run(sender.notify_reporter(INCIDENT, []))
    assert fallback.success
    assert fallback.mock_mode


def test_unconfigured_smtp_sender_logs_instead(monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_HOST", None)
    sender = SmtpNotificationSender(user="u", password="p")
    assert not sender.is_configured()
    assert asyncio.run(sender.notify_team(TEAM, INCIDENT, ASSIGNMENT)).mock_mode
