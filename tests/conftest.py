import asyncio
import os
from typing import List, Optional, Sequence

# Select the in-memory store before any app module reads settings
os.environ["USE_MOCK_DB"] = "true"

import pytest

from app.core.settings import settings
from app.models.incident import Incident
from app.models.team import AssignmentRecord, Team
from app.services.notifications import NotificationResult, NotificationSender
from app.stores import MemoryStore, Stores, set_stores
import app.services.dispatch_tasks as dispatch_tasks
import app.services.duplicate_detection as duplicate_detection
import app.services.incident_processing as incident_processing
import app.services.notifications.registry as notification_registry


class RecordingNotifier(NotificationSender):
    """Notification sender that records calls; team ids in fail_team_ids raise."""

    def __init__(self):
        self.team_calls: List[tuple] = []
        self.reporter_calls: List[tuple] = []
        self.fail_team_ids = set()

    async def notify_team(self, team: Team, incident: Incident, assignment: AssignmentRecord) -> NotificationResult:
        if team.id in self.fail_team_ids:
            raise RuntimeError(f"mail server rejected team {team.id}")
        self.team_calls.append((team, incident, assignment))
        return NotificationResult(success=True, recipients=self.team_recipients(team), mock_mode=True)

    async def notify_reporter(self, incident: Incident, assigned_teams: Sequence) -> NotificationResult:
        self.reporter_calls.append((incident, list(assigned_teams)))
        return NotificationResult(success=True, recipients=[self.reporter_recipient(incident)], mock_mode=True)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(autouse=True)
def isolated_services(monkeypatch, store, notifier):
    """Fresh stores, sender and service singletons for every test."""
    set_stores(Stores(incidents=store, teams=store, assignments=store))
    monkeypatch.setattr(notification_registry, "_sender", notifier)
    monkeypatch.setattr(incident_processing, "_processing_service", None)
    monkeypatch.setattr(duplicate_detection, "_duplicate_service", None)
    monkeypatch.setattr(dispatch_tasks, "_task_runner", None)
    monkeypatch.setattr(settings, "PLACEHOLDER_TEAMS_ENABLED", True)
    monkeypatch.setattr(settings, "DUPLICATE_DISTANCE_THRESHOLD_METERS", 100.0)
    yield
    set_stores(None)


def add_team(store: MemoryStore, team_type: str, lat: float = 21.2, lng: float = 72.78, **fields) -> Team:
    data = {
        "name": fields.pop("name", f"{team_type} Unit"),
        "type": team_type,
        "status": "available",
        "location": {"latitude": lat, "longitude": lng, "address": "Station"},
        **fields,
    }
    return asyncio.run(store.insert_team(data))


def add_incident(store: MemoryStore, incident_type: str = "Fire", severity: str = "Medium",
                 location: Optional[object] = None, **fields) -> Incident:
    data = {
        "type": incident_type,
        "severity": severity,
        "location": location if location is not None else {"lat": 21.2, "lng": 72.78, "address": "X"},
        "status": "available",
        "verified": "Pending",
        "reported_no": 1,
        "assigned_teams": [],
        **fields,
    }
    return asyncio.run(store.insert_incident(data))
