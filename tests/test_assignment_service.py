import asyncio

from conftest import add_incident, add_team

from app.models.team import AssignmentPriority
from app.services.assignment_service import AssignmentService, build_instructions
from app.services.team_ranking import TeamRanker
from app.stores import StoreError
from app.utils.geo import normalize_location

LOCATION = normalize_location({"lat": 21.2, "lng": 72.78, "address": "Ring Road"})


def _ranked(team):
    return TeamRanker.score_team(team, LOCATION, [team.type])


def test_assign_team_persists_record_flips_status_and_notifies(store, notifier):
    team = add_team(store, "Fire Response", email="fire@example.org")
    incident = add_incident(store, "Fire", title="Warehouse fire")
    service = AssignmentService(store, store, notifier)

    outcome = asyncio.run(service.assign_team(_ranked(team), incident, LOCATION, 9))

    assert outcome.success
    assert outcome.team_status_updated
    assert outcome.notified
    assert outcome.assignment.priority == AssignmentPriority.HIGH
    assert store.teams[team.id]["status"] == "assigned"
    assert store.teams[team.id]["current_assignment"] == incident.id
    records = asyncio.run(store.list_assignments_for_incident(incident.id))
    assert [r.team_id for r in records] == [team.id]
    assert notifier.team_calls[0][0].id == team.id


def test_notification_failure_keeps_assignment(store, notifier):
    team = add_team(store, "Medical")
    incident = add_incident(store, "Medical")
    notifier.fail_team_ids.add(team.id)
    service = AssignmentService(store, store, notifier)

    outcome = asyncio.run(service.assign_team(_ranked(team), incident, LOCATION, 6))

    assert outcome.success
    assert not outcome.notified
    assert store.teams[team.id]["status"] == "assigned"
    assert len(store.assignments) == 1


def test_failed_assignment_insert_leaves_team_available(store, notifier, monkeypatch):
    team = add_team(store, "Medical")
    incident = add_incident(store, "Medical")
    service = AssignmentService(store, store, notifier)

    async def broken_insert(fields):
        raise StoreError("write refused")

    monkeypatch.setattr(store, "insert_assignment", broken_insert)
    outcome = asyncio.run(service.assign_team(_ranked(team), incident, LOCATION, 6))

    assert not outcome.success
    assert "write refused" in outcome.error
    # no record, so the team stays available and is not notified
    assert not outcome.team_status_updated
    assert store.teams[team.id]["status"] == "available"
    assert store.teams[team.id].get("current_assignment") is None
    assert notifier.team_calls == []


def test_instructions_by_team_type():
    from app.models.incident import Incident

    theft = Incident(id="i1", type="Theft/Robbery", title="Bag snatched")

    security = build_instructions("Security", theft, LOCATION, 7, 1.234, 15)
    assert security.startswith("Respond to Theft/Robbery incident: Bag snatched. Location: Ring Road. Severity: 7/10. ")
    assert "Secure the area and gather information from witnesses." in security
    assert security.endswith("Estimated distance: 1.23 km. Approximate ETA: 15 minutes.")

    first = build_instructions("First Responder", theft, LOCATION, 7, 1.0, 15)
    assert "assist security teams" in first

    other = build_instructions("Hazmat", theft, LOCATION, 7, 1.0, 15)
    assert "Provide Hazmat assistance as required." in other
