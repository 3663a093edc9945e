import pytest

from app.models.team import AssignmentPriority
from app.services.severity_scoring import SeverityScorer, calculate_severity_score
from app.services.team_types import TeamTypeResolver, determine_required_team_types


@pytest.mark.parametrize("incident, expected", [
    ({"type": "Accident", "severity": "Low"}, 3),
    ({"type": "Fire", "severity": "High"}, 10),
    ({"type": "Fire", "severity": "Medium"}, 8),
    ({"type": "Other", "severity": "Low"}, 1),
    ({"type": "Something New", "severity": "Medium"}, 5),
    ({"type": "Security", "severity": "High"}, 9),
])
def test_severity_score(incident, expected):
    assert calculate_severity_score(incident) == expected


def test_unknown_severity_counts_as_no_adjustment():
    assert SeverityScorer.calculate_score({"type": "Flood", "severity": "Extreme"}) == 7


@pytest.mark.parametrize("score, label", [
    (10, AssignmentPriority.HIGH),
    (8, AssignmentPriority.HIGH),
    (7, AssignmentPriority.MEDIUM),
    (5, AssignmentPriority.MEDIUM),
    (4, AssignmentPriority.LOW),
])
def test_priority_label(score, label):
    assert SeverityScorer.priority_label(score) == label


def test_fire_team_types_grow_with_score():
    assert TeamTypeResolver.resolve("Fire", 6) == ["Fire Response"]
    assert TeamTypeResolver.resolve("Fire", 7) == ["Fire Response", "Medical"]
    assert TeamTypeResolver.resolve("Fire", 10) == ["Fire Response", "Medical", "Rescue"]


def test_accident_aliases_share_rules():
    assert TeamTypeResolver.resolve("Traffic Accident", 8) == TeamTypeResolver.resolve("Accident", 8)
    assert TeamTypeResolver.resolve("Accident", 8) == ["First Responder", "Medical", "Rescue"]


def test_security_types():
    assert TeamTypeResolver.resolve("Noise Complaint", 10) == ["Security"]
    assert TeamTypeResolver.resolve("Assault/Fight", 1) == ["Security", "Medical", "First Responder"]
    assert TeamTypeResolver.resolve("Suspicious Activity", 7) == ["Security", "First Responder"]


def test_unknown_type_uses_default_rules():
    assert determine_required_team_types("Gas Leak", 5) == ["First Responder"]
    assert determine_required_team_types(None, 8) == ["First Responder", "Medical"]


def test_resolved_types_are_never_empty():
    for incident_type in list(TeamTypeResolver.RULES) + ["Unknown"]:
        for score in range(1, 11):
            assert TeamTypeResolver.resolve(incident_type, score)


def test_score_always_within_range():
    for incident_type in list(SeverityScorer.TYPE_SCORES) + ["Unknown"]:
        for severity in ("Low", "Medium", "High", None):
            score = SeverityScorer.calculate_score({"type": incident_type, "severity": severity})
            assert 1 <= score <= 10, (incident_type, severity, score)
