"""
Severity Scoring Service - system-derived urgency for dispatch.

DESIGN PRINCIPLES:
- Score is SYSTEM-DERIVED from incident type and reported severity
- Score drives both team count and assignment priority
- Score range: 1-10 (higher = more urgent)
"""

from typing import Any, Dict, Union
import logging

from app.models.incident import Incident, Severity
from app.models.team import AssignmentPriority

logger = logging.getLogger(__name__)


class SeverityScorer:
    """
    Maps incident type + reported severity to an urgency score (1-10).
    """

    # Configuration: base score per incident type
    TYPE_SCORES = {
        "Fire": 8,
        "Flood": 7,
        "Medical": 6,
        "Accident": 5,
        "Infrastructure": 4,
        "Weather": 6,
        "Security": 7,
        "Other": 3,
    }
    DEFAULT_TYPE_SCORE = 5

    # Configuration: reported severity adjustment
    SEVERITY_ADJUSTMENTS = {
        Severity.HIGH.value: 2,
        Severity.MEDIUM.value: 0,
        Severity.LOW.value: -2,
    }

    MIN_SCORE = 1
    MAX_SCORE = 10

    @classmethod
    def calculate_score(cls, incident: Union[Incident, Dict[str, Any]]) -> int:
        """
        Calculate the severity score for an incident.

        Args:
            incident: Incident model or dict with "type" and "severity"

        Returns:
            Integer score clamped to [1, 10]
        """
        if isinstance(incident, Incident):
            incident_type, severity = incident.type, incident.severity
        else:
            incident_type, severity = incident.get("type"), incident.get("severity")

        if isinstance(severity, Severity):
            severity = severity.value

        score = cls.TYPE_SCORES.get(incident_type, cls.DEFAULT_TYPE_SCORE)
        score += cls.SEVERITY_ADJUSTMENTS.get(severity, 0)
        score = max(cls.MIN_SCORE, min(cls.MAX_SCORE, score))

        logger.debug(f"Severity score {score} for type={incident_type} severity={severity}")
        return score

    @staticmethod
    def priority_label(score: int) -> AssignmentPriority:
        """Assignment priority for a severity score: >=8 High, >=5 Medium, else Low."""
        if score >= 8:
            return AssignmentPriority.HIGH
        if score >= 5:
            return AssignmentPriority.MEDIUM
        return AssignmentPriority.LOW


def calculate_severity_score(incident: Union[Incident, Dict[str, Any]]) -> int:
    return SeverityScorer.calculate_score(incident)
