"""
Team Type Resolver - which responder categories an incident needs.

Each incident type maps to an ordered list of rules. A rule is a team
category plus an optional score threshold: the category is required when
there is no threshold or when the severity score is strictly above it.
Order matters: the first category is the primary responder and ranks best.
"""

from typing import Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

FIRE_RESPONSE = "Fire Response"
MEDICAL = "Medical"
RESCUE = "Rescue"
SECURITY = "Security"
FIRST_RESPONDER = "First Responder"

ALL_TEAM_TYPES = (MEDICAL, FIRE_RESPONSE, RESCUE, SECURITY, FIRST_RESPONDER)

TeamRule = Tuple[str, Optional[int]]


class TeamTypeResolver:

    _ACCIDENT_RULES: List[TeamRule] = [(FIRST_RESPONDER, None), (MEDICAL, None), (RESCUE, 7)]
    _SECURITY_RULES: List[TeamRule] = [(SECURITY, None), (FIRST_RESPONDER, 6)]

    RULES: Dict[str, List[TeamRule]] = {
        "Fire": [(FIRE_RESPONSE, None), (MEDICAL, 6), (RESCUE, 8)],
        "Flood": [(RESCUE, None), (MEDICAL, 7)],
        "Medical": [(MEDICAL, None), (FIRST_RESPONDER, 8)],
        "Accident": _ACCIDENT_RULES,
        "Traffic Accident": _ACCIDENT_RULES,
        "Security": _SECURITY_RULES,
        "Suspicious Activity": _SECURITY_RULES,
        "Theft/Robbery": [(SECURITY, None), (FIRST_RESPONDER, None), (MEDICAL, 8)],
        "Assault/Fight": [(SECURITY, None), (MEDICAL, None), (FIRST_RESPONDER, None)],
        "Vandalism/Damage": [(SECURITY, None), (FIRST_RESPONDER, None)],
        "Noise Complaint": [(SECURITY, None)],
        "Other Emergency": [(FIRST_RESPONDER, None), (MEDICAL, 5), (RESCUE, 8)],
    }

    DEFAULT_RULES: List[TeamRule] = [(FIRST_RESPONDER, None), (MEDICAL, 7)]

    @classmethod
    def resolve(cls, incident_type: Optional[str], severity_score: int) -> List[str]:
        """
        Ordered list of required team categories (first = primary).

        Never empty: falls back to [First Responder].
        """
        rules = cls.RULES.get(incident_type or "", cls.DEFAULT_RULES)
        required = [
            team_type
            for team_type, threshold in rules
            if threshold is None or severity_score > threshold
        ]

        if not required:
            required = [FIRST_RESPONDER]

        logger.info(f"Required team types for {incident_type} (score {severity_score}): {required}")
        return required


def determine_required_team_types(incident_type: Optional[str], severity_score: int) -> List[str]:
    return TeamTypeResolver.resolve(incident_type, severity_score)
