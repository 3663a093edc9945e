"""
Team Ranking Service - orders candidate teams for an incident.

Ranking is advisory arithmetic only; it performs no I/O.

    type_relevance  = position of team type in required types (1-based), 10 if absent
    relevance_score = 0.7 * type_relevance + 0.3 * distance_km   (lower is better)
    eta_minutes     = clamp(ceil(distance_km * 5), 15, 60)
"""

from typing import Any, Dict, Iterable, List, Sequence, Union
import logging
import math

from app.models.dispatch import RankedTeam
from app.models.location import Location
from app.models.team import Team
from app.utils.geo import calculate_distance, normalize_location

logger = logging.getLogger(__name__)


class TeamRanker:

    TYPE_WEIGHT = 0.7
    DISTANCE_WEIGHT = 0.3
    UNMATCHED_TYPE_RELEVANCE = 10

    MINUTES_PER_KM = 5
    MIN_ETA_MINUTES = 15
    MAX_ETA_MINUTES = 60

    @classmethod
    def eta_minutes(cls, distance_km: float) -> int:
        eta = math.ceil(distance_km * cls.MINUTES_PER_KM)
        return max(cls.MIN_ETA_MINUTES, min(cls.MAX_ETA_MINUTES, eta))

    @staticmethod
    def team_count_for_score(severity_score: int) -> int:
        """How many teams to dispatch: <=3 -> 1, <=6 -> 2, else 3."""
        if severity_score <= 3:
            return 1
        if severity_score <= 6:
            return 2
        return 3

    @classmethod
    def score_team(
        cls,
        team: Union[Team, Dict[str, Any]],
        incident_location: Location,
        required_types: Sequence[str],
    ) -> RankedTeam:
        if not isinstance(team, Team):
            team = Team.model_validate(team)

        # Invalid team locations are scored with whatever coordinates the
        # normalizer produced (0,0 for unparseable input), not dropped.
        team_location = normalize_location(team.location)
        if not team_location.is_valid:
            logger.warning(f"Team {team.id} ({team.name}) has an invalid location, ranking with fallback coordinates")

        distance = calculate_distance(incident_location, team_location)
        if team.type in required_types:
            type_relevance = list(required_types).index(team.type) + 1
        else:
            type_relevance = cls.UNMATCHED_TYPE_RELEVANCE

        return RankedTeam(
            team=team,
            location=team_location,
            distance_km=distance,
            type_relevance=type_relevance,
            relevance_score=cls.TYPE_WEIGHT * type_relevance + cls.DISTANCE_WEIGHT * distance,
            eta_minutes=cls.eta_minutes(distance),
        )

    @classmethod
    def rank_all(
        cls,
        incident_location: Location,
        required_types: Sequence[str],
        teams: Iterable[Union[Team, Dict[str, Any]]],
    ) -> List[RankedTeam]:
        """Score every candidate and sort ascending by relevance score (stable)."""
        scored = [cls.score_team(team, incident_location, required_types) for team in teams]
        scored.sort(key=lambda r: r.relevance_score)
        return scored

    @classmethod
    def rank(
        cls,
        incident_location: Location,
        required_types: Sequence[str],
        teams: Iterable[Union[Team, Dict[str, Any]]],
        severity_score: int,
    ) -> List[RankedTeam]:
        """
        Rank all candidates and keep the top N given by the team count policy.

        Equal scores keep candidate order.
        """
        scored = cls.rank_all(incident_location, required_types, teams)
        limit = cls.team_count_for_score(severity_score)
        selected = scored[:limit]

        logger.info(
            f"Ranked {len(scored)} candidate teams, selected {len(selected)} "
            f"(score {severity_score}): {[r.team.id for r in selected]}"
        )
        return selected
