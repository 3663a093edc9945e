"""
Result models returned by the dispatch engine.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Dict, List, Optional
from enum import Enum

from app.models.location import Location
from app.models.team import AssignmentRecord, Team, TeamMember


class DispatchState(str, Enum):
    """
    States of a single processing attempt:

        received -> location_validated -> teams_resolved -> assigned
                 \\-> errored (invalid location, terminal)
        any unexpected failure -> pending_retry
    """
    RECEIVED = "received"
    LOCATION_VALIDATED = "location_validated"
    TEAMS_RESOLVED = "teams_resolved"
    ASSIGNED = "assigned"
    ERRORED = "errored"
    PENDING_RETRY = "pending_retry"


class RankedTeam(BaseModel):
    """A candidate team with its computed ranking attributes."""

    team: Team
    location: Location
    distance_km: float
    type_relevance: int
    relevance_score: float
    eta_minutes: int = Field(ge=15, le=60)


class AssignmentOutcome(BaseModel):
    """Per-team result of applying assignment side effects."""

    success: bool
    ranked: RankedTeam
    team: Optional[Team] = None
    assignment: Optional[AssignmentRecord] = None
    team_status_updated: bool = False
    notified: bool = False
    error: Optional[str] = None


class DispatchedTeam(BaseModel):
    """Team details returned to the caller after a successful dispatch."""

    id: str
    name: str
    type: str
    status: str = "assigned"
    email: Optional[str] = None
    phone: Optional[str] = None
    distance: float
    eta_minutes: int
    estimated_arrival_time: datetime
    location: Optional[Dict] = None
    members: List[TeamMember] = Field(default_factory=list)
    assignment_id: Optional[str] = None


class DispatchResult(BaseModel):
    success: bool
    incident_id: Optional[str] = None
    state: DispatchState = DispatchState.RECEIVED
    severity_score: Optional[int] = None
    required_team_types: List[str] = Field(default_factory=list)
    team_source: Optional[str] = None
    teams_found: int = 0
    teams_assigned: int = 0
    assigned_teams: List[DispatchedTeam] = Field(default_factory=list)
    status: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
