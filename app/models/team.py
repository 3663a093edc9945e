"""
Pydantic models for response teams and assignment records.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import List, Optional
from enum import Enum
import json
import logging

from app.models.incident import utcnow
from app.models.location import Location
from app.utils.geo import normalize_location

logger = logging.getLogger(__name__)


class TeamStatus(str, Enum):
    AVAILABLE = "available"
    ASSIGNED = "assigned"


class TeamMember(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    role: str = ""
    email: Optional[str] = None


class Team(BaseModel):
    """
    A response unit. The dispatch core only ever flips status to
    assigned and records current_assignment.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    type: str
    status: str = TeamStatus.AVAILABLE.value
    location: Location = Field(default_factory=lambda: normalize_location(None))
    members: List[TeamMember] = Field(default_factory=list)
    email: Optional[str] = None
    phone: Optional[str] = None
    current_assignment: Optional[str] = None
    updated_at: Optional[datetime] = None

    @field_validator("location", mode="before")
    @classmethod
    def _location(cls, value):
        # Unparseable locations are kept (as an invalid 0,0 location) so
        # the team can still be ranked.
        return normalize_location(value)

    @field_validator("members", mode="before")
    @classmethod
    def _members(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                logger.warning("Could not parse team members JSON, treating as empty")
                return []
        if not isinstance(value, list):
            return []
        return [m for m in value if isinstance(m, (dict, TeamMember))]

    def contact_emails(self) -> List[str]:
        """Team email first, then member emails."""
        if self.email:
            return [self.email]
        return [m.email for m in self.members if m.email]


class AssignmentPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class AssignmentRecord(BaseModel):
    """Persisted once per successful team assignment; never updated here."""

    id: Optional[str] = None
    incident_id: str
    team_id: str
    priority: AssignmentPriority
    instructions: str
    status: str = "assigned"
    assigned_at: datetime = Field(default_factory=utcnow)
