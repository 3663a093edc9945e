"""
Pydantic models for incidents and the team snapshots embedded in them.

Stored records may come from older writers that kept location and
assigned_teams as JSON-encoded text; the validators here accept both
shapes so the dispatch core only ever sees structured values.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, timezone
from typing import List, Optional, Any
from enum import Enum
import json
import logging

from app.models.location import Location
from app.utils.geo import normalize_location

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IncidentStatus(str, Enum):
    """
    Incident lifecycle.

    The dispatch core only writes ASSIGNED, ERROR and PENDING.
    RESOLVED and DECLINED are set by authority actions elsewhere.
    """
    AVAILABLE = "available"
    IN_PROGRESS = "in_progress"
    ASSIGNED = "assigned"
    PENDING = "pending"
    ERROR = "error"
    RESOLVED = "resolved"
    DECLINED = "declined"


# Statuses considered "still open" for duplicate detection
OPEN_STATUSES = (
    IncidentStatus.AVAILABLE.value,
    IncidentStatus.IN_PROGRESS.value,
    IncidentStatus.ASSIGNED.value,
)


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class VerificationStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"


class TeamAssignment(BaseModel):
    """Denormalized team snapshot embedded in an incident."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    type: str = ""
    distance_km: float = Field(default=0.0, validation_alias=AliasChoices("distance_km", "distance"))
    eta_minutes: int = Field(default=15, ge=15, le=60, validation_alias=AliasChoices("eta_minutes", "etaMinutes"))
    assigned_at: datetime = Field(default_factory=utcnow, validation_alias=AliasChoices("assigned_at", "assignedAt"))


def _coerce_severity(value: Any) -> Any:
    if isinstance(value, str):
        for member in Severity:
            if member.value.lower() == value.strip().lower():
                return member
        logger.warning(f"Unknown severity '{value}', treating as Medium")
        return Severity.MEDIUM
    if value is None:
        return Severity.MEDIUM
    return value


class Incident(BaseModel):
    """
    A single reported emergency.

    Created by the incident creation endpoint with status=available,
    reported_no=1, verified=Pending. Mutated by the dispatch orchestrator
    and by duplicate merges; never deleted here.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    type: str
    severity: Severity = Severity.MEDIUM
    location: Location = Field(default_factory=lambda: normalize_location(None))
    description: str = ""
    title: str = ""
    status: IncidentStatus = IncidentStatus.AVAILABLE
    reported_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    reported_no: int = Field(default=1, ge=1)
    assigned_teams: List[TeamAssignment] = Field(default_factory=list)
    verified: VerificationStatus = VerificationStatus.PENDING
    reporter_email: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("severity", mode="before")
    @classmethod
    def _severity(cls, value):
        return _coerce_severity(value)

    @field_validator("location", mode="before")
    @classmethod
    def _location(cls, value):
        return normalize_location(value)

    @field_validator("reported_no", mode="before")
    @classmethod
    def _reported_no(cls, value):
        return value or 1

    @field_validator("assigned_teams", mode="before")
    @classmethod
    def _assigned_teams(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                logger.warning("Could not parse assigned_teams JSON, treating as empty")
                return []
        if not isinstance(value, list):
            return []
        return value

    def append_note(self, note: str) -> str:
        """Return the notes text with `note` appended on its own line."""
        return f"{self.notes}\n{note}" if self.notes else note


class IncidentCreate(BaseModel):
    """
    Model for creating a new incident (incoming POST request).
    """

    type: str = Field(..., min_length=1, max_length=100, description="Incident type, e.g. Fire")
    severity: Severity = Field(default=Severity.MEDIUM, description="Reporter-assessed severity")
    location: Any = Field(..., description="Location object or JSON-encoded string")
    description: str = Field(default="", max_length=2000)
    title: str = Field(default="", max_length=200)
    reporter_email: Optional[str] = Field(default=None, description="Where dispatch updates are sent")

    @field_validator("severity", mode="before")
    @classmethod
    def _severity(cls, value):
        return _coerce_severity(value)

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "type": "Fire",
                "severity": "High",
                "location": {"lat": 21.2, "lng": 72.78, "address": "Ring Road, Surat"},
                "description": "Smoke coming out of a warehouse",
                "title": "Warehouse fire",
                "reporter_email": "reporter@example.com",
            }
        },
    )
