"""
Persistence interfaces consumed by the dispatch core.

The core reads current state fresh for every operation and writes back
only its delta, so implementations need no in-process locking. Callers
accept eventual consistency between concurrent writers.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel

from app.models.incident import Incident
from app.models.team import AssignmentRecord, Team


class StoreError(RuntimeError):
    """A persistence call failed."""


def to_document(value: Any) -> Any:
    """Convert structured values into plain storable data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_document(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_document(v) for v in value]
    return value


class IncidentStore(ABC):

    @abstractmethod
    async def get_open_incidents_by_type(self, incident_type: str) -> List[Incident]:
        """Incidents of `incident_type` with an open status, in query order."""
        raise NotImplementedError

    @abstractmethod
    async def get_incident(self, incident_id: str) -> Optional[Incident]:
        raise NotImplementedError

    @abstractmethod
    async def update_incident(self, incident_id: str, fields: Dict[str, Any]) -> Incident:
        raise NotImplementedError

    @abstractmethod
    async def insert_incident(self, fields: Dict[str, Any]) -> Incident:
        raise NotImplementedError

    @abstractmethod
    async def list_incidents(self) -> List[Incident]:
        raise NotImplementedError


class TeamStore(ABC):

    @abstractmethod
    async def get_available_teams_by_types(self, team_types: Iterable[str]) -> List[Team]:
        raise NotImplementedError

    @abstractmethod
    async def get_team(self, team_id: str) -> Optional[Team]:
        raise NotImplementedError

    @abstractmethod
    async def insert_team(self, fields: Dict[str, Any]) -> Team:
        raise NotImplementedError

    @abstractmethod
    async def update_team(self, team_id: str, fields: Dict[str, Any]) -> Team:
        raise NotImplementedError

    @abstractmethod
    async def list_teams(self, status: Optional[str] = None) -> List[Team]:
        raise NotImplementedError


class AssignmentStore(ABC):

    @abstractmethod
    async def insert_assignment(self, fields: Dict[str, Any]) -> AssignmentRecord:
        raise NotImplementedError

    @abstractmethod
    async def list_assignments_for_incident(self, incident_id: str) -> List[AssignmentRecord]:
        raise NotImplementedError
