"""
In-memory store used in mock mode (USE_MOCK_DB=true) and in tests.

Records are kept as plain documents in insertion order, so query order is
deterministic.
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

from app.models.incident import Incident, OPEN_STATUSES
from app.models.team import AssignmentRecord, Team
from app.stores.base import AssignmentStore, IncidentStore, StoreError, TeamStore, to_document

logger = logging.getLogger(__name__)


class MemoryStore(IncidentStore, TeamStore, AssignmentStore):

    def __init__(self):
        self.incidents: Dict[str, Dict[str, Any]] = {}
        self.teams: Dict[str, Dict[str, Any]] = {}
        self.assignments: Dict[str, Dict[str, Any]] = {}

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex

    def _insert(self, collection: Dict[str, Dict[str, Any]], fields: Dict[str, Any]) -> Dict[str, Any]:
        doc = to_document(dict(fields))
        doc["id"] = doc.get("id") or self._new_id()
        collection[doc["id"]] = doc
        return doc

    def _update(self, collection: Dict[str, Dict[str, Any]], name: str, doc_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        if doc_id not in collection:
            raise StoreError(f"{name} {doc_id} not found")
        collection[doc_id].update(to_document(dict(fields)))
        return collection[doc_id]

    # Incidents

    async def get_open_incidents_by_type(self, incident_type: str) -> List[Incident]:
        return [
            Incident.model_validate(doc)
            for doc in self.incidents.values()
            if doc.get("type") == incident_type and doc.get("status") in OPEN_STATUSES
        ]

    async def get_incident(self, incident_id: str) -> Optional[Incident]:
        doc = self.incidents.get(incident_id)
        return Incident.model_validate(doc) if doc else None

    async def update_incident(self, incident_id: str, fields: Dict[str, Any]) -> Incident:
        return Incident.model_validate(self._update(self.incidents, "Incident", incident_id, fields))

    async def insert_incident(self, fields: Dict[str, Any]) -> Incident:
        return Incident.model_validate(self._insert(self.incidents, fields))

    async def list_incidents(self) -> List[Incident]:
        return [Incident.model_validate(doc) for doc in self.incidents.values()]

    # Teams

    async def get_available_teams_by_types(self, team_types: Iterable[str]) -> List[Team]:
        wanted = set(team_types)
        return [
            Team.model_validate(doc)
            for doc in self.teams.values()
            if doc.get("status") == "available" and (not wanted or doc.get("type") in wanted)
        ]

    async def get_team(self, team_id: str) -> Optional[Team]:
        doc = self.teams.get(team_id)
        return Team.model_validate(doc) if doc else None

    async def insert_team(self, fields: Dict[str, Any]) -> Team:
        return Team.model_validate(self._insert(self.teams, fields))

    async def update_team(self, team_id: str, fields: Dict[str, Any]) -> Team:
        return Team.model_validate(self._update(self.teams, "Team", team_id, fields))

    async def list_teams(self, status: Optional[str] = None) -> List[Team]:
        return [
            Team.model_validate(doc)
            for doc in self.teams.values()
            if status is None or doc.get("status") == status
        ]

    # Assignments

    async def insert_assignment(self, fields: Dict[str, Any]) -> AssignmentRecord:
        return AssignmentRecord.model_validate(self._insert(self.assignments, fields))

    async def list_assignments_for_incident(self, incident_id: str) -> List[AssignmentRecord]:
        return [
            AssignmentRecord.model_validate(doc)
            for doc in self.assignments.values()
            if doc.get("incident_id") == incident_id
        ]
