"""
Firestore-backed stores.

firebase_admin calls are blocking, so every call runs in the default
executor to keep the event loop free while waiting on the network.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from app.config.firebase import get_db
from app.models.incident import Incident, OPEN_STATUSES
from app.models.team import AssignmentRecord, Team
from app.stores.base import AssignmentStore, IncidentStore, StoreError, TeamStore, to_document
from app.utils.firestore_helpers import snapshot_to_dict, where_filter

logger = logging.getLogger(__name__)

T = TypeVar("T")

INCIDENTS = "incidents"
TEAMS = "teams"
ASSIGNMENTS = "assignments"


class FirestoreStore(IncidentStore, TeamStore, AssignmentStore):

    def __init__(self, db=None):
        self.db = db or get_db()

    async def _run(self, fn: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, fn)
        except StoreError:
            raise
        except Exception as e:
            logger.error(f"Firestore call failed: {e}", exc_info=True)
            raise StoreError(str(e)) from e

    def _insert_sync(self, collection: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        doc = to_document(dict(fields))
        doc_ref = self.db.collection(collection).document(doc.pop("id", None) or None)
        doc_ref.set(doc)
        doc["id"] = doc_ref.id
        return doc

    def _update_sync(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        doc_ref = self.db.collection(collection).document(doc_id)
        doc_ref.update(to_document(dict(fields)))
        snapshot = doc_ref.get()
        if not snapshot.exists:
            raise StoreError(f"{collection}/{doc_id} not found after update")
        return snapshot_to_dict(snapshot)

    def _get_sync(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        snapshot = self.db.collection(collection).document(doc_id).get()
        return snapshot_to_dict(snapshot) if snapshot.exists else None

    def _query_sync(self, collection: str, *filters) -> List[Dict[str, Any]]:
        query = self.db.collection(collection)
        for field_path, op_string, value in filters:
            query = where_filter(query, field_path, op_string, value)
        return [snapshot_to_dict(doc) for doc in query.stream()]

    # Incidents

    async def get_open_incidents_by_type(self, incident_type: str) -> List[Incident]:
        docs = await self._run(lambda: self._query_sync(
            INCIDENTS,
            ("type", "==", incident_type),
            ("status", "in", list(OPEN_STATUSES)),
        ))
        return [Incident.model_validate(doc) for doc in docs]

    async def get_incident(self, incident_id: str) -> Optional[Incident]:
        doc = await self._run(lambda: self._get_sync(INCIDENTS, incident_id))
        return Incident.model_validate(doc) if doc else None

    async def update_incident(self, incident_id: str, fields: Dict[str, Any]) -> Incident:
        doc = await self._run(lambda: self._update_sync(INCIDENTS, incident_id, fields))
        return Incident.model_validate(doc)

    async def insert_incident(self, fields: Dict[str, Any]) -> Incident:
        doc = await self._run(lambda: self._insert_sync(INCIDENTS, fields))
        return Incident.model_validate(doc)

    async def list_incidents(self) -> List[Incident]:
        docs = await self._run(lambda: self._query_sync(INCIDENTS))
        return [Incident.model_validate(doc) for doc in docs]

    # Teams

    async def get_available_teams_by_types(self, team_types: Iterable[str]) -> List[Team]:
        filters = [("status", "==", "available")]
        types = list(team_types)
        if types:
            filters.append(("type", "in", types))
        docs = await self._run(lambda: self._query_sync(TEAMS, *filters))
        return [Team.model_validate(doc) for doc in docs]

    async def get_team(self, team_id: str) -> Optional[Team]:
        doc = await self._run(lambda: self._get_sync(TEAMS, team_id))
        return Team.model_validate(doc) if doc else None

    async def insert_team(self, fields: Dict[str, Any]) -> Team:
        doc = await self._run(lambda: self._insert_sync(TEAMS, fields))
        return Team.model_validate(doc)

    async def update_team(self, team_id: str, fields: Dict[str, Any]) -> Team:
        doc = await self._run(lambda: self._update_sync(TEAMS, team_id, fields))
        return Team.model_validate(doc)

    async def list_teams(self, status: Optional[str] = None) -> List[Team]:
        filters = [("status", "==", status)] if status else []
        docs = await self._run(lambda: self._query_sync(TEAMS, *filters))
        return [Team.model_validate(doc) for doc in docs]

    # Assignments

    async def insert_assignment(self, fields: Dict[str, Any]) -> AssignmentRecord:
        doc = await self._run(lambda: self._insert_sync(ASSIGNMENTS, fields))
        return AssignmentRecord.model_validate(doc)

    async def list_assignments_for_incident(self, incident_id: str) -> List[AssignmentRecord]:
        docs = await self._run(lambda: self._query_sync(ASSIGNMENTS, ("incident_id", "==", incident_id)))
        return [AssignmentRecord.model_validate(doc) for doc in docs]
