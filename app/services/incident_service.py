"""
Incident service - creation with duplicate merge, plus read helpers.

DESIGN NOTE:
- A report near an open incident of the same type is MERGED, not created
- New incidents are dispatched inline so the reporter gets team info back
- Dispatch failures are reported as "pending", never as a hard error
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from app.models.incident import Incident, IncidentCreate, IncidentStatus, VerificationStatus
from app.models.team import AssignmentRecord, Team
from app.services.duplicate_detection import DuplicateDetectionService, get_duplicate_detection_service
from app.services.incident_processing import IncidentProcessingService, get_incident_processing_service
from app.stores import get_stores
from app.utils.geo import normalize_location

logger = logging.getLogger(__name__)

DUPLICATE_NOTE = (
    "Your report has been registered. This incident was already reported and is being handled. "
    "Priority has been increased due to multiple reports."
)
PENDING_NOTE = (
    "Incident is reported and response teams will be notified. "
    "You will receive an email confirmation once response teams are assigned."
)


class IncidentValidationError(ValueError):
    """Incoming incident data cannot be dispatched (e.g. no usable location)."""


class IncidentNotFoundError(LookupError):
    pass


def incident_view(incident: Incident) -> Dict[str, Any]:
    """Response shape for an incident."""
    data = incident.model_dump(mode="json", exclude={"location"})
    data["location"] = incident.location.to_document()
    return data


async def _assigned_team_details(incident: Incident) -> List[Dict[str, Any]]:
    """Snapshot teams enriched with current contact details where available."""
    teams_store = get_stores().teams
    details = []
    for snapshot in incident.assigned_teams:
        entry = snapshot.model_dump(mode="json")
        try:
            team: Optional[Team] = await teams_store.get_team(snapshot.id)
        except Exception as e:
            logger.warning(f"Could not load team {snapshot.id} for incident {incident.id}: {e}")
            team = None
        if team is not None:
            entry["email"] = team.email
            entry["phone"] = team.phone
            entry["members"] = [m.model_dump() for m in team.members]
        details.append(entry)
    return details


async def create_incident(
    payload: IncidentCreate,
    duplicate_service: Optional[DuplicateDetectionService] = None,
    processing_service: Optional[IncidentProcessingService] = None,
) -> Dict[str, Any]:
    """
    Create a new incident, or merge it into an existing open one.

    Flow:
    1. Normalize and validate the location (invalid -> IncidentValidationError)
    2. Look for an open incident of the same type within the duplicate radius
    3. Duplicate -> bump reported_no, escalate severity, return the existing incident
    4. Otherwise insert (status=available, reported_no=1, verified=Pending)
       and dispatch inline

    Returns:
        Dict with "duplicate", "incident", "assigned_teams" and a reporter-facing note
    """
    incidents = get_stores().incidents
    duplicate_service = duplicate_service or get_duplicate_detection_service()

    location = normalize_location(payload.location)
    if not location.is_valid:
        raise IncidentValidationError("Valid latitude and longitude are required for location")

    existing = await duplicate_service.check_duplicate(payload.type, location)
    if existing is not None:
        merged = await duplicate_service.merge_duplicate(existing)
        return {
            "message": "Similar incident already reported in this area",
            "duplicate": True,
            "incident_id": merged.id,
            "incident": incident_view(merged),
            "assigned_teams": await _assigned_team_details(merged),
            "note": DUPLICATE_NOTE,
        }

    now = datetime.now(timezone.utc)
    incident = await incidents.insert_incident({
        "type": payload.type,
        "severity": payload.severity,
        "location": location,
        "description": payload.description,
        "title": payload.title,
        "status": IncidentStatus.AVAILABLE.value,
        "reporter_email": payload.reporter_email,
        "reported_at": now,
        "updated_at": now,
        "verified": VerificationStatus.PENDING.value,
        "reported_no": 1,
        "assigned_teams": [],
    })
    logger.info(f"Incident created: {incident.id} ({incident.type}, {incident.severity.value})")

    processing_service = processing_service or get_incident_processing_service()
    try:
        result = await processing_service.process_incident(incident)
    except Exception as e:
        # process_incident is not expected to raise; keep the report either way
        logger.error(f"Error processing incident {incident.id}: {e}", exc_info=True)
        result = None

    succeeded = bool(result and result.success)

    # Dispatch rewrote status, verified and assigned_teams
    try:
        incident = await incidents.get_incident(incident.id) or incident
    except Exception as e:
        logger.warning(f"Could not reload incident {incident.id} after dispatch: {e}")
    view = incident_view(incident)

    assigned = [t.model_dump(mode="json") for t in result.assigned_teams] if succeeded else []
    return {
        "message": "Incident reported successfully",
        "duplicate": False,
        "incident_id": incident.id,
        "incident": view,
        "assigned_teams": assigned,
        "severity_score": result.severity_score if result else None,
        "processing_status": "success" if succeeded else "pending",
        "note": (
            f"Incident is reported and {len(assigned)} teams have been assigned to respond. "
            "You will receive an email confirmation shortly."
            if succeeded else PENDING_NOTE
        ),
    }


async def get_incident(incident_id: str) -> Incident:
    incident = await get_stores().incidents.get_incident(incident_id)
    if incident is None:
        raise IncidentNotFoundError(f"Incident {incident_id} not found")
    return incident


async def list_incidents() -> List[Incident]:
    return await get_stores().incidents.list_incidents()


async def list_assignments(incident_id: str) -> List[AssignmentRecord]:
    await get_incident(incident_id)
    return await get_stores().assignments.list_assignments_for_incident(incident_id)
