"""
Incident endpoints - report submission with duplicate merge, and retrieval.
"""

from typing import List
import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse

from app.models.team import AssignmentRecord
from app.models.incident import IncidentCreate
from app.services.incident_service import (
    IncidentNotFoundError,
    IncidentValidationError,
    create_incident,
    get_incident,
    incident_view,
    list_assignments,
    list_incidents,
)
from app.stores import StoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/incidents", tags=["Incidents"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_incident(payload: IncidentCreate):
    """
    Submit a new incident report.

    This endpoint:
    1. Validates the location (400 if unusable)
    2. Merges into an existing open incident nearby (200, duplicate=true)
    3. Otherwise stores the incident and dispatches teams (201)

    Dispatch failures are reported as processing_status="pending", not as errors.
    """
    try:
        logger.info(f"📝 POST /incidents - type={payload.type}, severity={payload.severity.value}")
        result = await create_incident(payload)
    except IncidentValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StoreError as e:
        logger.error(f"❌ POST /incidents - store failure: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Incident store unavailable: {e}",
        )

    if result["duplicate"]:
        logger.info(f"🔁 Report merged into incident {result['incident_id']}")
        return JSONResponse(status_code=status.HTTP_200_OK, content={"success": True, **result})

    logger.info(f"✅ Incident created: {result['incident_id']} ({result['processing_status']})")
    return {"success": True, **result}


@router.get("")
async def get_incidents():
    try:
        incidents = await list_incidents()
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Failed to retrieve incidents: {e}")
    return [incident_view(i) for i in incidents]


@router.get("/{incident_id}")
async def get_incident_by_id(incident_id: str):
    try:
        return incident_view(await get_incident(incident_id))
    except IncidentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{incident_id}/assignments", response_model=List[AssignmentRecord])
async def get_incident_assignments(incident_id: str):
    try:
        return await list_assignments(incident_id)
    except IncidentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
