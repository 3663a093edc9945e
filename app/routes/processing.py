"""
Incident processing endpoints - manual dispatch and store webhooks.
"""

from typing import Any, Dict, Optional
import logging

from fastapi import APIRouter, BackgroundTasks, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.services.dispatch_tasks import get_dispatch_task_runner
from app.services.incident_processing import get_incident_processing_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/processing", tags=["Processing"])


class IncidentWebhookEvent(BaseModel):
    """Row-change event pushed by the incident store."""
    type: str
    record: Optional[Dict[str, Any]] = None
    old_record: Optional[Dict[str, Any]] = None


def webhook_processing_reason(event: IncidentWebhookEvent) -> Optional[str]:
    """
    Decide whether a row-change event should trigger dispatch.

    - INSERT: always
    - UPDATE: when verified flips to Confirmed, or assigned_teams changed
      to a non-empty value
    """
    record = event.record or {}
    old_record = event.old_record or {}

    if event.type == "INSERT":
        return "insert"
    if event.type == "UPDATE":
        if old_record.get("verified") != "Confirmed" and record.get("verified") == "Confirmed":
            return "verified"
        if old_record.get("assigned_teams") != record.get("assigned_teams") and record.get("assigned_teams"):
            return "team_assignment"
    return None


@router.post("/process/{incident_id}")
async def process_incident(incident_id: str):
    """
    Process a specific incident now and return the dispatch result.
    """
    service = get_incident_processing_service()
    result = await service.process_incident_by_id(incident_id)

    if result is None:
        raise HTTPException(status_code=404, detail="Incident not found")

    if not result.success:
        logger.error(f"Failed to process incident {incident_id}: {result.error}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "message": "Failed to process incident",
                "error": result.error,
                "data": result.model_dump(mode="json"),
            },
        )

    return {
        "success": True,
        "message": "Incident processed successfully",
        "data": result.model_dump(mode="json"),
    }


@router.post("/webhook")
async def incident_webhook(event: IncidentWebhookEvent, background_tasks: BackgroundTasks):
    """
    Store webhook: queue dispatch for inserted or newly verified incidents.

    Returns 202 with a task id when processing was queued.
    """
    if event.type not in ("INSERT", "UPDATE"):
        return {"success": True, "message": "No action needed"}

    reason = webhook_processing_reason(event)
    record = event.record or {}
    incident_id = record.get("id")

    if reason is None:
        return {"success": True, "message": "No processing needed for this update"}
    if not incident_id:
        raise HTTPException(status_code=400, detail="Webhook record has no id")

    service = get_incident_processing_service()
    runner = get_dispatch_task_runner()
    task = runner.submit(incident_id, reason)

    async def job():
        # Prefer the stored record; fall back to the pushed one
        result = await service.process_incident_by_id(incident_id)
        if result is None:
            logger.warning(f"Incident {incident_id} not in store, processing webhook record")
            result = await service.process_incident(record)
        return result

    background_tasks.add_task(runner.run, task.task_id, job)

    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content={
            "success": True,
            "message": "Incident queued for processing",
            "task_id": task.task_id,
            "reason": reason,
        },
    )


@router.get("/tasks/{task_id}")
async def get_task(task_id: str):
    task = get_dispatch_task_runner().get(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task.model_dump(mode="json")
