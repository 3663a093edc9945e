"""
Assignment Service - per-team side effects of a dispatch.

For each selected team:
1. Persist an assignment record (instructions + priority)
2. Flip the team to status=assigned with current_assignment=<incident id>
3. Send the team notification

A team counts as assigned when its assignment record was persisted. If
that insert fails the team is left untouched (no status flip, no
notification) so it stays available. Steps 2 and 3 are guarded on their
own: a failed notification never rolls back the persisted assignment or
the status flip. assign_team() never raises.
"""

from datetime import datetime, timezone
from typing import Optional
import logging

from app.models.dispatch import AssignmentOutcome, RankedTeam
from app.models.incident import Incident
from app.models.location import Location
from app.models.team import AssignmentRecord, Team, TeamStatus
from app.services.notifications import NotificationSender, get_notification_sender
from app.services.severity_scoring import SeverityScorer
from app.services.team_types import FIRE_RESPONSE, FIRST_RESPONDER, MEDICAL, RESCUE, SECURITY
from app.stores import AssignmentStore, TeamStore, get_stores

logger = logging.getLogger(__name__)


SECURITY_INSTRUCTIONS = {
    "Theft/Robbery": "Respond to theft/robbery incident. Secure the area and gather information from witnesses.",
    "Assault/Fight": "Respond to assault/fight incident. Secure the area and ensure safety of all individuals involved.",
    "Vandalism/Damage": "Respond to vandalism/property damage. Document the damage and secure the area.",
    "Suspicious Activity": "Investigate reported suspicious activity. Assess potential security threats.",
    "Noise Complaint": "Respond to noise complaint. De-escalate the situation and ensure compliance with local ordinances.",
}
SECURITY_DEFAULT = "Provide security assistance and assess the situation for potential threats."

FIRST_RESPONDER_INSTRUCTIONS = {
    "Traffic Accident": "Secure the accident scene, assist injured parties, and direct traffic if necessary.",
    "Theft/Robbery": "Gather information from victims and witnesses, secure the scene, and assist security teams.",
    "Assault/Fight": "Separate involved parties, provide immediate assistance, and secure the area.",
    "Vandalism/Damage": "Document the damage, gather witness statements, and secure affected property.",
    "Other Emergency": "Assess the emergency situation and provide immediate assistance as needed.",
}
FIRST_RESPONDER_DEFAULT = "Provide first response assistance as required for the situation."

TEAM_INSTRUCTIONS = {
    MEDICAL: "Provide medical assistance to any injured persons.",
    FIRE_RESPONSE: "Contain fire and assist with evacuation if needed.",
    RESCUE: "Focus on search and rescue operations.",
}


def build_instructions(
    team_type: str,
    incident: Incident,
    location: Location,
    severity_score: int,
    distance_km: float,
    eta_minutes: int,
) -> str:
    """Human-readable instructions for a team, by team type and incident type."""
    instructions = f"Respond to {incident.type} incident: {incident.title}. "
    instructions += f"Location: {location.address}. "
    instructions += f"Severity: {severity_score}/10. "

    if team_type in TEAM_INSTRUCTIONS:
        instructions += TEAM_INSTRUCTIONS[team_type]
    elif team_type == SECURITY:
        instructions += SECURITY_INSTRUCTIONS.get(incident.type, SECURITY_DEFAULT)
    elif team_type == FIRST_RESPONDER:
        instructions += FIRST_RESPONDER_INSTRUCTIONS.get(incident.type, FIRST_RESPONDER_DEFAULT)
    else:
        instructions += f"Provide {team_type} assistance as required."

    instructions += f" Estimated distance: {distance_km:.2f} km. Approximate ETA: {eta_minutes} minutes."
    return instructions


class AssignmentService:

    def __init__(
        self,
        team_store: Optional[TeamStore] = None,
        assignment_store: Optional[AssignmentStore] = None,
        notifier: Optional[NotificationSender] = None,
    ):
        stores = get_stores() if team_store is None or assignment_store is None else None
        self.teams = team_store or stores.teams
        self.assignments = assignment_store or stores.assignments
        self.notifier = notifier or get_notification_sender()

    async def assign_team(
        self,
        ranked: RankedTeam,
        incident: Incident,
        location: Location,
        severity_score: int,
    ) -> AssignmentOutcome:
        team = ranked.team
        outcome = AssignmentOutcome(success=False, ranked=ranked, team=team)

        try:
            instructions = build_instructions(
                team.type, incident, location, severity_score, ranked.distance_km, ranked.eta_minutes
            )
            now = datetime.now(timezone.utc)
            record = AssignmentRecord(
                incident_id=incident.id,
                team_id=team.id,
                priority=SeverityScorer.priority_label(severity_score),
                instructions=instructions,
                assigned_at=now,
            )
        except Exception as e:
            logger.error(f"Failed to prepare assignment for team {team.id}: {e}", exc_info=True)
            outcome.error = str(e)
            return outcome

        # Step 1: assignment record
        try:
            outcome.assignment = await self.assignments.insert_assignment(
                {**record.model_dump(exclude_none=True), "updated_at": now}
            )
            outcome.success = True
            logger.info(f"Created assignment for team {team.id} ({team.name})")
        except Exception as e:
            logger.error(f"Error creating assignment for team {team.id}: {e}")
            outcome.error = f"assignment: {e}"
            return outcome

        # Step 2: team status flip
        try:
            outcome.team = await self.teams.update_team(team.id, {
                "status": TeamStatus.ASSIGNED.value,
                "current_assignment": incident.id,
                "updated_at": now,
            })
            outcome.team_status_updated = True
            logger.info(f"Updated team {team.id} ({team.name}) status to assigned")
        except Exception as e:
            logger.error(f"Error updating team {team.id} status to assigned: {e}")
            outcome.error = f"team status: {e}"

        # Step 3: notification
        try:
            result = await self.notifier.notify_team(outcome.team or team, incident, outcome.assignment)
            outcome.notified = result.success
            if not result.success:
                logger.warning(f"Notification to team {team.id} failed: {result.error}")
        except Exception as e:
            logger.error(f"Failed to send notification to team {team.id}: {e}")

        return outcome

