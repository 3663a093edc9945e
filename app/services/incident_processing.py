"""
Incident Processing Service - the dispatch orchestrator.

Takes a persisted-but-unprocessed incident and decides which teams respond.

Flow:
1. Mark the incident verified (best-effort)
2. Normalize the location; invalid -> status=error, terminal
3. Severity score -> required team types -> available teams
4. No teams -> synthesize placeholder teams (if enabled)
5. Rank, select top N, persist status=assigned + assigned_teams snapshot
6. Apply per-team side effects concurrently, each isolated
7. Notify the reporter once, with the teams that succeeded

Any unexpected failure marks the incident status=pending with a note so it
can be reprocessed by hand. process_incident() never raises.

Reprocessing the same incident recomputes and overwrites assigned_teams and
status; team availability may differ between runs because of earlier
status flips.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union
import logging

from app.core.settings import settings
from app.models.dispatch import AssignmentOutcome, DispatchedTeam, DispatchResult, DispatchState, RankedTeam
from app.models.incident import Incident, IncidentStatus, TeamAssignment, VerificationStatus
from app.models.location import Location
from app.models.team import Team, TeamMember, TeamStatus
from app.services.assignment_service import AssignmentService
from app.services.notifications import NotificationSender, get_notification_sender
from app.services.severity_scoring import SeverityScorer
from app.services.team_ranking import TeamRanker
from app.services.team_types import ALL_TEAM_TYPES, TeamTypeResolver
from app.stores import AssignmentStore, IncidentStore, TeamStore, get_stores
from app.utils.geo import normalize_location

logger = logging.getLogger(__name__)

INVALID_LOCATION_MESSAGE = "Invalid location data: Valid latitude and longitude are required."

TEAM_SOURCE_DATABASE = "database"
TEAM_SOURCE_GENERATED = "generated"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def build_placeholder_teams(required_types: List[str]) -> List[Dict[str, Any]]:
    """
    One placeholder team per required type (all types if none given),
    stationed at the configured default location.
    """
    types_to_create = list(required_types) if required_types else list(ALL_TEAM_TYPES)
    location = {
        "latitude": settings.PLACEHOLDER_TEAM_LATITUDE,
        "longitude": settings.PLACEHOLDER_TEAM_LONGITUDE,
        "address": settings.PLACEHOLDER_TEAM_ADDRESS,
    }
    now = _now()

    teams = []
    for index, team_type in enumerate(types_to_create, start=1):
        teams.append({
            "name": f"{team_type} Team {index}",
            "type": team_type,
            "status": TeamStatus.AVAILABLE.value,
            "location": normalize_location(location),
            "members": [
                {"name": "Team Leader", "role": "Leader", "email": settings.PLACEHOLDER_TEAM_EMAIL},
                {"name": "Team Member", "role": "Member", "email": settings.FALLBACK_NOTIFICATION_EMAIL},
            ],
            "email": settings.PLACEHOLDER_TEAM_EMAIL,
            "placeholder": True,
            "created_at": now,
            "updated_at": now,
        })
    return teams


class IncidentProcessingService:
    """
    Orchestrates a single dispatch attempt for an incident.
    """

    def __init__(
        self,
        incident_store: Optional[IncidentStore] = None,
        team_store: Optional[TeamStore] = None,
        assignment_store: Optional[AssignmentStore] = None,
        notifier: Optional[NotificationSender] = None,
    ):
        stores = None
        if incident_store is None or team_store is None or assignment_store is None:
            stores = get_stores()
        self.incidents = incident_store or stores.incidents
        self.teams = team_store or stores.teams
        self.assignments = assignment_store or stores.assignments
        self.notifier = notifier or get_notification_sender()
        self.assignment_service = AssignmentService(self.teams, self.assignments, self.notifier)

    async def _safe_update_incident(self, incident_id: str, fields: Dict[str, Any], action: str) -> bool:
        try:
            await self.incidents.update_incident(incident_id, {**fields, "updated_at": _now()})
            return True
        except Exception as e:
            logger.error(f"Error updating incident {incident_id} ({action}): {e}")
            return False

    async def _resolve_team_pool(self, required_types: List[str]) -> tuple:
        """
        Available teams of the required types, or freshly persisted
        placeholder teams when none are available.

        Returns (teams, team_source); teams is empty when nothing usable
        could be found or created.
        """
        teams = await self.teams.get_available_teams_by_types(required_types)
        if teams:
            return teams, TEAM_SOURCE_DATABASE

        if not settings.PLACEHOLDER_TEAMS_ENABLED:
            logger.warning(f"No available teams for {required_types} and placeholder teams are disabled")
            return [], TEAM_SOURCE_DATABASE

        logger.warning(f"No available teams for {required_types}, creating placeholder teams")
        created: List[Team] = []
        for fields in build_placeholder_teams(required_types):
            try:
                created.append(await self.teams.insert_team(fields))
            except Exception as e:
                logger.error(f"Failed to create placeholder team {fields['name']}: {e}")
        return created, TEAM_SOURCE_GENERATED

    @staticmethod
    def _assignment_snapshot(selected: List[RankedTeam]) -> List[TeamAssignment]:
        now = _now()
        return [
            TeamAssignment(
                id=r.team.id,
                name=r.team.name,
                type=r.team.type,
                distance_km=r.distance_km,
                eta_minutes=r.eta_minutes,
                assigned_at=now,
            )
            for r in selected
        ]

    @staticmethod
    def _dispatched_team(outcome: AssignmentOutcome) -> DispatchedTeam:
        team = outcome.team or outcome.ranked.team
        ranked = outcome.ranked
        location = ranked.location if ranked.location.is_valid else team.location
        return DispatchedTeam(
            id=team.id,
            name=team.name,
            type=team.type,
            status=TeamStatus.ASSIGNED.value,
            email=team.email,
            phone=team.phone,
            distance=round(ranked.distance_km, 2),
            eta_minutes=ranked.eta_minutes,
            estimated_arrival_time=_now() + timedelta(minutes=ranked.eta_minutes),
            location=location.to_document(),
            members=[TeamMember.model_validate(m) for m in team.members],
            assignment_id=outcome.assignment.id if outcome.assignment else None,
        )

    async def process_incident(self, incident: Union[Incident, Dict[str, Any]]) -> DispatchResult:
        """
        Run one dispatch attempt.

        Args:
            incident: Incident model or raw stored record

        Returns:
            DispatchResult (success=False on validation failure, missing
            teams or unexpected errors; never raises)
        """
        incident_id = incident.id if isinstance(incident, Incident) else (incident or {}).get("id")
        state = DispatchState.RECEIVED
        notes = incident.notes if isinstance(incident, Incident) else (incident or {}).get("notes")

        try:
            if not isinstance(incident, Incident):
                incident = Incident.model_validate(incident)
            notes = incident.notes

            await self._safe_update_incident(
                incident.id, {"verified": VerificationStatus.CONFIRMED.value}, "mark verified"
            )

            location = normalize_location(incident.location)
            if not location.is_valid:
                state = DispatchState.ERRORED
                logger.warning(f"Incident {incident.id} has an invalid location, marking as error")
                await self._safe_update_incident(incident.id, {
                    "status": IncidentStatus.ERROR.value,
                    "notes": incident.append_note(INVALID_LOCATION_MESSAGE),
                }, "invalid location")
                return DispatchResult(
                    success=False,
                    incident_id=incident.id,
                    state=state,
                    status=IncidentStatus.ERROR.value,
                    error=INVALID_LOCATION_MESSAGE,
                )
            state = DispatchState.LOCATION_VALIDATED

            severity_score = SeverityScorer.calculate_score(incident)
            required_types = TeamTypeResolver.resolve(incident.type, severity_score)

            try:
                teams, team_source = await self._resolve_team_pool(required_types)
            except Exception as e:
                logger.error(f"Error fetching available teams for incident {incident.id}: {e}")
                return DispatchResult(
                    success=False,
                    incident_id=incident.id,
                    state=state,
                    severity_score=severity_score,
                    required_team_types=required_types,
                    error="Failed to fetch available teams",
                )

            if not teams:
                return DispatchResult(
                    success=False,
                    incident_id=incident.id,
                    state=state,
                    severity_score=severity_score,
                    required_team_types=required_types,
                    team_source=team_source,
                    message="No available teams found, and no placeholder teams could be created",
                    error="No available teams",
                )
            state = DispatchState.TEAMS_RESOLVED

            selected = TeamRanker.rank(location, required_types, teams, severity_score)

            await self._safe_update_incident(incident.id, {
                "status": IncidentStatus.ASSIGNED.value,
                "assigned_teams": self._assignment_snapshot(selected),
            }, "team assignments")
            state = DispatchState.ASSIGNED

            outcomes = await asyncio.gather(*[
                self.assignment_service.assign_team(r, incident, location, severity_score)
                for r in selected
            ])
            successful = [o for o in outcomes if o.success]
            for failed in (o for o in outcomes if not o.success):
                logger.warning(f"Team {failed.ranked.team.id} not assigned to incident {incident.id}: {failed.error}")

            dispatched = [self._dispatched_team(o) for o in successful]

            try:
                result = await self.notifier.notify_reporter(incident, dispatched)
                if not result.success:
                    logger.warning(f"Reporter notification for incident {incident.id} failed: {result.error}")
            except Exception as e:
                logger.error(f"Error sending notification to reporter for incident {incident.id}: {e}")

            logger.info(
                f"Incident {incident.id} dispatched: {len(dispatched)}/{len(selected)} teams "
                f"(score {severity_score}, source {team_source})"
            )

            return DispatchResult(
                success=True,
                incident_id=incident.id,
                state=state,
                severity_score=severity_score,
                required_team_types=required_types,
                team_source=team_source,
                teams_found=len(teams),
                teams_assigned=len(dispatched),
                assigned_teams=dispatched,
                status="Teams dispatched",
                message=f"{len(dispatched)} teams have been dispatched to your location and will arrive shortly.",
            )

        except Exception as e:
            logger.error(f"Error processing incident {incident_id}: {e}", exc_info=True)
            note = f"Error processing incident: {e}"
            if incident_id:
                await self._safe_update_incident(incident_id, {
                    "status": IncidentStatus.PENDING.value,
                    "verified": VerificationStatus.CONFIRMED.value,
                    "notes": f"{notes}\n{note}" if notes else note,
                }, "processing failure")
            return DispatchResult(
                success=False,
                incident_id=incident_id,
                state=DispatchState.PENDING_RETRY,
                status=IncidentStatus.PENDING.value,
                error=str(e),
            )

    async def process_incident_by_id(self, incident_id: str) -> Optional[DispatchResult]:
        """Load the current record and process it; None if it does not exist."""
        incident = await self.incidents.get_incident(incident_id)
        if incident is None:
            return None
        return await self.process_incident(incident)


# Global service instance (singleton pattern)
_processing_service = None


def get_incident_processing_service() -> IncidentProcessingService:
    """
    Get or create IncidentProcessingService singleton instance.
    """
    global _processing_service
    if _processing_service is None:
        _processing_service = IncidentProcessingService()
    return _processing_service
