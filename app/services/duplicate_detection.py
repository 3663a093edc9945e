"""
Duplicate Detection Service - folds repeat reports into an open incident.

DESIGN PRINCIPLES:
- Only OPEN incidents of the SAME TYPE are candidates
- A report within DUPLICATE_DISTANCE_THRESHOLD_METERS is a duplicate
- First match in query order wins (no nearest-match ranking)
- A merged duplicate is NOT re-dispatched; it only bumps the report count
  and escalates severity

Two concurrent creations near the same spot may both miss each other
(check-then-act); that window is accepted.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional
import logging

from app.core.settings import settings
from app.models.incident import Incident, OPEN_STATUSES, Severity
from app.models.location import Location
from app.stores import IncidentStore, get_stores
from app.utils.geo import distance_meters, normalize_location

logger = logging.getLogger(__name__)


class DuplicateDetectionService:
    """
    Service for detecting and merging duplicate incident reports.
    """

    def __init__(self, incident_store: Optional[IncidentStore] = None):
        self.incidents = incident_store or get_stores().incidents

    @property
    def threshold_meters(self) -> float:
        return settings.DUPLICATE_DISTANCE_THRESHOLD_METERS

    def find_duplicate(
        self,
        incident_type: str,
        location: Location,
        open_incidents: Iterable[Incident],
    ) -> Optional[Incident]:
        """
        Return the first open incident of the same type within the
        proximity threshold, or None.

        Args:
            incident_type: Type of the new report
            location: Normalized location of the new report
            open_incidents: Candidates in query order

        Returns:
            The matching Incident, or None
        """
        if not location.is_valid:
            return None

        for candidate in open_incidents:
            if candidate.type != incident_type or candidate.status.value not in OPEN_STATUSES:
                continue

            candidate_location = normalize_location(candidate.location)
            if not candidate_location.is_valid:
                logger.debug(f"Skipping incident {candidate.id}: stored location is not usable")
                continue

            distance = distance_meters(location, candidate_location)
            if distance <= self.threshold_meters:
                logger.warning(
                    f"Duplicate report detected: {distance:.1f}m from incident {candidate.id} ({incident_type})"
                )
                return candidate

        return None

    async def check_duplicate(self, incident_type: str, location_data) -> Optional[Incident]:
        """Query open incidents of the same type and scan them for a duplicate."""
        location = normalize_location(location_data)
        if not location.is_valid:
            return None
        open_incidents = await self.incidents.get_open_incidents_by_type(incident_type)
        return self.find_duplicate(incident_type, location, open_incidents)

    async def merge_duplicate(self, existing: Incident) -> Incident:
        """
        Fold a new report into an existing incident.

        Increments reported_no by exactly one and escalates severity to High.
        Status and assigned teams are left untouched.
        """
        reported_no = (existing.reported_no or 1) + 1
        severity = existing.severity if existing.severity == Severity.HIGH else Severity.HIGH

        updated = await self.incidents.update_incident(existing.id, {
            "reported_no": reported_no,
            "severity": severity,
            "updated_at": datetime.now(timezone.utc),
        })

        logger.info(
            f"Merged duplicate report into incident {existing.id}: "
            f"reported_no={reported_no}, severity={updated.severity.value}"
        )
        return updated


# Global service instance (singleton pattern)
_duplicate_service = None


def get_duplicate_detection_service() -> DuplicateDetectionService:
    """
    Get or create DuplicateDetectionService singleton instance.

    Returns:
        DuplicateDetectionService: The global duplicate detection service instance
    """
    global _duplicate_service
    if _duplicate_service is None:
        _duplicate_service = DuplicateDetectionService()
    return _duplicate_service
