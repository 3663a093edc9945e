import asyncio
import math

from conftest import add_incident

from app.models.incident import IncidentStatus, Severity
from app.services.duplicate_detection import DuplicateDetectionService
from app.utils.geo import normalize_location

NEAR = {"lat": 21.2004, "lng": 72.78}   # about 45 m north
FAR = {"lat": 21.21, "lng": 72.78}      # about 1.1 km north


def test_open_incident_of_same_type_nearby_is_duplicate(store):
    existing = add_incident(store, "Fire")
    service = DuplicateDetectionService(store)

    assert asyncio.run(service.check_duplicate("Fire", NEAR)).id == existing.id


def test_far_away_or_other_type_is_not_duplicate(store):
    add_incident(store, "Fire")
    service = DuplicateDetectionService(store)

    assert asyncio.run(service.check_duplicate("Fire", FAR)) is None
    assert asyncio.run(service.check_duplicate("Flood", NEAR)) is None


def test_closed_incidents_are_ignored(store):
    add_incident(store, "Fire", status=IncidentStatus.RESOLVED.value)
    add_incident(store, "Fire", status=IncidentStatus.ERROR.value)
    service = DuplicateDetectionService(store)

    assert asyncio.run(service.check_duplicate("Fire", NEAR)) is None


def test_in_progress_and_assigned_count_as_open(store):
    existing = add_incident(store, "Fire", status=IncidentStatus.IN_PROGRESS.value)
    service = DuplicateDetectionService(store)

    assert asyncio.run(service.check_duplicate("Fire", NEAR)).id == existing.id


def test_first_match_in_query_order_wins(store):
    first = add_incident(store, "Fire", location={"lat": 21.2008, "lng": 72.78})
    add_incident(store, "Fire", location={"lat": 21.2, "lng": 72.78})
    service = DuplicateDetectionService(store)

    open_incidents = asyncio.run(store.get_open_incidents_by_type("Fire"))
    match = service.find_duplicate("Fire", normalize_location({"lat": 21.2, "lng": 72.78}), open_incidents)
    assert match.id == first.id


def test_stored_incident_with_bad_location_is_skipped(store):
    add_incident(store, "Fire", location="garbage")
    service = DuplicateDetectionService(store)

    assert asyncio.run(service.check_duplicate("Fire", {"lat": 0, "lng": 0})) is None


def test_invalid_new_location_never_matches(store):
    add_incident(store, "Fire")
    service = DuplicateDetectionService(store)

    assert asyncio.run(service.check_duplicate("Fire", {"address": "somewhere"})) is None


def test_threshold_is_configurable(store, monkeypatch):
    from app.core.settings import settings

    add_incident(store, "Fire")
    service = DuplicateDetectionService(store)
    monkeypatch.setattr(settings, "DUPLICATE_DISTANCE_THRESHOLD_METERS", 2000.0)

    assert asyncio.run(service.check_duplicate("Fire", FAR)) is not None


def test_merge_increments_count_and_escalates_severity(store):
    existing = add_incident(store, "Fire", severity="Low", reported_no=2)
    service = DuplicateDetectionService(store)

    merged = asyncio.run(service.merge_duplicate(existing))

    assert merged.reported_no == 3
    assert merged.severity == Severity.HIGH
    assert merged.status == IncidentStatus.AVAILABLE
    assert store.incidents[existing.id]["reported_no"] == 3


def test_threshold_is_inclusive_at_one_hundred_meters(store):
    meters_per_degree = 6371008.8 * math.pi / 180
    existing = add_incident(store, "Fire", location={"lat": 21.2, "lng": 72.78})
    service = DuplicateDetectionService(store)

    inside = {"lat": 21.2 + 99.9 / meters_per_degree, "lng": 72.78}
    outside = {"lat": 21.2 + 100.1 / meters_per_degree, "lng": 72.78}

    assert asyncio.run(service.check_duplicate("Fire", inside)).id == existing.id
    assert asyncio.run(service.check_duplicate("Fire", outside)) is None
