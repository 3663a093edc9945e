import pytest

from app.models.location import Location
from app.utils.geo import calculate_distance, distance_meters, haversine_km, normalize_location, to_coordinate


def test_normalize_fills_both_alias_pairs():
    loc = normalize_location({"lat": 21.2, "lng": 72.78, "address": "X"})
    assert loc.is_valid
    assert (loc.latitude, loc.longitude) == (21.2, 72.78)
    assert (loc.lat, loc.lng) == (21.2, 72.78)
    assert loc.address == "X"


def test_normalize_parses_json_string_and_defaults_address():
    loc = normalize_location('{"latitude": "18.5", "longitude": 73.8}')
    assert loc.is_valid
    assert loc.lat == 18.5
    assert loc.address == "Address not provided"


@pytest.mark.parametrize("payload", ["not json", 42, None, [1, 2]])
def test_normalize_falls_back_for_unusable_payloads(payload):
    loc = normalize_location(payload)
    assert not loc.is_valid
    assert (loc.latitude, loc.longitude) == (0.0, 0.0)
    assert loc.address == "Unknown location"


def test_normalize_marks_missing_or_non_numeric_coordinates_invalid():
    assert not normalize_location({"lat": 21.2}).is_valid
    assert not normalize_location({"lat": "north", "lng": 72.78}).is_valid


def test_fallback_location_stays_invalid_after_round_trip():
    fallback = normalize_location("not json")
    stored = fallback.to_document()
    assert stored["isValid"] is False
    assert not normalize_location(stored).is_valid
    assert not normalize_location(fallback).is_valid


def test_to_coordinate_rejects_booleans_and_nan():
    assert to_coordinate(True) is None
    assert to_coordinate(float("nan")) is None
    assert to_coordinate("12.5") == 12.5


def test_distance_between_identical_points_is_zero():
    point = {"lat": 21.2, "lng": 72.78}
    assert calculate_distance(point, point) == 0


def test_distance_is_symmetric():
    a = {"lat": 18.5204, "lng": 73.8567}
    b = {"latitude": 21.2, "longitude": 72.78}
    assert calculate_distance(a, b) == pytest.approx(calculate_distance(b, a))


def test_distance_known_value():
    # Pune -> Mumbai, roughly 120 km
    assert haversine_km(18.5204, 73.8567, 19.0760, 72.8777) == pytest.approx(120, abs=5)


def test_distance_accepts_mixed_shapes():
    a = Location(latitude=18.5204, longitude=73.8567, lat=18.5204, lng=73.8567, is_valid=True)
    b = {"latitude": 18.5204, "lng": 73.8667}
    assert calculate_distance(a, b) == pytest.approx(1.05, abs=0.05)


def test_non_numeric_coordinates_return_fallback_distance():
    assert calculate_distance({"lat": "abc", "lng": 1}, {"lat": 0, "lng": 0}) == 10.0


def test_missing_components_are_read_as_zero():
    assert calculate_distance({"lat": 0}, {"lat": 0, "lng": 0}) == 0


def test_distance_meters_scales_kilometers():
    a = {"lat": 21.2, "lng": 72.78}
    b = {"lat": 21.2005, "lng": 72.78}
    assert distance_meters(a, b) == pytest.approx(calculate_distance(a, b) * 1000)
    assert distance_meters(a, b) < 100


def test_deeply_nested_json_falls_back_instead_of_raising():
    loc = normalize_location("[" * 100000)
    assert not loc.is_valid
    assert loc.address == "Unknown location"
