"""
Location normalization and great-circle distance.

Location payloads arrive in several shapes (lat/lng or latitude/longitude,
objects or JSON-encoded strings). normalize_location() folds them into a
single Location; calculate_distance() never raises on bad input.
"""

import json
import logging
import math
from typing import Any, Optional, Tuple

from app.core.settings import settings
from app.models.location import Location

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0088

UNKNOWN_ADDRESS = "Unknown location"
DEFAULT_ADDRESS = "Address not provided"


def _fallback_location(error: Optional[str] = None) -> Location:
    return Location(
        latitude=0.0,
        longitude=0.0,
        lat=0.0,
        lng=0.0,
        address=UNKNOWN_ADDRESS,
        is_valid=False,
        error=error,
    )


def to_coordinate(value: Any) -> Optional[float]:
    """
    Read a coordinate as a finite float.

    Numeric strings are accepted. Returns None for missing, boolean,
    non-numeric, NaN or infinite values.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def normalize_location(location_data: Any) -> Location:
    """
    Normalize an arbitrary location payload into a Location.

    Rules:
    - Strings are parsed as JSON; parse failures fall back to an invalid
      0,0 location with address "Unknown location".
    - Anything that is not an object falls back the same way.
    - lat <-> latitude and lng <-> longitude are filled in both directions.
    - address defaults to "Address not provided".
    - is_valid is True only when both coordinates are present and numeric.
      A stored isValid=false is kept, so a fallback 0,0 location stays
      invalid when it is read back.

    Never raises.
    """
    if isinstance(location_data, Location):
        return location_data.model_copy()

    try:
        data = json.loads(location_data) if isinstance(location_data, str) else location_data
    except (ValueError, RecursionError) as e:
        # RecursionError: pathologically nested JSON
        return _fallback_location(str(e))

    if not isinstance(data, dict):
        return _fallback_location()

    try:
        raw = dict(data)

        if raw.get("latitude") is None and raw.get("lat") is not None:
            raw["latitude"] = raw["lat"]
        if raw.get("longitude") is None and raw.get("lng") is not None:
            raw["longitude"] = raw["lng"]

        latitude = to_coordinate(raw.get("latitude"))
        longitude = to_coordinate(raw.get("longitude"))

        if raw.get("latitude") is not None and latitude is None:
            logger.warning(f"Non-numeric latitude in location payload: {raw.get('latitude')!r}")
        if raw.get("longitude") is not None and longitude is None:
            logger.warning(f"Non-numeric longitude in location payload: {raw.get('longitude')!r}")

        address = raw.get("address")
        if not address or not isinstance(address, str):
            address = DEFAULT_ADDRESS

        return Location(
            latitude=latitude,
            longitude=longitude,
            lat=latitude,
            lng=longitude,
            address=address,
            is_valid=latitude is not None and longitude is not None and raw.get("isValid", raw.get("is_valid")) is not False,
            error=raw.get("error") if isinstance(raw.get("error"), str) else None,
        )
    except Exception as e:
        logger.warning(f"Location normalization failed: {e}")
        return _fallback_location(str(e))


def _point_coordinates(point: Any) -> Tuple[Any, Any]:
    if isinstance(point, Location):
        return point.latitude, point.longitude
    if isinstance(point, dict):
        lat = point.get("latitude")
        if lat is None:
            lat = point.get("lat")
        lng = point.get("longitude")
        if lng is None:
            lng = point.get("lng")
        # Missing components are read as 0, matching the stored-record convention
        return (0 if lat is None else lat), (0 if lng is None else lng)
    return None, None


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points, in kilometers."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)
    a = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def calculate_distance(point1: Any, point2: Any) -> float:
    """
    Distance in kilometers between two points.

    Points may be Location instances or dicts using either alias pair.
    Non-numeric coordinates return settings.FALLBACK_DISTANCE_KM (10 km
    by default) and log the anomaly instead of raising.
    """
    try:
        raw_lat1, raw_lng1 = _point_coordinates(point1)
        raw_lat2, raw_lng2 = _point_coordinates(point2)
        coords = [to_coordinate(v) for v in (raw_lat1, raw_lng1, raw_lat2, raw_lng2)]

        if any(c is None for c in coords):
            logger.warning(f"Invalid coordinates for distance calculation: {point1!r} -> {point2!r}")
            return settings.FALLBACK_DISTANCE_KM

        return haversine_km(*coords)
    except Exception as e:
        logger.error(f"Error calculating distance: {e}")
        return settings.FALLBACK_DISTANCE_KM


def distance_meters(point1: Any, point2: Any) -> float:
    return calculate_distance(point1, point2) * 1000.0
