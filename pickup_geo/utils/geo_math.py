"""
Great-circle helpers for coordinates.

Kept dependency free so every layer can compute distances without a GIS
stack.
"""

import math
from typing import Tuple

from pickup_geo.core.exceptions import InvalidInputError
from pickup_geo.schemas.geo import Coordinates

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LATITUDE = 111.0
KM_TO_MILES = 0.621371
FEET_PER_MILE = 5280


def distance_km(a: Coordinates, b: Coordinates) -> float:
    """Haversine distance in kilometres between two coordinates."""
    if a == b:
        return 0.0

    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(b.longitude - a.longitude)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    # rounding can push h slightly outside [0, 1] near the poles or antipodes
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def initial_bearing_deg(a: Coordinates, b: Coordinates) -> float:
    """Initial compass bearing from a to b, in degrees [0, 360)."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lon = math.radians(b.longitude - a.longitude)

    x = math.sin(d_lon) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(d_lon)
    return math.degrees(math.atan2(x, y)) % 360.0


def bounding_box(center: Coordinates, radius_km: float) -> Tuple[float, float, float, float]:
    """
    Approximate (min_lat, max_lat, min_lon, max_lon) box around a point.

    Used to pre-filter stored venues before exact distances are computed.
    The box does not wrap across the antimeridian; it is clamped instead.
    """
    if radius_km < 0 or math.isnan(radius_km):
        raise InvalidInputError(f"Radius must be a non-negative number, got {radius_km}")

    lat_offset = radius_km / KM_PER_DEGREE_LATITUDE
    min_lat = max(-90.0, center.latitude - lat_offset)
    max_lat = min(90.0, center.latitude + lat_offset)

    cos_lat = math.cos(math.radians(center.latitude))
    if cos_lat < 1e-6 or min_lat <= -90.0 or max_lat >= 90.0:
        return min_lat, max_lat, -180.0, 180.0

    lon_offset = radius_km / (KM_PER_DEGREE_LATITUDE * cos_lat)
    if lon_offset >= 180.0:
        return min_lat, max_lat, -180.0, 180.0
    return (
        min_lat,
        max_lat,
        max(-180.0, center.longitude - lon_offset),
        min(180.0, center.longitude + lon_offset),
    )


def format_distance(km: float, unit: str = "km") -> str:
    """
    Render a distance for display.

    Below one unit the small unit is used (metres or feet, rounded to the
    nearest 10), otherwise one decimal place: "850 m", "2.3 km", "1.2 mi".
    """
    if km is None or isinstance(km, bool) or not isinstance(km, (int, float)):
        raise InvalidInputError(f"Distance must be a number, got {km!r}")
    if math.isnan(km) or math.isinf(km) or km < 0:
        raise InvalidInputError(f"Distance must be a finite non-negative number, got {km}")

    if unit == "km":
        value, small_factor, small_unit = km, 1000, "m"
    elif unit == "mi":
        value, small_factor, small_unit = km * KM_TO_MILES, FEET_PER_MILE, "ft"
    else:
        raise InvalidInputError(f"Unsupported distance unit: {unit}")

    if value < 1:
        small = int(math.floor(value * small_factor / 10.0 + 0.5)) * 10
        if small < small_factor:
            return f"{small} {small_unit}"
        value = 1.0

    return f"{value:.1f} {unit}"
