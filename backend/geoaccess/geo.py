from __future__ import annotations

from dataclasses import dataclass
from math import asin, cos, radians, sin, sqrt

"""
Great-circle helpers for login geofencing.

Distances are in meters on a spherical Earth. That is well inside the accuracy
of browser geolocation fixes, so no GIS dependency is needed.
"""

EARTH_RADIUS_METERS = 6_371_000

MIN_LATITUDE, MAX_LATITUDE = -90.0, 90.0
MIN_LONGITUDE, MAX_LONGITUDE = -180.0, 180.0


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float


def is_valid_coordinate(lat: float, lon: float) -> bool:
    return MIN_LATITUDE <= lat <= MAX_LATITUDE and MIN_LONGITUDE <= lon <= MAX_LONGITUDE


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in meters between two points."""
    lat1 = radians(a.lat)
    lon1 = radians(a.lon)
    lat2 = radians(b.lat)
    lon2 = radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Rounding can push h a hair above 1 for antipodal points
    h = min(1.0, h)
    return 2 * EARTH_RADIUS_METERS * asin(sqrt(h))


def is_within_radius(point: GeoPoint, center: GeoPoint, radius_meters: float) -> bool:
    """Inclusive: a point exactly on the boundary is inside."""
    return haversine_m(point, center) <= radius_meters
