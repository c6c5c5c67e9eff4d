"""Distance and bearing helpers on WGS84 lat/lon pairs."""

from __future__ import annotations

import math

from hushmap.errors import InvalidCoordinate


# Mean Earth radius in meters
EARTH_RADIUS_M = 6371008.8


def validate_coordinate(lat: float, lon: float) -> None:
    """Raise InvalidCoordinate unless lat/lon is a finite, in-range pair."""
    if lat is None or lon is None:
        raise InvalidCoordinate(lat, lon, "missing component")
    if math.isnan(lat) or math.isnan(lon):
        raise InvalidCoordinate(lat, lon, "NaN component")
    if math.isinf(lat) or math.isinf(lon):
        raise InvalidCoordinate(lat, lon, "infinite component")
    if not -90.0 <= lat <= 90.0:
        raise InvalidCoordinate(lat, lon, "latitude out of range")
    if not -180.0 <= lon <= 180.0:
        raise InvalidCoordinate(lat, lon, "longitude out of range")


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points, in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = phi2 - phi1
    dlambda = math.radians(lon2 - lon1)

    a = (
        math.sin(dphi / 2.0) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2.0) ** 2
    )
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def initial_bearing_deg(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial bearing from point 1 to point 2, degrees clockwise from north in [0, 360)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dlambda = math.radians(lon2 - lon1)

    x = math.sin(dlambda) * math.cos(phi2)
    y = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlambda)
    return (math.degrees(math.atan2(x, y)) + 360.0) % 360.0
