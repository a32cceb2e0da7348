"""Spherical geodesy helpers: haversine distance, initial bearing, angle maths.

Pure functions on WGS84 decimal degrees. No ellipsoid correction; inputs are
assumed finite (callers validate upstream).
"""

from __future__ import annotations

import math

from borghi.contracts.common import Position
from borghi.contracts.enums import CardinalDirection

EARTH_RADIUS_KM = 6371.0

_CARDINALS = list(CardinalDirection)


def normalize_degrees(deg: float) -> float:
    """Wrap any angle into [0, 360)."""
    d = math.fmod(deg, 360.0)
    if d < 0:
        d += 360.0
    # fmod(-1e-15, 360) + 360 rounds to 360.0
    return 0.0 if d >= 360.0 else d


def distance_km(a: Position, b: Position) -> float:
    """Great-circle (haversine) distance in kilometers."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlon = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def bearing_degrees(a: Position, b: Position) -> float:
    """Initial great-circle bearing from *a* to *b* (0 = north, 90 = east)."""
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    dl = math.radians(b.lng - a.lng)
    y = math.sin(dl) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dl)
    return normalize_degrees(math.degrees(math.atan2(y, x)))


def angular_difference(x: float, y: float) -> float:
    """Smallest absolute angle between two bearings, in [0, 180]."""
    d = abs(normalize_degrees(x) - normalize_degrees(y))
    return 360.0 - d if d > 180.0 else d


def to_cardinal(deg: float) -> CardinalDirection:
    """Map a bearing to one of the 8 compass labels.

    Halfway values round up (22.5 -> NE), like the compass overlay always did.
    """
    index = math.floor(normalize_degrees(deg) / 45.0 + 0.5) % 8
    return _CARDINALS[index]
