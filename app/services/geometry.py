from __future__ import annotations

import math

from app.schemas.commute import Location

EARTH_RADIUS_METERS = 6_371_000.0


def haversine_meters(a: Location, b: Location) -> float:
    """Return the great-circle distance between two coordinates in meters."""
    if a == b:
        return 0.0

    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.lng - a.lng)

    sin_lat = math.sin(d_lat / 2)
    sin_lng = math.sin(d_lng / 2)
    value = sin_lat * sin_lat + math.cos(lat1) * math.cos(lat2) * sin_lng * sin_lng
    # Guard against tiny float overshoot above 1.0 for antipodal points
    value = min(1.0, value)

    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(value), math.sqrt(1 - value))
