"""
Geographic helpers for candidate search.

The bounding box is a flat-earth approximation (1 degree of latitude is
roughly 111 km). It over-selects near the corners; the ranking stage
re-filters by content, so that is acceptable for a civic-scale radius.
"""

import math
from typing import NamedTuple

KM_PER_DEGREE = 111.0
EARTH_RADIUS_METERS = 6371000


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        """Inclusive on every edge."""
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


def bounding_box(lat: float, lng: float, radius_km: float) -> BoundingBox:
    """
    Box of half-width radius_km around (lat, lng).

    No polar guard: cos(lat) only approaches zero far outside any
    municipality this service covers.
    """
    lat_delta = radius_km / KM_PER_DEGREE
    lng_delta = radius_km / (KM_PER_DEGREE * math.cos(math.radians(lat)))
    return BoundingBox(
        min_lat=lat - lat_delta,
        max_lat=lat + lat_delta,
        min_lng=lng - lng_delta,
        max_lng=lng + lng_delta,
    )


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c
