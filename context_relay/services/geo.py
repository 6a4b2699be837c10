"""
Geospatial helpers: great-circle distance and the accepted bounding region.
"""

import math
from dataclasses import dataclass

from context_relay.models.schemas import Coordinates

EARTH_RADIUS_KM = 6371.0


def deg2rad(deg: float) -> float:
    return deg * (math.pi / 180)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in kilometers between two points given in degrees."""
    d_lat = deg2rad(lat2 - lat1)
    d_lon = deg2rad(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(deg2rad(lat1)) * math.cos(deg2rad(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_m(a: Coordinates, b: Coordinates) -> float:
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude) * 1000


@dataclass(frozen=True)
class BoundingRegion:
    """Fixed lat/lon rectangle; bounds are inclusive."""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, point: Coordinates) -> bool:
        return (
            self.min_lat <= point.latitude <= self.max_lat
            and self.min_lon <= point.longitude <= self.max_lon
        )


# Approximate limits of Recife
RECIFE_REGION = BoundingRegion(min_lat=-8.16, max_lat=-7.93, min_lon=-35.00, max_lon=-34.80)
