"""Geofence checks using the haversine great-circle distance."""
from __future__ import annotations

import math
from dataclasses import dataclass

from ..common.validators import require_finite, require_latitude, require_longitude
from ..core.config import EngineConfig
from ..core.constants import EARTH_RADIUS_METERS
from ..core.exceptions import OutsideGeofenceError, ValidationError
from .model import GeoPoint, Location


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates in meters."""
    lat1 = require_latitude(lat1, "lat1")
    lon1 = require_longitude(lon1, "lon1")
    lat2 = require_latitude(lat2, "lat2")
    lon2 = require_longitude(lon2, "lon2")

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def is_within_fence(lat: float, lon: float, center: GeoPoint, radius_meters: float) -> bool:
    radius = require_finite(radius_meters, "radius_meters")
    if radius < 0:
        raise ValidationError("radius_meters cannot be negative")
    return distance_meters(lat, lon, center.latitude, center.longitude) <= radius


@dataclass(frozen=True)
class GeofenceResult:
    inside: bool
    distance_meters: float


class GeofenceChecker:
    """Checks client locations against the configured premises."""

    def __init__(self, config: EngineConfig):
        self._center = GeoPoint(config.geofence_latitude, config.geofence_longitude)
        self._radius = float(config.geofence_radius_meters)

    @property
    def center(self) -> GeoPoint:
        return self._center

    @property
    def radius_meters(self) -> float:
        return self._radius

    def check(self, location: Location) -> GeofenceResult:
        distance = distance_meters(
            location.latitude, location.longitude, self._center.latitude, self._center.longitude
        )
        return GeofenceResult(inside=distance <= self._radius, distance_meters=distance)

    def require_inside(self, location: Location) -> GeofenceResult:
        result = self.check(location)
        if not result.inside:
            raise OutsideGeofenceError(result.distance_meters, self._radius)
        return result
