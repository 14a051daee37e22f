import math

import pytest

from src.attendance_engine.attendance_engine.core.config import EngineConfig
from src.attendance_engine.attendance_engine.core.exceptions import OutsideGeofenceError, ValidationError
from src.attendance_engine.attendance_engine.geofence.checker import GeofenceChecker, distance_meters, is_within_fence
from src.attendance_engine.attendance_engine.geofence.model import GeoPoint, Location

# One degree of latitude on a 6,371 km sphere.
METERS_PER_DEGREE = 6_371_000.0 * math.pi / 180


def test_distance_is_zero_for_same_point():
    assert distance_meters(-1.22486, 36.70958, -1.22486, 36.70958) == 0.0


def test_distance_one_degree_latitude():
    assert distance_meters(0.0, 0.0, 1.0, 0.0) == pytest.approx(METERS_PER_DEGREE, rel=1e-9)


def test_distance_is_symmetric():
    a = distance_meters(-1.2921, 36.8219, -4.0435, 39.6682)
    b = distance_meters(-4.0435, 39.6682, -1.2921, 36.8219)
    assert a == pytest.approx(b)
    # Nairobi to Mombasa is roughly 440 km as the crow flies.
    assert 400_000 < a < 480_000


@pytest.mark.parametrize(
    "lat1, lon1",
    [(float("nan"), 0.0), (0.0, float("inf")), (91.0, 0.0), (0.0, -181.0), ("north", 0.0), (True, 0.0)],
)
def test_distance_rejects_invalid_coordinates(lat1, lon1):
    with pytest.raises(ValidationError):
        distance_meters(lat1, lon1, 0.0, 0.0)


def test_is_within_fence_edges():
    center = GeoPoint(0.0, 0.0)
    ten_meters = 10 / METERS_PER_DEGREE
    assert is_within_fence(ten_meters, 0.0, center, 50)
    assert not is_within_fence(60 / METERS_PER_DEGREE, 0.0, center, 50)


def test_checker_reports_distance_for_far_location():
    config = EngineConfig()
    checker = GeofenceChecker(config)
    far = Location(config.geofence_latitude + 5000 / METERS_PER_DEGREE, config.geofence_longitude)

    result = checker.check(far)
    assert not result.inside
    assert result.distance_meters == pytest.approx(5000, rel=1e-3)

    with pytest.raises(OutsideGeofenceError) as exc:
        checker.require_inside(far)
    assert exc.value.to_dict()["detail"]["distance"] == 5000
    assert exc.value.to_dict()["detail"]["radius"] == 50.0


def test_checker_accepts_location_on_premises():
    config = EngineConfig()
    result = GeofenceChecker(config).require_inside(Location(config.geofence_latitude, config.geofence_longitude))
    assert result.inside


def test_location_from_dict_validates():
    loc = Location.from_dict({"latitude": "-1.2", "longitude": 36.7, "accuracy": 12})
    assert loc.latitude == -1.2
    assert loc.accuracy == 12.0

    with pytest.raises(ValidationError):
        Location.from_dict({"latitude": 1.0})
    with pytest.raises(ValidationError):
        Location.from_dict({"latitude": 1.0, "longitude": 2.0, "accuracy": -3})
    with pytest.raises(ValidationError):
        Location.from_dict([1.0, 2.0])
