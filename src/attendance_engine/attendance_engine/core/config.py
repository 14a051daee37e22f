from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import time
from typing import Any, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..common.datetime_utils import parse_clock_time
from . import constants
from .exceptions import ConfigurationError


@dataclass(frozen=True)
class EngineConfig:
    """Attendance rules for one deployment.

    Built once at process start and handed to the policy, geofence checker,
    sweeper and engine constructors.
    """

    timezone: str = constants.DEFAULT_TIMEZONE
    earliest_check_in: time = time(*constants.DEFAULT_EARLIEST_CHECK_IN)
    late_threshold: time = time(*constants.DEFAULT_LATE_THRESHOLD)
    latest_check_in: time = time(*constants.DEFAULT_LATEST_CHECK_IN)
    auto_checkout_at: time = time(*constants.DEFAULT_AUTO_CHECKOUT_AT)
    max_class_duration_hours: float = constants.DEFAULT_MAX_CLASS_DURATION_HOURS
    geofence_latitude: float = constants.DEFAULT_GEOFENCE_LATITUDE
    geofence_longitude: float = constants.DEFAULT_GEOFENCE_LONGITUDE
    geofence_radius_meters: float = constants.DEFAULT_GEOFENCE_RADIUS_METERS
    sweep_lookback_days: int = constants.DEFAULT_SWEEP_LOOKBACK_DAYS
    lock_timeout_seconds: int = constants.DEFAULT_LOCK_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(f"Unknown timezone: {self.timezone!r}") from e

        if self.earliest_check_in >= self.latest_check_in:
            raise ConfigurationError("earliest_check_in must be before latest_check_in")
        if not self.earliest_check_in <= self.late_threshold <= self.latest_check_in:
            raise ConfigurationError("late_threshold must fall inside the check-in window")
        if self.auto_checkout_at < self.latest_check_in:
            raise ConfigurationError("auto_checkout_at cannot be before latest_check_in")
        if self.max_class_duration_hours <= 0:
            raise ConfigurationError("max_class_duration_hours must be positive")
        if not math.isfinite(self.geofence_radius_meters) or self.geofence_radius_meters <= 0:
            raise ConfigurationError("geofence_radius_meters must be positive")
        if not -90 <= self.geofence_latitude <= 90 or not -180 <= self.geofence_longitude <= 180:
            raise ConfigurationError("geofence center is out of range")
        if self.sweep_lookback_days < 0:
            raise ConfigurationError("sweep_lookback_days cannot be negative")
        if self.lock_timeout_seconds <= 0:
            raise ConfigurationError("lock_timeout_seconds must be positive")

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> "EngineConfig":
        """Build from the ``ATTENDANCE`` dict of a settings module.

        Missing keys keep their defaults; clock values accept "HH:MM" strings.
        """

        def _clock(key: str, default: time) -> time:
            value = settings.get(key)
            if value is None or value == "":
                return default
            if isinstance(value, time):
                return value
            try:
                return parse_clock_time(str(value))
            except ValueError as e:
                raise ConfigurationError(f"{key}: {e}") from e

        def _number(key: str, default, cast):
            value = settings.get(key)
            if value is None or value == "":
                return default
            try:
                return cast(value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"{key}: invalid number {value!r}") from e

        defaults = cls.__dataclass_fields__
        return cls(
            timezone=str(settings.get("timezone") or constants.DEFAULT_TIMEZONE),
            earliest_check_in=_clock("earliest_check_in", defaults["earliest_check_in"].default),
            late_threshold=_clock("late_threshold", defaults["late_threshold"].default),
            latest_check_in=_clock("latest_check_in", defaults["latest_check_in"].default),
            auto_checkout_at=_clock("auto_checkout_at", defaults["auto_checkout_at"].default),
            max_class_duration_hours=_number(
                "max_class_duration_hours", constants.DEFAULT_MAX_CLASS_DURATION_HOURS, float
            ),
            geofence_latitude=_number("geofence_latitude", constants.DEFAULT_GEOFENCE_LATITUDE, float),
            geofence_longitude=_number("geofence_longitude", constants.DEFAULT_GEOFENCE_LONGITUDE, float),
            geofence_radius_meters=_number(
                "geofence_radius_meters", constants.DEFAULT_GEOFENCE_RADIUS_METERS, float
            ),
            sweep_lookback_days=_number("sweep_lookback_days", constants.DEFAULT_SWEEP_LOOKBACK_DAYS, int),
            lock_timeout_seconds=_number("lock_timeout_seconds", constants.DEFAULT_LOCK_TIMEOUT_SECONDS, int),
        )
