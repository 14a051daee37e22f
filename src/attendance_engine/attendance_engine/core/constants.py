"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_METERS = 6_371_000.0

DEFAULT_TIMEZONE = "Africa/Nairobi"
DEFAULT_EARLIEST_CHECK_IN = (7, 0)
DEFAULT_LATE_THRESHOLD = (9, 0)
DEFAULT_LATEST_CHECK_IN = (17, 0)
DEFAULT_AUTO_CHECKOUT_AT = (17, 0)
DEFAULT_MAX_CLASS_DURATION_HOURS = 2.0

DEFAULT_GEOFENCE_LATITUDE = -1.22486
DEFAULT_GEOFENCE_LONGITUDE = 36.70958
DEFAULT_GEOFENCE_RADIUS_METERS = 50.0

DEFAULT_SWEEP_LOOKBACK_DAYS = 3
DEFAULT_LOCK_TIMEOUT_SECONDS = 5
DEFAULT_ABSENCE_CATCH_UP_DAYS = 7
