"""Environment readers shared by the per-environment settings modules."""
import os


def env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


def db_config_from_env(*, default_password: str = "") -> dict:
    return {
        "host": os.environ.get("DB_HOST", "localhost"),
        "port": int(os.environ.get("DB_PORT", "3306")),
        "user": os.environ.get("DB_USER", "root"),
        "password": os.environ.get("DB_PASSWORD", default_password),
        "database": os.environ.get("DB_NAME", os.environ.get("DB_DATABASE", "attendance_db")),
        "connect_timeout": int(os.environ.get("DB_CONNECT_TIMEOUT", "5")),
    }


def attendance_settings_from_env() -> dict:
    """Raw ``ATTENDANCE`` settings; ``EngineConfig.from_mapping`` validates them.

    Unset variables are omitted so the engine defaults apply.
    """

    keys = {
        "timezone": "ATTENDANCE_TIMEZONE",
        "earliest_check_in": "ATTENDANCE_EARLIEST_CHECK_IN",
        "late_threshold": "ATTENDANCE_LATE_THRESHOLD",
        "latest_check_in": "ATTENDANCE_LATEST_CHECK_IN",
        "auto_checkout_at": "ATTENDANCE_AUTO_CHECKOUT_AT",
        "max_class_duration_hours": "ATTENDANCE_MAX_CLASS_HOURS",
        "geofence_latitude": "GEOFENCE_LATITUDE",
        "geofence_longitude": "GEOFENCE_LONGITUDE",
        "geofence_radius_meters": "GEOFENCE_RADIUS_METERS",
        "sweep_lookback_days": "ATTENDANCE_SWEEP_LOOKBACK_DAYS",
        "lock_timeout_seconds": "ATTENDANCE_LOCK_TIMEOUT_SECONDS",
    }
    out = {}
    for key, env_name in keys.items():
        value = os.environ.get(env_name)
        if value not in (None, ""):
            out[key] = value
    return out
