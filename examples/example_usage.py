"""Example: drive the session engine directly (no Flask).

Controllers are a thin layer; the attendance rules live in the engine.
"""

import importlib

from config import get_settings_module

from src.attendance_engine.attendance_engine.container import build_container
from src.attendance_engine.attendance_engine.core.config import EngineConfig
from src.attendance_engine.attendance_engine.core.enums import AttendanceAction, Channel
from src.attendance_engine.attendance_engine.attendance.model import AttendanceCommand
from src.attendance_engine.attendance_engine.geofence.model import Location


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        engine_config=EngineConfig.from_mapping(getattr(settings, "ATTENDANCE", {}) or {}),
    )
    cfg = container.config

    command = AttendanceCommand.for_channel(
        Channel.MOBILE,
        action=AttendanceAction.WORK_CHECK_IN,
        employee_id=3,
        location=Location(cfg.geofence_latitude, cfg.geofence_longitude, accuracy=8.0),
        biometric_verified=True,
    )
    print(container.attendance_engine.handle(command).to_dict())
    print(container.query_service.today_status(3))


if __name__ == "__main__":
    main()
