from __future__ import annotations

from dataclasses import dataclass

from .attendance.absence import AbsenceService
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.policy import TimePolicy
from .attendance.query_service import AttendanceQueryService
from .attendance.service import AttendanceSessionEngine
from .attendance.sweeper import AutoCheckoutSweeper
from .classes.mysql_class_attendance_repository import MySQLClassAttendanceRepository
from .classes.mysql_class_repository import MySQLClassRepository
from .core.config import EngineConfig
from .database.connection import DBConfig, DatabaseConnection
from .database.locks import MySQLNamedLock
from .geofence.checker import GeofenceChecker
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, SessionIdentityProvider


@dataclass(frozen=True)
class Container:
    config: EngineConfig
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    classes_repo: MySQLClassRepository
    attendance_repo: MySQLAttendanceRepository
    class_attendance_repo: MySQLClassAttendanceRepository

    auth_service: AuthService
    identity: SessionIdentityProvider
    sweeper: AutoCheckoutSweeper
    attendance_engine: AttendanceSessionEngine
    absence_service: AbsenceService
    query_service: AttendanceQueryService


def build_container(*, db_config: dict, engine_config: EngineConfig | None = None) -> Container:
    engine_config = engine_config or EngineConfig()
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        connect_timeout=int(db_config.get("connect_timeout", 5)),
    )
    conn = DatabaseConnection.get_instance(config)

    users_repo = MySQLUserRepository(conn)
    classes_repo = MySQLClassRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    class_attendance_repo = MySQLClassAttendanceRepository(conn)
    locks = MySQLNamedLock(conn, timeout_seconds=engine_config.lock_timeout_seconds)

    policy = TimePolicy(engine_config)
    sweeper = AutoCheckoutSweeper(
        attendance_repo,
        class_attendance_repo,
        policy,
        locks,
        lookback_days=engine_config.sweep_lookback_days,
    )
    attendance_engine = AttendanceSessionEngine(
        attendance_repo,
        class_attendance_repo,
        classes_repo,
        classes_repo,
        policy,
        GeofenceChecker(engine_config),
        sweeper,
        locks,
        strategy_factory=AttendanceStrategyFactory(),
    )

    return Container(
        config=engine_config,
        conn=conn,
        users_repo=users_repo,
        classes_repo=classes_repo,
        attendance_repo=attendance_repo,
        class_attendance_repo=class_attendance_repo,
        auth_service=AuthService(users_repo),
        identity=SessionIdentityProvider(users_repo),
        sweeper=sweeper,
        attendance_engine=attendance_engine,
        absence_service=AbsenceService(attendance_repo, users_repo, policy),
        query_service=AttendanceQueryService(attendance_repo, class_attendance_repo, classes_repo, users_repo, policy),
    )
