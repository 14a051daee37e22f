from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import from_utc_naive, to_utc_naive
from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ClassAttendanceDay
from .repository import ClassAttendanceRepository

_COLUMNS = (
    "class_attendance_id, trainer_id, class_id, work_date, check_in_time, check_out_time, "
    "status, auto_checkout, work_attendance_id"
)


def _to_record(r: dict) -> ClassAttendanceDay:
    return ClassAttendanceDay(
        class_attendance_id=int(r["class_attendance_id"]),
        trainer_id=int(r["trainer_id"]),
        class_id=int(r["class_id"]),
        work_date=r["work_date"],
        check_in_time=from_utc_naive(r["check_in_time"]),
        check_out_time=from_utc_naive(r.get("check_out_time")),
        status=AttendanceStatus(r["status"]),
        auto_checkout=bool(r.get("auto_checkout")),
        work_attendance_id=int(r["work_attendance_id"]) if r.get("work_attendance_id") else None,
    )


class MySQLClassAttendanceRepository(ClassAttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_class_day(self, trainer_id: int, class_id: int, work_date: date) -> Optional[ClassAttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM class_attendance
                WHERE trainer_id=%s AND class_id=%s AND work_date=%s
                """,
                (int(trainer_id), int(class_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def find_open_class_session(self, trainer_id: int, work_date: date, *, now: datetime) -> Optional[ClassAttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM class_attendance
                WHERE trainer_id=%s AND work_date=%s
                  AND (check_out_time IS NULL OR (auto_checkout=1 AND check_out_time > %s))
                ORDER BY check_in_time DESC
                LIMIT 1
                """,
                (int(trainer_id), work_date, to_utc_naive(now)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_class_days_for_trainer(self, trainer_id: int, work_date: date) -> Sequence[ClassAttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM class_attendance
                WHERE trainer_id=%s AND work_date=%s
                ORDER BY check_in_time ASC
                """,
                (int(trainer_id), work_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_open_class_days(self, *, since: date, trainer_id: Optional[int] = None) -> Sequence[ClassAttendanceDay]:
        clauses = ["check_out_time IS NULL", "work_date >= %s"]
        params: list[object] = [since]
        if trainer_id is not None:
            clauses.append("trainer_id=%s")
            params.append(int(trainer_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM class_attendance
                WHERE {" AND ".join(clauses)}
                ORDER BY check_in_time ASC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def upsert_class_day(self, record: ClassAttendanceDay) -> ClassAttendanceDay:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO class_attendance
                    (trainer_id, class_id, work_date, check_in_time, check_out_time,
                     status, auto_checkout, work_attendance_id)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    class_attendance_id=LAST_INSERT_ID(class_attendance_id),
                    check_in_time=VALUES(check_in_time),
                    check_out_time=VALUES(check_out_time),
                    status=VALUES(status),
                    auto_checkout=VALUES(auto_checkout),
                    work_attendance_id=VALUES(work_attendance_id)
                """,
                (
                    int(record.trainer_id),
                    int(record.class_id),
                    record.work_date,
                    to_utc_naive(record.check_in_time),
                    to_utc_naive(record.check_out_time),
                    record.status.value,
                    1 if record.auto_checkout else 0,
                    record.work_attendance_id,
                ),
            )
            return replace(record, class_attendance_id=int(cur.lastrowid))

    def close_if_open(self, record: ClassAttendanceDay, *, check_out_time: datetime, auto_checkout: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE class_attendance
                SET check_out_time=%s, auto_checkout=%s
                WHERE trainer_id=%s AND class_id=%s AND work_date=%s AND check_out_time IS NULL
                """,
                (
                    to_utc_naive(check_out_time),
                    1 if auto_checkout else 0,
                    int(record.trainer_id),
                    int(record.class_id),
                    record.work_date,
                ),
            )
            return cur.rowcount > 0
