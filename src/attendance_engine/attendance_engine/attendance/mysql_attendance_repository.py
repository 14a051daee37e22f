from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import to_utc_naive
from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_json
from .model import WorkAttendanceDay
from .repository import WorkAttendanceRepository
from .sessions_codec import decode_sessions, encode_sessions

_COLUMNS = "attendance_id, employee_id, work_date, status, sessions"


def _to_day(r: dict) -> WorkAttendanceDay:
    return WorkAttendanceDay(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        sessions=decode_sessions(normalize_json(r.get("sessions"))),
        status=AttendanceStatus(r["status"]),
    )


class MySQLAttendanceRepository(WorkAttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_day(self, employee_id: int, work_date: date) -> Optional[WorkAttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM work_attendance
                WHERE employee_id=%s AND work_date=%s
                """,
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _to_day(r) if r else None

    def upsert_day(self, day: WorkAttendanceDay) -> WorkAttendanceDay:
        first_in = to_utc_naive(day.first_check_in)
        last_out = to_utc_naive(day.last_check_out)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO work_attendance
                    (employee_id, work_date, status, sessions, check_in_time, check_out_time, is_open)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    attendance_id=LAST_INSERT_ID(attendance_id),
                    status=VALUES(status),
                    sessions=VALUES(sessions),
                    check_in_time=VALUES(check_in_time),
                    check_out_time=VALUES(check_out_time),
                    is_open=VALUES(is_open)
                """,
                (
                    int(day.employee_id),
                    day.work_date,
                    day.status.value,
                    encode_sessions(day.sessions),
                    first_in,
                    last_out,
                    1 if day.has_open_session else 0,
                ),
            )
            return replace(day, attendance_id=int(cur.lastrowid))

    def list_open_days(self, *, since: date, employee_id: Optional[int] = None) -> Sequence[WorkAttendanceDay]:
        clauses = ["is_open=1", "work_date >= %s"]
        params: list[object] = [since]
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM work_attendance
                WHERE {" AND ".join(clauses)}
                ORDER BY work_date ASC, employee_id ASC
                """,
                tuple(params),
            )
            return [_to_day(r) for r in fetchall(cur)]

    def list_days(self, work_date: date) -> Sequence[WorkAttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM work_attendance
                WHERE work_date=%s
                ORDER BY employee_id ASC
                """,
                (work_date,),
            )
            return [_to_day(r) for r in fetchall(cur)]

    def list_days_for_employee(self, employee_id: int, *, start: date, end: date) -> Sequence[WorkAttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM work_attendance
                WHERE employee_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date DESC
                """,
                (int(employee_id), start, end),
            )
            return [_to_day(r) for r in fetchall(cur)]

    def create_absent_days(self, employee_ids: Iterable[int], work_date: date) -> int:
        rows = [(int(eid), work_date, AttendanceStatus.ABSENT.value, "[]") for eid in employee_ids]
        if not rows:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT IGNORE INTO work_attendance(employee_id, work_date, status, sessions, is_open)
                VALUES(%s,%s,%s,%s,0)
                """,
                rows,
            )
            return int(cur.rowcount or 0)
