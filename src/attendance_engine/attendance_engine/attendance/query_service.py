from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from ..classes.model import ClassAttendanceDay
from ..classes.repository import AssignmentRepository, ClassAttendanceRepository
from ..common.datetime_utils import format_duration, utc_now
from ..core.enums import AttendanceStatus
from ..users.repository import UserRepository
from .model import WorkAttendanceDay
from .policy import TimePolicy
from .repository import WorkAttendanceRepository

CLASS_AVAILABLE = "available"
CLASS_CHECKED_IN = "checked-in"
CLASS_COMPLETED = "completed"

_CHECKED_IN_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


def _minutes(delta) -> int:
    return int(delta.total_seconds() // 60)


class AttendanceQueryService:
    """Read-only views over attendance: the caller's day and the admin summary."""

    def __init__(
        self,
        attendance: WorkAttendanceRepository,
        class_attendance: ClassAttendanceRepository,
        assignments: AssignmentRepository,
        users: UserRepository,
        policy: TimePolicy,
        *,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._attendance = attendance
        self._class_attendance = class_attendance
        self._assignments = assignments
        self._users = users
        self._policy = policy
        self._clock = clock

    def today_status(self, employee_id: int, *, now: datetime | None = None) -> Dict[str, Any]:
        now = self._policy.localize(now or self._clock())
        today = self._policy.local_date(now)

        day = self._attendance.find_day(employee_id, today)
        records = {r.class_id: r for r in self._class_attendance.list_class_days_for_trainer(employee_id, today)}

        is_checked_in = bool(day and day.has_open_session)
        in_class = any(r.is_open_at(now) for r in records.values())
        worked = day.worked_duration(now) if day else None

        classes: List[Dict[str, Any]] = []
        for info in self._assignments.list_assigned_classes(employee_id):
            record = records.get(info.class_id)
            classes.append(
                {
                    "class_id": info.class_id,
                    "name": info.name,
                    "code": info.code,
                    "duration_hours": info.duration_hours,
                    "state": self._class_state(record, now),
                    "can_recheck_in": bool(record and record.was_auto_closed_at(now)),
                }
            )

        return {
            "date": today,
            "status": (day.status if day else AttendanceStatus.NOT_CHECKED_IN),
            "is_checked_in": is_checked_in,
            "sessions": [self._session_view(s, now) for s in (day.sessions if day else ())],
            "worked_minutes": _minutes(worked) if worked else 0,
            "worked_today": format_duration(worked) if worked else "0h 0m",
            "class_sessions": [self._class_view(r, now) for r in records.values()],
            "assigned_classes": classes,
            "can_start_class": is_checked_in and not in_class,
        }

    def day_summary(self, work_date: date, *, now: datetime | None = None) -> Dict[str, Any]:
        """Per-employee status for ``work_date``.

        Late arrivals count as checked in; "not checked in" means no record
        at all or an Absent placeholder.
        """

        now = self._policy.localize(now or self._clock())
        days = {d.employee_id: d for d in self._attendance.list_days(work_date)}

        rows: List[Dict[str, Any]] = []
        counts = {status: 0 for status in AttendanceStatus}
        for user in self._users.list_active_employees():
            day: Optional[WorkAttendanceDay] = days.get(user.user_id)
            status = day.status if day else AttendanceStatus.NOT_CHECKED_IN
            counts[status] += 1
            rows.append(
                {
                    "employee_id": user.user_id,
                    "full_name": user.full_name,
                    "role": user.role,
                    "status": status,
                    "checked_in": status in _CHECKED_IN_STATUSES,
                    "first_check_in": day.first_check_in if day else None,
                    "last_check_out": day.last_check_out if day else None,
                    "session_count": len(day.sessions) if day else 0,
                    "worked_minutes": _minutes(day.worked_duration(now)) if day else 0,
                }
            )

        checked_in = sum(1 for r in rows if r["checked_in"])
        return {
            "date": work_date,
            "total": len(rows),
            "checked_in": checked_in,
            "not_checked_in": len(rows) - checked_in,
            "present": counts[AttendanceStatus.PRESENT],
            "late": counts[AttendanceStatus.LATE],
            "absent": counts[AttendanceStatus.ABSENT],
            "rows": rows,
        }

    @staticmethod
    def _class_state(record: Optional[ClassAttendanceDay], now: datetime) -> str:
        if record is None:
            return CLASS_AVAILABLE
        if record.is_open_at(now):
            return CLASS_CHECKED_IN
        return CLASS_COMPLETED

    @staticmethod
    def _session_view(session, now: datetime) -> Dict[str, Any]:
        return {
            "check_in": session.check_in,
            "check_out": session.check_out,
            "auto_checkout": session.auto_checkout,
            "duration_minutes": _minutes(session.duration(now)),
        }

    def _class_view(self, record: ClassAttendanceDay, now: datetime) -> Dict[str, Any]:
        return {
            "class_id": record.class_id,
            "check_in": record.check_in_time,
            "check_out": record.check_out_time,
            "auto_checkout": record.auto_checkout,
            "state": self._class_state(record, now),
            "duration_minutes": _minutes(record.duration(now)),
        }
