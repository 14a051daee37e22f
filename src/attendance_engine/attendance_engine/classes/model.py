from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class ClassInfo:
    class_id: int
    name: str
    code: Optional[str] = None
    duration_hours: float = 2.0
    is_active: bool = True


@dataclass(frozen=True)
class ClassAssignment:
    trainer_id: int
    class_id: int
    is_active: bool = True


@dataclass(frozen=True)
class ClassAttendanceDay:
    """Domain entity: a trainer's attendance in one class on one calendar day.

    ``auto_checkout`` is True when ``check_out_time`` was applied by the system
    (either pre-scheduled at check-in or set by the sweeper).
    """

    trainer_id: int
    class_id: int
    work_date: date
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    status: AttendanceStatus = AttendanceStatus.PRESENT
    auto_checkout: bool = False
    class_attendance_id: Optional[int] = None
    work_attendance_id: Optional[int] = None

    def is_open_at(self, now: datetime) -> bool:
        if self.check_out_time is None:
            return True
        # A pre-scheduled system checkout keeps the session running until it passes.
        return self.auto_checkout and self.check_out_time > now

    def was_auto_closed_at(self, now: datetime) -> bool:
        return self.auto_checkout and self.check_out_time is not None and self.check_out_time <= now

    def duration(self, now: Optional[datetime] = None) -> timedelta:
        end = self.check_out_time if self.check_out_time is not None else now
        if end is None:
            return timedelta(0)
        if now is not None and self.auto_checkout and end > now:
            end = now
        return max(end - self.check_in_time, timedelta(0))

    def checked_out(self, at: datetime, *, auto_checkout: bool) -> "ClassAttendanceDay":
        return replace(self, check_out_time=max(at, self.check_in_time), auto_checkout=auto_checkout)

    def rechecked_in(self, at: datetime) -> "ClassAttendanceDay":
        return replace(self, check_in_time=at, check_out_time=None, auto_checkout=False)
