from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from .model import WorkAttendanceDay


class WorkAttendanceRepository(Protocol):
    """Store of one work attendance record per (employee, calendar day)."""

    def find_day(self, employee_id: int, work_date: date) -> Optional[WorkAttendanceDay]:
        raise NotImplementedError

    def upsert_day(self, day: WorkAttendanceDay) -> WorkAttendanceDay:
        """Insert or replace the record keyed by (employee_id, work_date)."""

        raise NotImplementedError

    def list_open_days(self, *, since: date, employee_id: Optional[int] = None) -> Sequence[WorkAttendanceDay]:
        """Days on or after ``since`` that still hold an open session."""

        raise NotImplementedError

    def list_days(self, work_date: date) -> Sequence[WorkAttendanceDay]:
        raise NotImplementedError

    def list_days_for_employee(self, employee_id: int, *, start: date, end: date) -> Sequence[WorkAttendanceDay]:
        raise NotImplementedError

    def create_absent_days(self, employee_ids: Iterable[int], work_date: date) -> int:
        """Create Absent placeholders for employees with no record that day.

        Returns how many records were created; existing records are untouched.
        """

        raise NotImplementedError
