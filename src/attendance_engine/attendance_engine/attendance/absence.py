"""Absent placeholders for employees who never checked in."""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from ..core import constants
from ..users.repository import UserRepository
from .policy import TimePolicy
from .repository import WorkAttendanceRepository

logger = logging.getLogger(__name__)


class AbsenceService:
    """Creates ``Absent`` day records once a weekday's auto-checkout boundary passed.

    Existing records are never touched, so a later check-in on the same day
    (or a repeated run) is unaffected.
    """

    def __init__(
        self,
        attendance: WorkAttendanceRepository,
        users: UserRepository,
        policy: TimePolicy,
        *,
        catch_up_days: int = constants.DEFAULT_ABSENCE_CATCH_UP_DAYS,
    ):
        self._attendance = attendance
        self._users = users
        self._policy = policy
        self._catch_up_days = int(catch_up_days)

    def mark_absentees(self, *, now: datetime, work_date: Optional[date] = None) -> int:
        now = self._policy.localize(now)
        work_date = work_date or self._policy.local_date(now)

        if work_date.weekday() >= 5:
            return 0
        if now < self._policy.auto_checkout_boundary(work_date):
            return 0

        employee_ids = list(self._users.list_active_employee_ids())
        created = self._attendance.create_absent_days(employee_ids, work_date)
        if created:
            logger.info("Marked %s employee(s) absent for %s", created, work_date.isoformat())
        return created

    def catch_up(self, *, now: datetime, days: Optional[int] = None) -> int:
        """Mark absentees for the past ``days`` weekdays (today excluded)."""

        now = self._policy.localize(now)
        today = self._policy.local_date(now)
        total = 0
        for offset in range(1, (days or self._catch_up_days) + 1):
            total += self.mark_absentees(now=now, work_date=today - timedelta(days=offset))
        return total
