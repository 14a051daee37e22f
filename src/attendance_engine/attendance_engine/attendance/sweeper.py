"""Auto-checkout reconciliation shared by every mutating entry point."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

from ..classes.model import ClassAttendanceDay
from ..classes.repository import ClassAttendanceRepository
from ..database.locks import KeyLockProvider, trainer_day_key, work_day_key
from .model import WorkAttendanceDay
from .policy import TimePolicy
from .repository import WorkAttendanceRepository

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    work_closed: int = 0
    class_closed: int = 0
    failures: int = 0
    closed_work_days: List[WorkAttendanceDay] = field(default_factory=list)

    def merge(self, other: "SweepReport") -> "SweepReport":
        self.work_closed += other.work_closed
        self.class_closed += other.class_closed
        self.failures += other.failures
        self.closed_work_days.extend(other.closed_work_days)
        return self

    def closed_work_day(self, work_date: date) -> Optional[WorkAttendanceDay]:
        for day in self.closed_work_days:
            if day.work_date == work_date:
                return day
        return None


class AutoCheckoutSweeper:
    """Closes sessions that crossed their time boundary.

    Work sessions close at the day's auto-checkout time; class sessions close at
    ``check_in + max_class_duration``. Every record is re-read under its key lock
    and only closed while still open, so repeated sweeps are no-ops.
    """

    def __init__(
        self,
        attendance: WorkAttendanceRepository,
        class_attendance: ClassAttendanceRepository,
        policy: TimePolicy,
        locks: KeyLockProvider,
        *,
        lookback_days: int = 3,
    ):
        self._attendance = attendance
        self._class_attendance = class_attendance
        self._policy = policy
        self._locks = locks
        self._lookback = timedelta(days=int(lookback_days))

    def sweep_employee(self, employee_id: int, *, now: datetime) -> SweepReport:
        return self._sweep(now=now, employee_id=int(employee_id))

    def sweep_all(self, *, now: datetime) -> SweepReport:
        report = self._sweep(now=now, employee_id=None)
        logger.info(
            "Auto-checkout sweep: work_closed=%s class_closed=%s failures=%s",
            report.work_closed, report.class_closed, report.failures,
        )
        return report

    def force_close(self, day: WorkAttendanceDay) -> Optional[WorkAttendanceDay]:
        """Close ``day``'s open session at its auto-checkout boundary.

        Pure: the caller persists the result while holding the day's lock.
        """

        if not day.has_open_session:
            return None
        boundary = self._policy.auto_checkout_boundary(day.work_date)
        return day.with_open_session_closed(boundary, auto_checkout=True)

    def _sweep(self, *, now: datetime, employee_id: Optional[int]) -> SweepReport:
        report = SweepReport()
        now = self._policy.localize(now)
        since = self._policy.local_date(now) - self._lookback

        try:
            work_days: Sequence[WorkAttendanceDay] = self._attendance.list_open_days(since=since, employee_id=employee_id)
        except Exception:
            logger.exception("Auto-checkout: listing open work days failed (employee=%s)", employee_id)
            work_days = ()
            report.failures += 1

        for day in work_days:
            try:
                closed = self._sweep_work_day(day.employee_id, day.work_date, now=now)
            except Exception:
                logger.exception(
                    "Auto-checkout failed for employee=%s date=%s", day.employee_id, day.work_date
                )
                report.failures += 1
                continue
            if closed is not None:
                report.work_closed += 1
                report.closed_work_days.append(closed)

        try:
            class_days: Sequence[ClassAttendanceDay] = self._class_attendance.list_open_class_days(
                since=since, trainer_id=employee_id
            )
        except Exception:
            logger.exception("Auto-checkout: listing open class sessions failed (trainer=%s)", employee_id)
            class_days = ()
            report.failures += 1

        for record in class_days:
            try:
                if self._sweep_class_day(record, now=now):
                    report.class_closed += 1
            except Exception:
                logger.exception(
                    "Class auto-checkout failed for trainer=%s class=%s date=%s",
                    record.trainer_id, record.class_id, record.work_date,
                )
                report.failures += 1

        return report

    def _sweep_work_day(self, employee_id: int, work_date: date, *, now: datetime) -> Optional[WorkAttendanceDay]:
        if now < self._policy.auto_checkout_boundary(work_date):
            return None

        with self._locks.hold(work_day_key(employee_id, work_date)):
            day = self._attendance.find_day(employee_id, work_date)
            if day is None:
                return None
            closed = self.force_close(day)
            if closed is None:
                return None
            saved = self._attendance.upsert_day(closed)

        logger.info(
            "Auto-checkout: closed work session employee=%s date=%s at=%s",
            employee_id, work_date, self._policy.auto_checkout_boundary(work_date).isoformat(),
        )
        return saved

    def _sweep_class_day(self, record: ClassAttendanceDay, *, now: datetime) -> bool:
        boundary = self._policy.class_sweep_boundary(record.check_in_time)
        if now < boundary:
            return False

        with self._locks.hold(trainer_day_key(record.trainer_id, record.work_date)):
            current = self._class_attendance.find_class_day(record.trainer_id, record.class_id, record.work_date)
            if current is None or current.check_out_time is not None:
                return False
            # Re-derive from the current row: a re-check-in may have moved check_in_time.
            boundary = self._policy.class_sweep_boundary(current.check_in_time)
            if now < boundary:
                return False
            closed = self._class_attendance.close_if_open(current, check_out_time=boundary, auto_checkout=True)

        if closed:
            logger.info(
                "Auto-checkout: closed class session trainer=%s class=%s at=%s",
                record.trainer_id, record.class_id, boundary.isoformat(),
            )
        return closed
