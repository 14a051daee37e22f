from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..classes.model import ClassAttendanceDay, ClassInfo
from ..classes.repository import AssignmentRepository, ClassAttendanceRepository, ClassRepository
from ..common.datetime_utils import format_duration, minutes_between, utc_now
from ..core.enums import AttendanceAction, AttendanceStatus, Channel
from ..core.exceptions import (
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    AlreadyInClassError,
    AlreadyOpenError,
    BiometricNotVerifiedError,
    ClassUnavailableError,
    DomainError,
    NoOpenSessionError,
    NotAssignedError,
    NotCheckedInError,
    OutsideTimeWindowError,
    TransientStoreError,
    ValidationError,
    WorkNotStartedError,
)
from ..database.locks import KeyLockProvider, trainer_day_key, work_day_key
from ..geofence.checker import GeofenceChecker
from ..geofence.model import Location
from .factory import AttendanceStrategyFactory
from .model import AttendanceCommand, AttendanceResult, WorkAttendanceDay, WorkSession
from .policy import TimePolicy
from .repository import WorkAttendanceRepository
from .sweeper import AutoCheckoutSweeper, SweepReport

logger = logging.getLogger(__name__)


class AttendanceSessionEngine:
    """Applies work and class check-in/check-out transitions.

    Every mutating call first reconciles the employee's stale sessions through
    the sweeper, then runs the channel gates (geofence, biometric) and finally
    performs load, validate, mutate and persist under a per-key lock.
    """

    def __init__(
        self,
        attendance: WorkAttendanceRepository,
        class_attendance: ClassAttendanceRepository,
        classes: ClassRepository,
        assignments: AssignmentRepository,
        policy: TimePolicy,
        geofence: GeofenceChecker,
        sweeper: AutoCheckoutSweeper,
        locks: KeyLockProvider,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._attendance = attendance
        self._class_attendance = class_attendance
        self._classes = classes
        self._assignments = assignments
        self._policy = policy
        self._geofence = geofence
        self._sweeper = sweeper
        self._locks = locks
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._clock = clock

    # ---- entry points ----

    def handle(self, command: AttendanceCommand, *, now: datetime | None = None) -> AttendanceResult:
        """Run ``command`` and fold rule violations into a failed result."""

        try:
            return self.execute(command, now=now)
        except (DomainError, TransientStoreError) as e:
            logger.info(
                "Attendance %s rejected for employee=%s: %s (%s)",
                command.action.value, command.employee_id, e.kind, e.message,
            )
            return AttendanceResult.failure(e.message, e.to_dict())

    def execute(self, command: AttendanceCommand, *, now: datetime | None = None) -> AttendanceResult:
        """Run ``command``; violations propagate as ``DomainError``."""

        now = self._policy.localize(now or self._clock())
        if command.action.is_class_action and command.class_id is None:
            raise ValidationError("Class ID is required for class attendance")

        report = self._sweeper.sweep_employee(command.employee_id, now=now)
        self._check_gates(command)

        if command.action is AttendanceAction.WORK_CHECK_IN:
            return self._work_check_in(command, now)
        if command.action is AttendanceAction.WORK_CHECK_OUT:
            return self._work_check_out(command, now, report)
        if command.action is AttendanceAction.CLASS_CHECK_IN:
            return self._class_check_in(command, now)
        return self._class_check_out(command, now)

    def work_check_in(self, employee_id: int, *, now: datetime | None = None,
                      channel: Channel = Channel.WEB, location: Optional[Location] = None,
                      biometric_verified: bool = False) -> AttendanceResult:
        return self.execute(
            AttendanceCommand.for_channel(
                channel,
                action=AttendanceAction.WORK_CHECK_IN,
                employee_id=employee_id,
                location=location,
                biometric_verified=biometric_verified,
            ),
            now=now,
        )

    def work_check_out(self, employee_id: int, *, now: datetime | None = None,
                       channel: Channel = Channel.WEB, location: Optional[Location] = None,
                       biometric_verified: bool = False) -> AttendanceResult:
        return self.execute(
            AttendanceCommand.for_channel(
                channel,
                action=AttendanceAction.WORK_CHECK_OUT,
                employee_id=employee_id,
                location=location,
                biometric_verified=biometric_verified,
            ),
            now=now,
        )

    def class_check_in(self, trainer_id: int, class_id: int, *, now: datetime | None = None,
                       channel: Channel = Channel.WEB, location: Optional[Location] = None,
                       biometric_verified: bool = False) -> AttendanceResult:
        return self.execute(
            AttendanceCommand.for_channel(
                channel,
                action=AttendanceAction.CLASS_CHECK_IN,
                employee_id=trainer_id,
                class_id=class_id,
                location=location,
                biometric_verified=biometric_verified,
            ),
            now=now,
        )

    def class_check_out(self, trainer_id: int, class_id: int, *, now: datetime | None = None,
                        channel: Channel = Channel.WEB, location: Optional[Location] = None,
                        biometric_verified: bool = False) -> AttendanceResult:
        return self.execute(
            AttendanceCommand.for_channel(
                channel,
                action=AttendanceAction.CLASS_CHECK_OUT,
                employee_id=trainer_id,
                class_id=class_id,
                location=location,
                biometric_verified=biometric_verified,
            ),
            now=now,
        )

    # ---- gates ----

    def _check_gates(self, command: AttendanceCommand) -> None:
        if command.location is not None:
            self._geofence.require_inside(command.location)
        elif command.channel.requires_location:
            raise ValidationError("Location is required for attendance from this channel")

        if command.channel.requires_biometric and not command.biometric_verified:
            raise BiometricNotVerifiedError("Biometric verification is required to record attendance")

    # ---- work sessions ----

    def _work_check_in(self, command: AttendanceCommand, now: datetime) -> AttendanceResult:
        employee_id = command.employee_id
        today = self._policy.local_date(now)

        with self._locks.hold(work_day_key(employee_id, today)):
            day = self._attendance.find_day(employee_id, today)
            if day is not None and day.has_open_session:
                raise AlreadyOpenError("You have already checked in for work")

            decision = self._policy.validate_check_in(now)
            if not decision.allowed:
                raise OutsideTimeWindowError(decision.reason or "Check-in is not allowed at this time")

            strategy = self._factory.for_checkin(day=day, decision=decision)
            status = strategy.decide_checkin(decision=decision, current=day.status if day else None)

            base = day or WorkAttendanceDay(employee_id=employee_id, work_date=today)
            session = WorkSession(check_in=now, location=command.location)
            saved = self._attendance.upsert_day(base.with_session(session, status=status.status))

        logger.info(
            "Work check-in: employee=%s at=%s status=%s session=%s",
            employee_id, now.isoformat(), saved.status.value, len(saved.sessions),
        )
        if len(saved.sessions) > 1:
            message = f"Checked in again at {now:%H:%M}"
        elif saved.status is AttendanceStatus.LATE:
            message = f"Checked in late at {now:%H:%M}"
        else:
            message = f"Checked in on time at {now:%H:%M}"
        return AttendanceResult.ok(
            message,
            check_in_time=now,
            status=saved.status,
            session_count=len(saved.sessions),
        )

    def _work_check_out(self, command: AttendanceCommand, now: datetime, report: SweepReport) -> AttendanceResult:
        employee_id = command.employee_id
        today = self._policy.local_date(now)

        with self._locks.hold(work_day_key(employee_id, today)):
            day = self._attendance.find_day(employee_id, today)
            if day is None or not day.has_open_session:
                swept = report.closed_work_day(today)
                if swept is not None:
                    return self._auto_checkout_result(swept, now)
                raise NoOpenSessionError("You must check in before checking out")

            decision = self._policy.validate_check_out(now)
            if not decision.allowed:
                forced = self._sweeper.force_close(day)
                saved = self._attendance.upsert_day(forced)
                logger.info("Work check-out forced to auto-checkout: employee=%s date=%s", employee_id, today)
                return self._auto_checkout_result(saved, now)

            saved = self._attendance.upsert_day(day.with_open_session_closed(now, auto_checkout=False))

        closed = saved.sessions[-1]
        logger.info(
            "Work check-out: employee=%s at=%s session=%s",
            employee_id, now.isoformat(), len(saved.sessions),
        )
        worked = saved.worked_duration(now)
        return AttendanceResult.ok(
            f"Checked out at {now:%H:%M}. Worked today: {format_duration(worked)}",
            check_out_time=now,
            session_count=len(saved.sessions),
            duration_minutes=minutes_between(closed.check_in, closed.check_out),
            worked_minutes_today=int(worked.total_seconds() // 60),
        )

    def _auto_checkout_result(self, day: WorkAttendanceDay, now: datetime) -> AttendanceResult:
        boundary = self._policy.auto_checkout_boundary(day.work_date)
        worked = day.worked_duration(now)
        return AttendanceResult.ok(
            f"Automatic checkout performed at {boundary:%H:%M}",
            check_out_time=boundary,
            auto_checkout=True,
            session_count=len(day.sessions),
            worked_minutes_today=int(worked.total_seconds() // 60),
        )

    # ---- class sessions ----

    def _class_check_in(self, command: AttendanceCommand, now: datetime) -> AttendanceResult:
        trainer_id = command.employee_id
        class_id = int(command.class_id)
        today = self._policy.local_date(now)

        if not self._assignments.is_assigned(trainer_id, class_id):
            raise NotAssignedError("You are not assigned to this class")
        info = self._classes.get_by_id(class_id)
        if info is None or not info.is_active:
            raise ClassUnavailableError("Class not found or inactive")

        # Work day first, then trainer day: a work check-out cannot close the
        # work session while the class record is written.
        with self._locks.hold(work_day_key(trainer_id, today)), \
                self._locks.hold(trainer_day_key(trainer_id, today)):
            work_day = self._attendance.find_day(trainer_id, today)
            if work_day is None or not work_day.has_open_session:
                raise WorkNotStartedError("You must check in to work before checking in to a class")

            current = self._class_attendance.find_open_class_session(trainer_id, today, now=now)
            if current is not None:
                raise AlreadyInClassError(self._class_name(current.class_id, info))

            existing = self._class_attendance.find_class_day(trainer_id, class_id, today)
            if existing is not None:
                if not existing.was_auto_closed_at(now):
                    raise AlreadyCheckedInError("You have already checked in to this class today")
                record = existing.rechecked_in(now)
                recheck = True
            else:
                record = ClassAttendanceDay(
                    trainer_id=trainer_id,
                    class_id=class_id,
                    work_date=today,
                    check_in_time=now,
                    work_attendance_id=work_day.attendance_id,
                )
                recheck = False

            if not command.explicit_checkout_supported:
                scheduled = self._policy.class_auto_checkout_at(now, info.duration_hours)
                record = record.checked_out(scheduled, auto_checkout=True)
            saved = self._class_attendance.upsert_class_day(record)

        logger.info(
            "Class check-in: trainer=%s class=%s at=%s recheck=%s",
            trainer_id, class_id, now.isoformat(), recheck,
        )
        verb = "Re-checked into" if recheck else "Successfully checked into"
        return AttendanceResult.ok(
            f"{verb} {info.name}",
            class_id=class_id,
            class_name=info.name,
            check_in_time=saved.check_in_time,
            auto_checkout_time=saved.check_out_time,
            recheck_in=recheck,
        )

    def _class_check_out(self, command: AttendanceCommand, now: datetime) -> AttendanceResult:
        trainer_id = command.employee_id
        class_id = int(command.class_id)
        today = self._policy.local_date(now)

        with self._locks.hold(trainer_day_key(trainer_id, today)):
            existing = self._class_attendance.find_class_day(trainer_id, class_id, today)
            if existing is None:
                raise NotCheckedInError("You must check in to this class before checking out")
            if not existing.is_open_at(now):
                raise AlreadyCheckedOutError("You have already checked out of this class today")
            saved = self._class_attendance.upsert_class_day(existing.checked_out(now, auto_checkout=False))

        logger.info("Class check-out: trainer=%s class=%s at=%s", trainer_id, class_id, now.isoformat())
        name = self._class_name(class_id)
        duration = saved.duration(now)
        return AttendanceResult.ok(
            f"Checked out of {name}. Duration: {format_duration(duration)}",
            class_id=class_id,
            class_name=name,
            check_out_time=saved.check_out_time,
            duration_minutes=int(duration.total_seconds() // 60),
        )

    def _class_name(self, class_id: int, known: Optional[ClassInfo] = None) -> str:
        if known is not None and known.class_id == class_id:
            return known.name
        info = self._classes.get_by_id(class_id)
        return info.name if info else f"class #{class_id}"
