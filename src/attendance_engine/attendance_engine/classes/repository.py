from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from .model import ClassAttendanceDay, ClassInfo


class ClassRepository(Protocol):
    def get_by_id(self, class_id: int) -> Optional[ClassInfo]:
        raise NotImplementedError


class AssignmentRepository(Protocol):
    def is_assigned(self, trainer_id: int, class_id: int) -> bool:
        """True when an active assignment links the trainer to the class."""

        raise NotImplementedError

    def list_assigned_classes(self, trainer_id: int) -> Sequence[ClassInfo]:
        raise NotImplementedError


class ClassAttendanceRepository(Protocol):
    """Store of class attendance keyed by (trainer, class, calendar day)."""

    def find_class_day(self, trainer_id: int, class_id: int, work_date: date) -> Optional[ClassAttendanceDay]:
        raise NotImplementedError

    def find_open_class_session(self, trainer_id: int, work_date: date, *, now: datetime) -> Optional[ClassAttendanceDay]:
        """Any class session of the trainer that day still open at ``now``."""

        raise NotImplementedError

    def list_class_days_for_trainer(self, trainer_id: int, work_date: date) -> Sequence[ClassAttendanceDay]:
        raise NotImplementedError

    def list_open_class_days(self, *, since: date, trainer_id: Optional[int] = None) -> Sequence[ClassAttendanceDay]:
        """Records with no checkout at all (sweeper candidates)."""

        raise NotImplementedError

    def upsert_class_day(self, record: ClassAttendanceDay) -> ClassAttendanceDay:
        raise NotImplementedError

    def close_if_open(self, record: ClassAttendanceDay, *, check_out_time: datetime, auto_checkout: bool) -> bool:
        """Conditional close: only applies while ``check_out_time`` is still null."""

        raise NotImplementedError
