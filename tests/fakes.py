"""In-memory repositories and wiring helpers shared by the test modules."""
from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime, time
from types import SimpleNamespace
from typing import Callable, Dict, Iterable, Optional

from src.attendance_engine.attendance_engine.attendance.absence import AbsenceService
from src.attendance_engine.attendance_engine.attendance.model import WorkAttendanceDay
from src.attendance_engine.attendance_engine.attendance.policy import TimePolicy
from src.attendance_engine.attendance_engine.attendance.query_service import AttendanceQueryService
from src.attendance_engine.attendance_engine.attendance.service import AttendanceSessionEngine
from src.attendance_engine.attendance_engine.attendance.sweeper import AutoCheckoutSweeper
from src.attendance_engine.attendance_engine.classes.model import ClassAttendanceDay, ClassInfo
from src.attendance_engine.attendance_engine.core.config import EngineConfig
from src.attendance_engine.attendance_engine.core.enums import AttendanceStatus, Role
from src.attendance_engine.attendance_engine.database.locks import InProcessKeyLock
from src.attendance_engine.attendance_engine.geofence.checker import GeofenceChecker
from src.attendance_engine.attendance_engine.geofence.model import Location
from src.attendance_engine.attendance_engine.users.model import User

# Monday
DAY = date(2025, 3, 3)
CONFIG = EngineConfig()
TZ = CONFIG.tz


def at(hour: int, minute: int = 0, second: int = 0, *, day: date = DAY) -> datetime:
    """Organization-local wall time as an aware datetime."""
    return datetime.combine(day, time(hour, minute, second), tzinfo=TZ)


def on_site(accuracy: float = 5.0) -> Location:
    return Location(CONFIG.geofence_latitude, CONFIG.geofence_longitude, accuracy=accuracy)


class InMemoryWorkAttendance:
    def __init__(self):
        self._days: dict[tuple[int, date], WorkAttendanceDay] = {}
        self._id = 0

    def find_day(self, employee_id: int, work_date: date) -> Optional[WorkAttendanceDay]:
        return self._days.get((employee_id, work_date))

    def upsert_day(self, day: WorkAttendanceDay) -> WorkAttendanceDay:
        key = (day.employee_id, day.work_date)
        existing = self._days.get(key)
        if existing is not None:
            day = replace(day, attendance_id=existing.attendance_id)
        elif day.attendance_id is None:
            self._id += 1
            day = replace(day, attendance_id=self._id)
        self._days[key] = day
        return day

    def list_open_days(self, *, since: date, employee_id: Optional[int] = None):
        return [
            d for d in self._days.values()
            if d.has_open_session and d.work_date >= since and (employee_id is None or d.employee_id == employee_id)
        ]

    def list_days(self, work_date: date):
        return sorted((d for d in self._days.values() if d.work_date == work_date), key=lambda d: d.employee_id)

    def list_days_for_employee(self, employee_id: int, *, start: date, end: date):
        return sorted(
            (d for d in self._days.values() if d.employee_id == employee_id and start <= d.work_date <= end),
            key=lambda d: d.work_date,
            reverse=True,
        )

    def create_absent_days(self, employee_ids: Iterable[int], work_date: date) -> int:
        created = 0
        for eid in employee_ids:
            if (eid, work_date) not in self._days:
                self.upsert_day(WorkAttendanceDay(employee_id=eid, work_date=work_date, status=AttendanceStatus.ABSENT))
                created += 1
        return created


class GatedWorkAttendance(InMemoryWorkAttendance):
    """Parks the first ``find_day`` after ``arm()`` until ``release()``."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self._released = threading.Event()
        self._guard = threading.Lock()
        self._armed = False

    def arm(self) -> None:
        self._armed = True

    def release(self) -> None:
        self._released.set()

    def find_day(self, employee_id: int, work_date: date) -> Optional[WorkAttendanceDay]:
        with self._guard:
            park, self._armed = self._armed, False
        if park:
            self.entered.set()
            self._released.wait(timeout=5)
        return super().find_day(employee_id, work_date)


def start_thread(name: str, fn: Callable[[], object], outcomes: Dict[str, object]) -> threading.Thread:
    """Run ``fn`` in a daemon thread; its result or exception lands in ``outcomes[name]``."""

    def target():
        try:
            outcomes[name] = fn()
        except Exception as e:
            outcomes[name] = e

    thread = threading.Thread(target=target, name=name, daemon=True)
    thread.start()
    return thread


class InMemoryClassAttendance:
    def __init__(self):
        self._records: dict[tuple[int, int, date], ClassAttendanceDay] = {}
        self._id = 0

    def find_class_day(self, trainer_id: int, class_id: int, work_date: date) -> Optional[ClassAttendanceDay]:
        return self._records.get((trainer_id, class_id, work_date))

    def find_open_class_session(self, trainer_id: int, work_date: date, *, now: datetime):
        for r in self._records.values():
            if r.trainer_id == trainer_id and r.work_date == work_date and r.is_open_at(now):
                return r
        return None

    def list_class_days_for_trainer(self, trainer_id: int, work_date: date):
        return sorted(
            (r for r in self._records.values() if r.trainer_id == trainer_id and r.work_date == work_date),
            key=lambda r: r.check_in_time,
        )

    def list_open_class_days(self, *, since: date, trainer_id: Optional[int] = None):
        return [
            r for r in self._records.values()
            if r.check_out_time is None and r.work_date >= since and (trainer_id is None or r.trainer_id == trainer_id)
        ]

    def upsert_class_day(self, record: ClassAttendanceDay) -> ClassAttendanceDay:
        key = (record.trainer_id, record.class_id, record.work_date)
        existing = self._records.get(key)
        if existing is not None:
            record = replace(record, class_attendance_id=existing.class_attendance_id)
        elif record.class_attendance_id is None:
            self._id += 1
            record = replace(record, class_attendance_id=self._id)
        self._records[key] = record
        return record

    def close_if_open(self, record: ClassAttendanceDay, *, check_out_time: datetime, auto_checkout: bool) -> bool:
        key = (record.trainer_id, record.class_id, record.work_date)
        current = self._records.get(key)
        if current is None or current.check_out_time is not None:
            return False
        self._records[key] = replace(current, check_out_time=check_out_time, auto_checkout=auto_checkout)
        return True


class InMemoryClasses:
    def __init__(self, classes: Iterable[ClassInfo] = (), assignments: Iterable[tuple[int, int]] = ()):
        self.classes = {c.class_id: c for c in classes}
        self.assignments = set(assignments)

    def get_by_id(self, class_id: int) -> Optional[ClassInfo]:
        return self.classes.get(class_id)

    def is_assigned(self, trainer_id: int, class_id: int) -> bool:
        return (trainer_id, class_id) in self.assignments

    def list_assigned_classes(self, trainer_id: int):
        return [
            self.classes[cid] for (tid, cid) in sorted(self.assignments)
            if tid == trainer_id and cid in self.classes and self.classes[cid].is_active
        ]


class InMemoryUsers:
    def __init__(self, users: Iterable[User] = ()):
        self.users = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.username == username), None)

    def list_active_employees(self):
        return [u for _, u in sorted(self.users.items()) if u.is_active and u.records_attendance]

    def list_active_employee_ids(self):
        return [u.user_id for u in self.list_active_employees()]


EMPLOYEE_ID = 1
TRAINER_ID = 2
ADMIN_ID = 9
PYTHON_CLASS = ClassInfo(class_id=10, name="Python Foundations", code="PY-101", duration_hours=2.0)
PANDAS_CLASS = ClassInfo(class_id=11, name="Data Analysis", code="DA-201", duration_hours=3.0)
ARCHIVED_CLASS = ClassInfo(class_id=12, name="Archived Workshop", code="OLD-001", is_active=False)


def default_users(password_hash: str = "x") -> list[User]:
    return [
        User(EMPLOYEE_ID, "Jane Wanjiku", "employee", password_hash, Role.EMPLOYEE),
        User(TRAINER_ID, "Peter Otieno", "trainer", password_hash, Role.TRAINER),
        User(ADMIN_ID, "Admin Demo", "admin", password_hash, Role.ADMIN),
    ]


def build_engine(config: EngineConfig = CONFIG, *, users: Optional[InMemoryUsers] = None,
                 attendance: Optional[InMemoryWorkAttendance] = None, clock=None) -> SimpleNamespace:
    """Wire the engine, sweeper and services over fresh in-memory stores."""

    attendance = attendance or InMemoryWorkAttendance()
    class_attendance = InMemoryClassAttendance()
    classes = InMemoryClasses(
        [PYTHON_CLASS, PANDAS_CLASS, ARCHIVED_CLASS],
        [(TRAINER_ID, 10), (TRAINER_ID, 11), (TRAINER_ID, 12)],
    )
    users = users or InMemoryUsers(default_users())
    policy = TimePolicy(config)
    locks = InProcessKeyLock(timeout_seconds=1)
    sweeper = AutoCheckoutSweeper(attendance, class_attendance, policy, locks, lookback_days=config.sweep_lookback_days)
    extra = {"clock": clock} if clock is not None else {}
    engine = AttendanceSessionEngine(
        attendance, class_attendance, classes, classes, policy, GeofenceChecker(config), sweeper, locks, **extra
    )
    return SimpleNamespace(
        config=config,
        attendance=attendance,
        class_attendance=class_attendance,
        classes=classes,
        users=users,
        policy=policy,
        locks=locks,
        sweeper=sweeper,
        engine=engine,
        absence=AbsenceService(attendance, users, policy),
        queries=AttendanceQueryService(attendance, class_attendance, classes, users, policy, **extra),
    )
