from datetime import timedelta

from src.attendance_engine.attendance_engine.attendance.model import WorkAttendanceDay, WorkSession
from src.attendance_engine.attendance_engine.classes.model import ClassAttendanceDay
from src.attendance_engine.attendance_engine.core.enums import AttendanceStatus
from tests.fakes import DAY, EMPLOYEE_ID, TRAINER_ID, at, build_engine


def seed_open_day(env, employee_id, work_date, hour=8):
    env.attendance.upsert_day(
        WorkAttendanceDay(
            employee_id=employee_id,
            work_date=work_date,
            sessions=(WorkSession(check_in=at(hour, 0, day=work_date)),),
            status=AttendanceStatus.PRESENT,
        )
    )


def seed_open_class(env, class_id, hour):
    env.class_attendance.upsert_class_day(
        ClassAttendanceDay(trainer_id=TRAINER_ID, class_id=class_id, work_date=DAY, check_in_time=at(hour, 0))
    )


def snapshot(env):
    return (
        sorted(env.attendance._days.items()),
        sorted(env.class_attendance._records.items()),
    )


def test_work_session_closed_at_boundary_not_at_now():
    env = build_engine()
    seed_open_day(env, EMPLOYEE_ID, DAY)

    assert env.sweeper.sweep_all(now=at(16, 59)).work_closed == 0
    report = env.sweeper.sweep_all(now=at(19, 45))

    assert report.work_closed == 1
    session = env.attendance.find_day(EMPLOYEE_ID, DAY).sessions[0]
    assert session.check_out == at(17, 0)
    assert session.auto_checkout is True


def test_class_session_closed_at_max_duration():
    env = build_engine()
    seed_open_class(env, 10, 10)

    assert env.sweeper.sweep_all(now=at(11, 59)).class_closed == 0
    assert env.sweeper.sweep_all(now=at(12, 0)).class_closed == 1

    record = env.class_attendance.find_class_day(TRAINER_ID, 10, DAY)
    assert record.check_out_time == at(12, 0)
    assert record.auto_checkout is True


def test_sweep_is_idempotent():
    env = build_engine()
    seed_open_day(env, EMPLOYEE_ID, DAY)
    seed_open_day(env, TRAINER_ID, DAY)
    seed_open_class(env, 10, 9)

    first = env.sweeper.sweep_all(now=at(18, 0))
    state = snapshot(env)
    second = env.sweeper.sweep_all(now=at(18, 0))

    assert (first.work_closed, first.class_closed) == (2, 1)
    assert (second.work_closed, second.class_closed, second.failures) == (0, 0, 0)
    assert snapshot(env) == state


def test_previous_days_within_lookback_are_reconciled():
    env = build_engine()
    two_days_ago = DAY - timedelta(days=2)
    long_ago = DAY - timedelta(days=10)
    seed_open_day(env, EMPLOYEE_ID, two_days_ago)
    seed_open_day(env, TRAINER_ID, long_ago)

    report = env.sweeper.sweep_all(now=at(8, 0))

    assert report.work_closed == 1
    assert env.attendance.find_day(EMPLOYEE_ID, two_days_ago).sessions[0].check_out == at(17, 0, day=two_days_ago)
    assert env.attendance.find_day(TRAINER_ID, long_ago).has_open_session


def test_sweep_employee_only_touches_that_employee():
    env = build_engine()
    seed_open_day(env, EMPLOYEE_ID, DAY)
    seed_open_day(env, TRAINER_ID, DAY)

    report = env.sweeper.sweep_employee(EMPLOYEE_ID, now=at(18, 0))

    assert report.work_closed == 1
    assert report.closed_work_day(DAY).employee_id == EMPLOYEE_ID
    assert env.attendance.find_day(TRAINER_ID, DAY).has_open_session


def test_failure_for_one_record_does_not_block_others():
    env = build_engine()
    seed_open_day(env, EMPLOYEE_ID, DAY)
    seed_open_day(env, TRAINER_ID, DAY)
    original = env.attendance.upsert_day

    def flaky_upsert(day):
        if day.employee_id == EMPLOYEE_ID:
            raise RuntimeError("disk full")
        return original(day)

    env.attendance.upsert_day = flaky_upsert
    report = env.sweeper.sweep_all(now=at(18, 0))

    assert report.failures == 1
    assert report.work_closed == 1
    assert not env.attendance.find_day(TRAINER_ID, DAY).has_open_session
    assert env.attendance.find_day(EMPLOYEE_ID, DAY).has_open_session
