import time

import pytest

from src.attendance_engine.attendance_engine.attendance.model import AttendanceCommand
from src.attendance_engine.attendance_engine.core.enums import AttendanceAction, Channel
from src.attendance_engine.attendance_engine.core.exceptions import (
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    AlreadyInClassError,
    ClassUnavailableError,
    NotAssignedError,
    NotCheckedInError,
    ValidationError,
    WorkNotStartedError,
)
from tests.fakes import (
    DAY,
    EMPLOYEE_ID,
    TRAINER_ID,
    GatedWorkAttendance,
    at,
    build_engine,
    on_site,
    start_thread,
)

PYTHON = 10
PANDAS = 11
ARCHIVED = 12


@pytest.fixture
def env():
    return build_engine()


def mobile(env, action, class_id, hour, minute=0):
    command = AttendanceCommand.for_channel(
        Channel.MOBILE,
        action=action,
        employee_id=TRAINER_ID,
        class_id=class_id,
        location=on_site(),
        biometric_verified=True,
    )
    return env.engine.execute(command, now=at(hour, minute))


def start_work(env, hour=8):
    env.engine.work_check_in(TRAINER_ID, now=at(hour, 0))


def test_class_check_in_requires_open_work_session(env):
    with pytest.raises(WorkNotStartedError):
        env.engine.class_check_in(TRAINER_ID, PYTHON, now=at(10, 0))

    start_work(env)
    env.engine.work_check_out(TRAINER_ID, now=at(9, 0))
    with pytest.raises(WorkNotStartedError):
        env.engine.class_check_in(TRAINER_ID, PYTHON, now=at(10, 0))


def test_preconditions_in_order(env):
    # Unassigned wins over everything else, even without a work session.
    with pytest.raises(NotAssignedError):
        env.engine.class_check_in(EMPLOYEE_ID, PYTHON, now=at(10, 0))
    with pytest.raises(ClassUnavailableError):
        env.engine.class_check_in(TRAINER_ID, ARCHIVED, now=at(10, 0))
    with pytest.raises(ValidationError):
        env.engine.execute(
            AttendanceCommand(action=AttendanceAction.CLASS_CHECK_IN, employee_id=TRAINER_ID), now=at(10, 0)
        )


def test_mobile_class_session_auto_closed_then_recheck_in(env):
    start_work(env)
    first = mobile(env, AttendanceAction.CLASS_CHECK_IN, PYTHON, 10)
    assert first.success
    assert first.data["auto_checkout_time"] is None

    report = env.sweeper.sweep_all(now=at(12, 1))
    assert report.class_closed == 1

    closed = env.class_attendance.find_class_day(TRAINER_ID, PYTHON, DAY)
    assert closed.check_out_time == at(12, 0)
    assert closed.auto_checkout is True

    again = mobile(env, AttendanceAction.CLASS_CHECK_IN, PYTHON, 12, 30)
    assert again.success
    assert again.data["recheck_in"] is True

    reopened = env.class_attendance.find_class_day(TRAINER_ID, PYTHON, DAY)
    assert reopened.check_in_time == at(12, 30)
    assert reopened.check_out_time is None
    assert reopened.auto_checkout is False


def test_web_class_check_in_presets_checkout(env):
    start_work(env)
    result = env.engine.class_check_in(TRAINER_ID, PANDAS, now=at(10, 0))

    # 3h class capped at the 2h maximum.
    assert result.data["auto_checkout_time"] == at(12, 0)
    record = env.class_attendance.find_class_day(TRAINER_ID, PANDAS, DAY)
    assert record.auto_checkout is True
    assert record.is_open_at(at(11, 0))

    # After the preset time passed, the system checkout allows a re-check-in.
    again = env.engine.class_check_in(TRAINER_ID, PANDAS, now=at(12, 30))
    assert again.data["recheck_in"] is True


def test_explicit_checkout_overrides_preset_checkout(env):
    start_work(env)
    env.engine.class_check_in(TRAINER_ID, PYTHON, now=at(10, 0))

    result = env.engine.class_check_out(TRAINER_ID, PYTHON, now=at(11, 15))

    assert result.data["duration_minutes"] == 75
    record = env.class_attendance.find_class_day(TRAINER_ID, PYTHON, DAY)
    assert record.check_out_time == at(11, 15)
    assert record.auto_checkout is False


def test_recheck_in_rejected_after_user_checkout(env):
    start_work(env)
    mobile(env, AttendanceAction.CLASS_CHECK_IN, PYTHON, 10)
    out = mobile(env, AttendanceAction.CLASS_CHECK_OUT, PYTHON, 10, 45)
    assert out.data["duration_minutes"] == 45

    with pytest.raises(AlreadyCheckedInError):
        mobile(env, AttendanceAction.CLASS_CHECK_IN, PYTHON, 11)


def test_only_one_open_class_at_a_time(env):
    start_work(env)
    mobile(env, AttendanceAction.CLASS_CHECK_IN, PYTHON, 10)

    with pytest.raises(AlreadyInClassError) as exc:
        mobile(env, AttendanceAction.CLASS_CHECK_IN, PANDAS, 10, 30)
    assert exc.value.class_name == "Python Foundations"
    assert exc.value.to_dict()["detail"]["class_name"] == "Python Foundations"

    mobile(env, AttendanceAction.CLASS_CHECK_OUT, PYTHON, 11)
    assert mobile(env, AttendanceAction.CLASS_CHECK_IN, PANDAS, 11, 5).success

    open_now = [
        r for r in env.class_attendance.list_class_days_for_trainer(TRAINER_ID, DAY) if r.is_open_at(at(11, 10))
    ]
    assert [r.class_id for r in open_now] == [PANDAS]


def test_class_check_out_errors(env):
    start_work(env)
    with pytest.raises(NotCheckedInError):
        mobile(env, AttendanceAction.CLASS_CHECK_OUT, PYTHON, 10)

    mobile(env, AttendanceAction.CLASS_CHECK_IN, PYTHON, 10)
    mobile(env, AttendanceAction.CLASS_CHECK_OUT, PYTHON, 10, 30)
    with pytest.raises(AlreadyCheckedOutError):
        mobile(env, AttendanceAction.CLASS_CHECK_OUT, PYTHON, 10, 40)


def test_class_check_out_after_sweep_is_already_checked_out(env):
    start_work(env)
    mobile(env, AttendanceAction.CLASS_CHECK_IN, PYTHON, 10)

    # The inline sweep closes the class at 12:00 before the checkout is applied.
    with pytest.raises(AlreadyCheckedOutError):
        mobile(env, AttendanceAction.CLASS_CHECK_OUT, PYTHON, 12, 10)
    assert env.class_attendance.find_class_day(TRAINER_ID, PYTHON, DAY).check_out_time == at(12, 0)


def test_work_check_out_waits_for_class_check_in_in_flight():
    attendance = GatedWorkAttendance()
    env = build_engine(attendance=attendance)
    start_work(env)
    outcomes = {}

    attendance.arm()
    class_in = start_thread("class_in", lambda: env.engine.class_check_in(TRAINER_ID, PYTHON, now=at(9, 0)), outcomes)
    assert attendance.entered.wait(timeout=2)

    work_out = start_thread("work_out", lambda: env.engine.work_check_out(TRAINER_ID, now=at(9, 0, 1)), outcomes)
    time.sleep(0.2)
    # Class check-in holds the trainer's work day until its record is written.
    assert work_out.is_alive()
    assert env.class_attendance.find_class_day(TRAINER_ID, PYTHON, DAY) is None

    attendance.release()
    class_in.join(timeout=2)
    work_out.join(timeout=2)

    assert outcomes["class_in"].success
    assert outcomes["work_out"].success
    record = env.class_attendance.find_class_day(TRAINER_ID, PYTHON, DAY)
    closed = attendance.find_day(TRAINER_ID, DAY).sessions[-1]
    assert record.check_in_time <= closed.check_out
