"""Background jobs: periodic auto-checkout sweep and daily absentee marking."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..common.datetime_utils import utc_now
from ..core.config import EngineConfig
from .absence import AbsenceService
from .sweeper import AutoCheckoutSweeper, SweepReport

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "attendance-auto-checkout"
ABSENCE_JOB_ID = "attendance-mark-absentees"
CATCH_UP_JOB_ID = "attendance-absence-catch-up"


def run_maintenance_pass(
    sweeper: AutoCheckoutSweeper,
    absence: Optional[AbsenceService] = None,
    *,
    now_fn: Callable = utc_now,
) -> tuple[SweepReport, int]:
    """One sweep over every open session, then absentee marking for today.

    Shared by the scheduler, the cron endpoint and ``scripts/run_sweep.py``.
    """

    now = now_fn()
    report = sweeper.sweep_all(now=now)
    marked = absence.mark_absentees(now=now) if absence is not None else 0
    return report, marked


class AttendanceScheduler:
    def __init__(
        self,
        config: EngineConfig,
        sweeper: AutoCheckoutSweeper,
        absence: AbsenceService,
        *,
        interval_minutes: int = 5,
        misfire_grace_seconds: int = 3600,
    ):
        self._config = config
        self._sweeper = sweeper
        self._absence = absence
        self._interval = max(1, int(interval_minutes))
        self._scheduler = BackgroundScheduler(
            timezone=config.tz,
            job_defaults={
                "coalesce": True,
                "misfire_grace_time": int(misfire_grace_seconds),
                "max_instances": 1,
            },
        )
        self._register_jobs()

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)

    def _register_jobs(self) -> None:
        self._scheduler.add_job(
            self._sweep, "interval", minutes=self._interval, id=SWEEP_JOB_ID, replace_existing=True
        )
        boundary = self._config.auto_checkout_at
        self._scheduler.add_job(
            self._mark_absentees,
            "cron",
            day_of_week="mon-fri",
            hour=boundary.hour,
            minute=boundary.minute,
            id=ABSENCE_JOB_ID,
            replace_existing=True,
        )
        # Boot-time catch-up for days the process was down.
        self._scheduler.add_job(self._catch_up, "date", id=CATCH_UP_JOB_ID, replace_existing=True)

    def start(self) -> None:
        if self._scheduler.running:
            return
        self._scheduler.start()
        logger.info(
            "Attendance scheduler started (sweep every %s min, absentees at %s %s)",
            self._interval, self._config.auto_checkout_at.strftime("%H:%M"), self._config.timezone,
        )

    def shutdown(self, *, wait: bool = False) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            logger.info("Attendance scheduler stopped")

    def _sweep(self) -> None:
        self._sweeper.sweep_all(now=utc_now())

    def _mark_absentees(self) -> None:
        try:
            self._absence.mark_absentees(now=utc_now())
        except Exception:
            logger.exception("Scheduled absentee marking failed")

    def _catch_up(self) -> None:
        try:
            marked = self._absence.catch_up(now=utc_now())
        except Exception:
            logger.exception("Absentee catch-up failed")
            return
        if marked:
            logger.info("Absentee catch-up marked %s record(s)", marked)
