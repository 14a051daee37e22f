from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..core.config import EngineConfig


@dataclass(frozen=True)
class CheckInDecision:
    allowed: bool
    is_late: bool = False
    reason: Optional[str] = None


@dataclass(frozen=True)
class CheckOutDecision:
    allowed: bool
    forced_auto_checkout: bool = False
    reason: Optional[str] = None


def _clock(value: time) -> str:
    return value.strftime("%H:%M")


class TimePolicy:
    """Business clock rules, evaluated in the organization timezone.

    Naive datetimes are treated as organization-local wall time; aware
    datetimes are converted. Server-local time is never consulted.
    """

    def __init__(self, config: EngineConfig):
        self._config = config
        self._tz = config.tz

    @property
    def max_class_duration(self) -> timedelta:
        return timedelta(hours=self._config.max_class_duration_hours)

    def localize(self, now: datetime) -> datetime:
        if now.tzinfo is None:
            return now.replace(tzinfo=self._tz)
        return now.astimezone(self._tz)

    def local_date(self, now: datetime) -> date:
        return self.localize(now).date()

    def validate_check_in(self, now: datetime) -> CheckInDecision:
        clock = self.localize(now).time()
        if clock < self._config.earliest_check_in:
            return CheckInDecision(
                allowed=False,
                reason=f"Check-in not allowed before {_clock(self._config.earliest_check_in)}",
            )
        if clock >= self._config.latest_check_in:
            return CheckInDecision(
                allowed=False,
                reason=f"Check-in not allowed at or after {_clock(self._config.latest_check_in)}",
            )
        return CheckInDecision(allowed=True, is_late=clock > self._config.late_threshold)

    def validate_check_out(self, now: datetime) -> CheckOutDecision:
        clock = self.localize(now).time()
        if clock >= self._config.auto_checkout_at:
            return CheckOutDecision(
                allowed=False,
                forced_auto_checkout=True,
                reason=(
                    f"Manual check-out not allowed after {_clock(self._config.auto_checkout_at)}. "
                    "System will automatically check you out."
                ),
            )
        return CheckOutDecision(allowed=True)

    def auto_checkout_boundary(self, work_date: date) -> datetime:
        """The instant open work sessions of ``work_date`` are closed at."""
        return datetime.combine(work_date, self._config.auto_checkout_at, tzinfo=self._tz)

    def class_auto_checkout_at(self, check_in: datetime, duration_hours: float) -> datetime:
        """Pre-scheduled checkout for a class, capped at the maximum class duration."""
        hours = min(float(duration_hours), self._config.max_class_duration_hours)
        return check_in + timedelta(hours=max(hours, 0.0))

    def class_sweep_boundary(self, check_in: datetime) -> datetime:
        return check_in + self.max_class_duration
