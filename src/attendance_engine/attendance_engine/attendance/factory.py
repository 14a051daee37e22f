from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .model import WorkAttendanceDay
from .policy import CheckInDecision
from .strategies.base import CheckInStatusStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy
from .strategies.returning_strategy import ReturningStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the status strategy for a work check-in."""

    def for_checkin(self, *, day: Optional[WorkAttendanceDay], decision: CheckInDecision) -> CheckInStatusStrategy:
        # Absent placeholders carry no sessions, so they count as a first check-in.
        if day is not None and day.sessions:
            return ReturningStrategy()
        if decision.is_late:
            return LateStrategy()
        return NormalStrategy()
