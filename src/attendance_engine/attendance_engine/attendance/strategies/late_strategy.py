from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from ..policy import CheckInDecision
from .base import CheckInStatusStrategy, StatusDecision


class LateStrategy(CheckInStatusStrategy):
    """Late first check-in of the day."""

    def decide_checkin(self, *, decision: CheckInDecision, current: Optional[AttendanceStatus]) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE, note="Checked in late")
