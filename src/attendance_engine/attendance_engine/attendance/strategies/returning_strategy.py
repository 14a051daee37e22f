from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from ..policy import CheckInDecision
from .base import CheckInStatusStrategy, StatusDecision


class ReturningStrategy(CheckInStatusStrategy):
    """Re-check-in after a closed session: the day status is never downgraded."""

    def decide_checkin(self, *, decision: CheckInDecision, current: Optional[AttendanceStatus]) -> StatusDecision:
        return StatusDecision(status=current or AttendanceStatus.PRESENT, note="Checked in again")
