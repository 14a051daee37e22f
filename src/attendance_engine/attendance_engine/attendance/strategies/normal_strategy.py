from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from ..policy import CheckInDecision
from .base import CheckInStatusStrategy, StatusDecision


class NormalStrategy(CheckInStatusStrategy):
    """On-time first check-in of the day."""

    def decide_checkin(self, *, decision: CheckInDecision, current: Optional[AttendanceStatus]) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT, note="Checked in on time")
