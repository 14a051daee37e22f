from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...core.enums import AttendanceStatus
from ..policy import CheckInDecision


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None


class CheckInStatusStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide a day status on check-in."""

    @abstractmethod
    def decide_checkin(self, *, decision: CheckInDecision, current: Optional[AttendanceStatus]) -> StatusDecision:
        raise NotImplementedError
