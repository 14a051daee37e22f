from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..core.enums import AttendanceAction, AttendanceStatus, Channel
from ..geofence.model import Location


@dataclass(frozen=True)
class WorkSession:
    """One check-in/check-out pair inside a work day.

    ``auto_checkout`` marks a session closed by the sweeper rather than by the
    employee.
    """

    check_in: datetime
    check_out: Optional[datetime] = None
    auto_checkout: bool = False
    location: Optional[Location] = None

    @property
    def is_open(self) -> bool:
        return self.check_out is None

    def duration(self, now: Optional[datetime] = None) -> timedelta:
        end = self.check_out or now
        if end is None:
            return timedelta(0)
        return max(end - self.check_in, timedelta(0))


@dataclass(frozen=True)
class WorkAttendanceDay:
    """Domain entity: one employee's work attendance for one calendar day."""

    employee_id: int
    work_date: date
    sessions: Tuple[WorkSession, ...] = ()
    status: AttendanceStatus = AttendanceStatus.NOT_CHECKED_IN
    attendance_id: Optional[int] = None

    @property
    def open_session(self) -> Optional[WorkSession]:
        for session in reversed(self.sessions):
            if session.is_open:
                return session
        return None

    @property
    def has_open_session(self) -> bool:
        return self.open_session is not None

    @property
    def first_check_in(self) -> Optional[datetime]:
        return self.sessions[0].check_in if self.sessions else None

    @property
    def last_check_out(self) -> Optional[datetime]:
        if not self.sessions:
            return None
        return self.sessions[-1].check_out

    def worked_duration(self, now: Optional[datetime] = None) -> timedelta:
        return sum((s.duration(now) for s in self.sessions), timedelta(0))

    def with_session(self, session: WorkSession, *, status: AttendanceStatus) -> "WorkAttendanceDay":
        return replace(self, sessions=self.sessions + (session,), status=status)

    def with_open_session_closed(self, at: datetime, *, auto_checkout: bool) -> "WorkAttendanceDay":
        sessions = list(self.sessions)
        for idx in range(len(sessions) - 1, -1, -1):
            if sessions[idx].is_open:
                closed_at = max(at, sessions[idx].check_in)
                sessions[idx] = replace(sessions[idx], check_out=closed_at, auto_checkout=auto_checkout)
                break
        else:
            return self
        return replace(self, sessions=tuple(sessions))


@dataclass(frozen=True)
class AttendanceCommand:
    """A transport-agnostic attendance request.

    ``channel`` and ``explicit_checkout_supported`` are set by the transport
    layer that received the request.
    """

    action: AttendanceAction
    employee_id: int
    channel: Channel = Channel.WEB
    explicit_checkout_supported: bool = False
    class_id: Optional[int] = None
    location: Optional[Location] = None
    biometric_verified: bool = False

    @classmethod
    def for_channel(cls, channel: Channel, *, action: AttendanceAction, employee_id: int,
                    class_id: Optional[int] = None, location: Optional[Location] = None,
                    biometric_verified: bool = False) -> "AttendanceCommand":
        return cls(
            action=action,
            employee_id=employee_id,
            channel=channel,
            explicit_checkout_supported=channel.explicit_checkout_supported,
            class_id=class_id,
            location=location,
            biometric_verified=biometric_verified,
        )


@dataclass(frozen=True)
class AttendanceResult:
    success: bool
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls, message: str, **data: Any) -> "AttendanceResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def failure(cls, message: str, error: Dict[str, Any]) -> "AttendanceResult":
        return cls(success=False, message=message, error=error)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.data:
            out["data"] = {k: _jsonable(v) for k, v in self.data.items()}
        if self.error is not None:
            out["error"] = self.error
        return out


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value
