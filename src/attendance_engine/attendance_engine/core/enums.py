from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles used for authorization."""

    ADMIN = "admin"
    EMPLOYEE = "employee"
    TRAINER = "trainer"


class AttendanceStatus(str, Enum):
    """Day status stored with each work attendance record."""

    PRESENT = "Present"
    LATE = "Late"
    ABSENT = "Absent"
    NOT_CHECKED_IN = "Not Checked In"


class Channel(str, Enum):
    """Calling convention of the client issuing an attendance request.

    Set by the transport layer (the route that received the request), never
    inferred from the payload.
    """

    WEB = "web"
    MOBILE = "mobile"

    @property
    def explicit_checkout_supported(self) -> bool:
        return self is Channel.MOBILE

    @property
    def requires_location(self) -> bool:
        return self is Channel.MOBILE

    @property
    def requires_biometric(self) -> bool:
        return self is Channel.MOBILE


class AttendanceAction(str, Enum):
    WORK_CHECK_IN = "work_checkin"
    WORK_CHECK_OUT = "work_checkout"
    CLASS_CHECK_IN = "class_checkin"
    CLASS_CHECK_OUT = "class_checkout"

    @property
    def is_class_action(self) -> bool:
        return self in (AttendanceAction.CLASS_CHECK_IN, AttendanceAction.CLASS_CHECK_OUT)
