from __future__ import annotations

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    Every subclass carries a stable ``kind`` that is surfaced to clients.
    """

    kind = "DomainError"

    def __init__(self, message: str, **detail: Any):
        super().__init__(message)
        self.message = message
        self.detail: Dict[str, Any] = detail

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "detail": {"message": self.message, **self.detail}}


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "InvalidRequest"


class AuthenticationError(DomainError):
    """Raised when no valid identity is attached to the request."""

    kind = "Unauthenticated"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    kind = "Forbidden"


class AttendanceRuleError(DomainError):
    """A check-in/check-out transition rejected by the attendance rules."""

    kind = "AttendanceRule"


class OutsideTimeWindowError(AttendanceRuleError):
    kind = "OutsideTimeWindow"


class AlreadyOpenError(AttendanceRuleError):
    kind = "AlreadyOpen"


class NoOpenSessionError(AttendanceRuleError):
    kind = "NoOpenSession"


class NotAssignedError(AttendanceRuleError):
    kind = "NotAssigned"


class ClassUnavailableError(AttendanceRuleError):
    kind = "ClassUnavailable"


class WorkNotStartedError(AttendanceRuleError):
    kind = "WorkNotStarted"


class AlreadyInClassError(AttendanceRuleError):
    kind = "AlreadyInClass"

    def __init__(self, class_name: str):
        super().__init__(
            f"You are already checked into {class_name}. Please check out first.",
            class_name=class_name,
        )
        self.class_name = class_name


class AlreadyCheckedInError(AttendanceRuleError):
    kind = "AlreadyCheckedIn"


class AlreadyCheckedOutError(AttendanceRuleError):
    kind = "AlreadyCheckedOut"


class NotCheckedInError(AttendanceRuleError):
    kind = "NotCheckedIn"


class OutsideGeofenceError(AttendanceRuleError):
    kind = "OutsideGeofence"

    def __init__(self, distance_meters: float, radius_meters: float):
        distance = round(distance_meters)
        super().__init__(
            f"You must be within the premises to record attendance (you are {distance}m away)",
            distance=distance,
            radius=radius_meters,
        )
        self.distance_meters = distance_meters


class BiometricNotVerifiedError(AttendanceRuleError):
    kind = "BiometricNotVerified"


class TransientStoreError(Exception):
    """I/O failure talking to the attendance store. Safe to retry by the caller."""

    kind = "TransientStoreFailure"

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "detail": {"message": self.message}}


class ConfigurationError(Exception):
    """Raised at startup when settings are invalid."""
