from __future__ import annotations

import math
from typing import Any

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_finite(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number") from None
    if not math.isfinite(number):
        raise ValidationError(f"{field_name} must be a finite number")
    return number


def require_latitude(value: Any, field_name: str = "latitude") -> float:
    lat = require_finite(value, field_name)
    if not -90.0 <= lat <= 90.0:
        raise ValidationError(f"{field_name} must be between -90 and 90")
    return lat


def require_longitude(value: Any, field_name: str = "longitude") -> float:
    lon = require_finite(value, field_name)
    if not -180.0 <= lon <= 180.0:
        raise ValidationError(f"{field_name} must be between -180 and 180")
    return lon


def require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a positive integer")
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field_name} must be a positive integer") from None
    if number <= 0 or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{field_name} must be a positive integer")
    return number
