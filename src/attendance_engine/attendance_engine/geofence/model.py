from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..common.validators import require_finite, require_latitude, require_longitude
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class GeoPoint:
    """Geographic point with latitude and longitude in degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "latitude", require_latitude(self.latitude))
        object.__setattr__(self, "longitude", require_longitude(self.longitude))


@dataclass(frozen=True)
class Location:
    """A location fix reported by a client."""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "latitude", require_latitude(self.latitude))
        object.__setattr__(self, "longitude", require_longitude(self.longitude))
        if self.accuracy is not None:
            accuracy = require_finite(self.accuracy, "accuracy")
            if accuracy < 0:
                raise ValidationError("accuracy cannot be negative")
            object.__setattr__(self, "accuracy", accuracy)

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Location":
        if not isinstance(data, Mapping):
            raise ValidationError("location must be an object")
        if "latitude" not in data or "longitude" not in data:
            raise ValidationError("location requires latitude and longitude")
        return cls(
            latitude=data["latitude"],
            longitude=data["longitude"],
            accuracy=data.get("accuracy"),
        )

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude, "accuracy": self.accuracy}
