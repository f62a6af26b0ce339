"""Data model for captured boundary vertices.

A ``BoundaryPoint`` is one GPS fix recorded while walking a parcel's
perimeter.  Points are validated here, at ingestion time, so that the
geometry engine downstream can assume finite, in-range coordinates and
never has to scrub NaNs itself.

All coordinates are WGS 84 decimal degrees.  Accuracy is the receiver's
reported horizontal accuracy radius in metres.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from parcel_compliance.core.exceptions import ValidationError

MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0


class CoordinateValidationError(ValidationError):
    """Raised when a captured vertex violates a coordinate invariant."""

    default_stage = "capture"
    default_code = "INVALID_COORDINATE"


# ---------------------------------------------------------------------------
# Coordinate validation
# ---------------------------------------------------------------------------


def validate_coordinate(latitude: float, longitude: float) -> None:
    """Reject non-finite or out-of-range WGS 84 coordinates.

    Raises:
        CoordinateValidationError: If either value is NaN, infinite or
            outside its WGS 84 range.
    """
    for label, value in (("Latitude", latitude), ("Longitude", longitude)):
        if not isinstance(value, int | float) or isinstance(value, bool):
            msg = f"{label} must be a number, got {type(value).__name__}"
            raise CoordinateValidationError(msg)
        if not math.isfinite(value):
            msg = f"{label} must be finite, got {value!r}"
            raise CoordinateValidationError(msg)

    if not MIN_LATITUDE <= latitude <= MAX_LATITUDE:
        msg = f"Latitude {latitude} out of WGS 84 range [{MIN_LATITUDE}, {MAX_LATITUDE}]"
        raise CoordinateValidationError(msg)
    if not MIN_LONGITUDE <= longitude <= MAX_LONGITUDE:
        msg = f"Longitude {longitude} out of WGS 84 range [{MIN_LONGITUDE}, {MAX_LONGITUDE}]"
        raise CoordinateValidationError(msg)


def validate_accuracy(accuracy_m: float) -> None:
    """Reject negative or non-finite GPS accuracy values."""
    if not isinstance(accuracy_m, int | float) or isinstance(accuracy_m, bool):
        msg = f"Accuracy must be a number, got {type(accuracy_m).__name__}"
        raise CoordinateValidationError(msg)
    if not math.isfinite(accuracy_m) or accuracy_m < 0:
        msg = f"Accuracy {accuracy_m!r} m must be a finite value >= 0"
        raise CoordinateValidationError(msg)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LatLng:
    """A bare WGS 84 coordinate pair (latitude first)."""

    lat: float
    lng: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True, slots=True)
class BoundaryPoint:
    """A single validated boundary vertex.

    Attributes:
        latitude: Latitude in decimal degrees, ``[-90, 90]``.
        longitude: Longitude in decimal degrees, ``[-180, 180]``.
        accuracy_m: Reported horizontal accuracy in metres (``>= 0``).
        order: One-based position of the vertex within its boundary.
        captured_at: UTC time the fix was recorded.
        id: Opaque vertex identifier.

    Raises:
        CoordinateValidationError: On construction with invalid values.
    """

    latitude: float
    longitude: float
    accuracy_m: float = 0.0
    order: int = 1
    captured_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        validate_coordinate(self.latitude, self.longitude)
        validate_accuracy(self.accuracy_m)
        if self.order < 1:
            msg = f"Point order must be >= 1, got {self.order}"
            raise CoordinateValidationError(msg)

    @property
    def lat_lng(self) -> LatLng:
        return LatLng(self.latitude, self.longitude)

    def to_dict(self) -> dict[str, object]:
        """Serialise to a JSON-friendly dict."""
        return {
            "id": self.id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy_m": self.accuracy_m,
            "order": self.order,
            "captured_at": self.captured_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> BoundaryPoint:
        """Deserialise from a dict payload.

        ``accuracy_m``, ``order``, ``captured_at`` and ``id`` are optional.

        Raises:
            CoordinateValidationError: If latitude or longitude is missing
                or any value is invalid.
        """
        from parcel_compliance.utils.helpers import parse_timestamp

        if "latitude" not in data or "longitude" not in data:
            msg = "Boundary point requires 'latitude' and 'longitude'"
            raise CoordinateValidationError(msg)

        kwargs: dict[str, object] = {
            "latitude": _as_float(data["latitude"], "latitude"),
            "longitude": _as_float(data["longitude"], "longitude"),
            "accuracy_m": _as_float(data.get("accuracy_m", 0.0), "accuracy_m"),
            "order": int(data.get("order", 1)),  # type: ignore[call-overload]
            "captured_at": parse_timestamp(str(data.get("captured_at") or data.get("timestamp") or "")),
        }
        if data.get("id"):
            kwargs["id"] = str(data["id"])
        return cls(**kwargs)  # type: ignore[arg-type]


def _as_float(value: object, name: str) -> float:
    if isinstance(value, bool):
        msg = f"{name} must be a number, got bool"
        raise CoordinateValidationError(msg)
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        msg = f"{name} must be a number, got {value!r}"
        raise CoordinateValidationError(msg) from exc


def validate_point_order(points: tuple[BoundaryPoint, ...] | list[BoundaryPoint]) -> None:
    """Check that ``order`` is strictly increasing along a boundary.

    Raises:
        CoordinateValidationError: On the first non-increasing order value.
    """
    for previous, current in zip(points, points[1:], strict=False):
        if current.order <= previous.order:
            msg = (
                f"Point order must be strictly increasing: "
                f"{current.order} follows {previous.order}"
            )
            raise CoordinateValidationError(msg)
