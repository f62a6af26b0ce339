"""Data model for derived parcel geometry.

A ``GeometryResult`` is never a source of truth: it is recomputed from
the current boundary every time the boundary changes.  Units are explicit
in every field name (hectares, metres).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from parcel_compliance.models.boundary import LatLng


class AccuracyLevel(enum.Enum):
    """Grade of the mean GPS accuracy across a boundary's vertices.

    Values:
        EXCELLENT: mean accuracy <= 2 m.
        GOOD:      mean accuracy <= 5 m.
        FAIR:      mean accuracy <= 10 m.
        POOR:      anything worse, or too few points to judge.
    """

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True, slots=True)
class GeometryResult:
    """Area, perimeter and centroid of a boundary polygon.

    Attributes:
        area_ha: Planar shoelace area in hectares.
        perimeter_m: Closed-ring haversine perimeter in metres.
        centroid: Arithmetic mean of the vertices, ``None`` for an empty boundary.
        point_count: Number of vertices the result was computed from.
        accuracy_level: Grade of the mean GPS accuracy.
        is_simple: ``False`` when the ring self-intersects or is otherwise
            not a valid simple polygon (area may not be physically meaningful).
    """

    area_ha: float = 0.0
    perimeter_m: float = 0.0
    centroid: LatLng | None = None
    point_count: int = 0
    accuracy_level: AccuracyLevel = AccuracyLevel.POOR
    is_simple: bool = True

    def to_dict(self) -> dict[str, object]:
        """Serialise to a JSON-friendly dict."""
        return {
            "area_ha": self.area_ha,
            "perimeter_m": self.perimeter_m,
            "centroid": self.centroid.to_dict() if self.centroid is not None else None,
            "point_count": self.point_count,
            "accuracy_level": self.accuracy_level.value,
            "is_simple": self.is_simple,
        }
