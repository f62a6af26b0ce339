"""Boundary geometry engine.

Computes area in hectares, perimeter in metres and centroid for an
ordered, implicitly closed list of boundary vertices.

Every function here is pure and deterministic: the same point list always
produces bit-identical output, which is what lets the capture session
recompute geometry on every mutation instead of maintaining it
incrementally.

Inputs are assumed validated at ingestion (``BoundaryPoint`` rejects
NaN and out-of-range coordinates); nothing here re-validates.  Too few
points is not an error: degenerate shapes have zero area/perimeter.

Area model:
    Planar shoelace over raw degrees, then scaled to square metres with
    111,320 m per degree of latitude and 111,320 * cos(phi_ref) m per degree
    of longitude, where ``phi_ref`` is the mean latitude of the polygon's
    own vertices.  This is a local equirectangular approximation, adequate
    for field-sized parcels; it is not an ellipsoidal area.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from parcel_compliance.core.constants import (
    EARTH_RADIUS_M,
    METRES_PER_DEGREE,
    MIN_POLYGON_POINTS,
    SQ_METRES_PER_HECTARE,
)
from parcel_compliance.models.boundary import LatLng
from parcel_compliance.models.geometry import AccuracyLevel, GeometryResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from parcel_compliance.models.boundary import BoundaryPoint

logger = logging.getLogger("parcel_compliance.activities.compute_geometry")

# Mean-accuracy thresholds in metres (upper bounds, inclusive)
EXCELLENT_ACCURACY_M = 2.0
GOOD_ACCURACY_M = 5.0
FAIR_ACCURACY_M = 10.0


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compute_geometry(points: Sequence[BoundaryPoint]) -> GeometryResult:
    """Compute the full ``GeometryResult`` for a boundary.

    Args:
        points: Ordered boundary vertices (not repeated at the end).

    Returns:
        A ``GeometryResult``; all-zero for an empty boundary.
    """
    result = GeometryResult(
        area_ha=compute_area_ha(points),
        perimeter_m=compute_perimeter_m(points),
        centroid=compute_centroid(points),
        point_count=len(points),
        accuracy_level=classify_accuracy(points),
        is_simple=is_simple_polygon(points),
    )
    logger.debug(
        "Geometry computed | points=%d | area=%.4f ha | perimeter=%.1f m | simple=%s",
        result.point_count,
        result.area_ha,
        result.perimeter_m,
        result.is_simple,
    )
    return result


# ---------------------------------------------------------------------------
# Area
# ---------------------------------------------------------------------------


def compute_area_ha(points: Sequence[BoundaryPoint]) -> float:
    """Shoelace area in hectares with mean-latitude longitude scaling.

    Returns ``0.0`` for fewer than three points.  The result is the same
    for clockwise and counter-clockwise rings and for any choice of
    starting vertex.
    """
    n = len(points)
    if n < MIN_POLYGON_POINTS:
        return 0.0

    twice_area_deg2 = 0.0
    for i in range(n):
        j = (i + 1) % n
        twice_area_deg2 += points[i].latitude * points[j].longitude
        twice_area_deg2 -= points[j].latitude * points[i].longitude
    area_deg2 = abs(twice_area_deg2) / 2.0

    ref_lat = math.radians(sum(p.latitude for p in points) / n)
    metres_per_deg_lat = METRES_PER_DEGREE
    metres_per_deg_lng = METRES_PER_DEGREE * math.cos(ref_lat)

    return area_deg2 * metres_per_deg_lat * metres_per_deg_lng / SQ_METRES_PER_HECTARE


# ---------------------------------------------------------------------------
# Perimeter
# ---------------------------------------------------------------------------


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in metres on a sphere of radius 6,371 km."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def compute_perimeter_m(points: Sequence[BoundaryPoint]) -> float:
    """Closed-ring haversine perimeter in metres.

    Returns ``0.0`` for fewer than two points.  With exactly two points the
    ring is out and back, so the segment is counted twice.
    """
    n = len(points)
    if n < 2:
        return 0.0

    total = 0.0
    for i in range(n):
        a = points[i]
        b = points[(i + 1) % n]
        total += haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)
    return total


# ---------------------------------------------------------------------------
# Centroid
# ---------------------------------------------------------------------------


def compute_centroid(points: Sequence[BoundaryPoint]) -> LatLng | None:
    """Arithmetic mean of the vertices.

    This is not the area-weighted centroid; for strongly non-convex
    boundaries it can fall outside the polygon.  Returns ``None`` for an
    empty boundary.
    """
    n = len(points)
    if n == 0:
        return None
    return LatLng(
        lat=sum(p.latitude for p in points) / n,
        lng=sum(p.longitude for p in points) / n,
    )


# ---------------------------------------------------------------------------
# Quality indicators
# ---------------------------------------------------------------------------


def classify_accuracy(points: Sequence[BoundaryPoint]) -> AccuracyLevel:
    """Grade the mean GPS accuracy of a boundary.

    Boundaries with fewer than three points are always ``POOR``.
    """
    if len(points) < MIN_POLYGON_POINTS:
        return AccuracyLevel.POOR

    mean_accuracy = sum(p.accuracy_m for p in points) / len(points)
    if mean_accuracy <= EXCELLENT_ACCURACY_M:
        return AccuracyLevel.EXCELLENT
    if mean_accuracy <= GOOD_ACCURACY_M:
        return AccuracyLevel.GOOD
    if mean_accuracy <= FAIR_ACCURACY_M:
        return AccuracyLevel.FAIR
    return AccuracyLevel.POOR


def is_simple_polygon(points: Sequence[BoundaryPoint]) -> bool:
    """Whether the ring forms a valid, non-self-intersecting polygon.

    Uses Shapely's validity check on ``(lng, lat)`` coordinates.  Fewer
    than three points are reported as simple: there is no ring to cross.
    Nothing is repaired; callers only attach a caveat.
    """
    if len(points) < MIN_POLYGON_POINTS:
        return True

    from shapely.geometry import Polygon

    poly = Polygon([(p.longitude, p.latitude) for p in points])
    return bool(poly.is_valid)
