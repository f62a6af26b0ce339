"""Shared pytest fixtures for the parcel-compliance test suite."""

from __future__ import annotations

import math

import pytest

from parcel_compliance.core.constants import METRES_PER_DEGREE
from parcel_compliance.models.boundary import BoundaryPoint
from parcel_compliance.models.verification import (
    ConsensusVerdict,
    ProtectedAreaSourceResult,
    QueryStatus,
)

# ---------------------------------------------------------------------------
# Boundary fixtures
# ---------------------------------------------------------------------------

# South-west corner of the reference square (central Liberia)
SQUARE_LAT = 6.4
SQUARE_LNG = -9.4
SQUARE_SIDE_M = 100.0


def square_coordinates(
    lat: float = SQUARE_LAT,
    lng: float = SQUARE_LNG,
    side_m: float = SQUARE_SIDE_M,
) -> list[tuple[float, float]]:
    """Counter-clockwise ``(lat, lng)`` corners of a square of *side_m* metres."""
    d_lat = side_m / METRES_PER_DEGREE
    d_lng = side_m / (METRES_PER_DEGREE * math.cos(math.radians(lat)))
    return [
        (lat, lng),
        (lat, lng + d_lng),
        (lat + d_lat, lng + d_lng),
        (lat + d_lat, lng),
    ]


def make_points(
    coordinates: list[tuple[float, float]],
    accuracy_m: float = 1.0,
) -> list[BoundaryPoint]:
    """Build ordered ``BoundaryPoint`` instances from ``(lat, lng)`` pairs."""
    return [
        BoundaryPoint(latitude=lat, longitude=lng, accuracy_m=accuracy_m, order=i)
        for i, (lat, lng) in enumerate(coordinates, start=1)
    ]


@pytest.fixture()
def square_points() -> list[BoundaryPoint]:
    """A ~1 ha square near 6.4°N with 1 m accuracy on every vertex."""
    return make_points(square_coordinates())


# ---------------------------------------------------------------------------
# Verification fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def protected_verdict() -> ConsensusVerdict:
    """Two of four sources confirm; one timed out."""
    results = (
        ProtectedAreaSourceResult("wdpa", is_protected=True, distance_m=1200.0, matched_area_name="Sapo National Park"),
        ProtectedAreaSourceResult("osm_overpass", distance_m=4200.0, matched_area_name="Reserve B"),
        ProtectedAreaSourceResult("global_forest_watch", is_protected=True, distance_m=900.0, matched_area_name="Liberian Forest Reserve (GFW)"),
        ProtectedAreaSourceResult.failed("inaturalist", QueryStatus.TIMEOUT, "no answer"),
    )
    return ConsensusVerdict(
        is_protected=True,
        confidence_pct=67,
        sources_checked=4,
        sources_confirmed=2,
        sources_succeeded=3,
        nearest_area_name="Liberian Forest Reserve (GFW)",
        nearest_distance_m=900.0,
        degraded=True,
        source_results=results,
    )


@pytest.fixture()
def clear_verdict() -> ConsensusVerdict:
    """Every source answered and none confirmed."""
    results = (
        ProtectedAreaSourceResult("wdpa", distance_m=80_000.0, matched_area_name="Sapo National Park"),
        ProtectedAreaSourceResult("osm_overpass"),
    )
    return ConsensusVerdict(
        is_protected=False,
        confidence_pct=0,
        sources_checked=2,
        sources_confirmed=0,
        sources_succeeded=2,
        nearest_distance_m=80_000.0,
        source_results=results,
    )
