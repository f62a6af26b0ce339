"""Shared constants: single source of truth.

Centralises unit conversions, earth-model constants and source names
that would otherwise be duplicated across the geometry engine, the
source adapters and configuration.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Earth model and unit conversions
# ---------------------------------------------------------------------------

EARTH_RADIUS_M: float = 6_371_000.0
"""Mean earth radius used for haversine distances (spherical model)."""

METRES_PER_DEGREE: float = 111_320.0
"""Metres per degree of latitude; scaled by cos(latitude) for longitude."""

SQ_METRES_PER_HECTARE: float = 10_000.0

MIN_POLYGON_POINTS: int = 3
"""Fewest vertices for which an area is defined."""

DEFAULT_MIN_BOUNDARY_POINTS: int = 3
"""Default number of vertices before a boundary may be completed."""

# ---------------------------------------------------------------------------
# Verification source names (no magic strings)
# ---------------------------------------------------------------------------

WDPA = "wdpa"
OSM_OVERPASS = "osm_overpass"
GLOBAL_FOREST_WATCH = "global_forest_watch"
INATURALIST = "inaturalist"

DEFAULT_SOURCES: tuple[str, ...] = (WDPA, OSM_OVERPASS, GLOBAL_FOREST_WATCH, INATURALIST)

SOURCE_DISPLAY_NAMES: dict[str, str] = {
    WDPA: "WDPA",
    OSM_OVERPASS: "OpenStreetMap",
    GLOBAL_FOREST_WATCH: "Global Forest Watch",
    INATURALIST: "iNaturalist",
}
"""Human-readable authority names listed on compliance records."""
