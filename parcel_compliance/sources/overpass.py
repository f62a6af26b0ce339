"""OpenStreetMap Overpass adapter.

Queries the community-maintained OSM database for ``boundary=protected_area``
ways and relations around the query point and reports the nearest one.

Overpass returns element centres, not polygons, so containment is judged
by distance to the centre with a tight radius (100 m by default) to avoid
flagging parcels that merely sit near a large reserve's centroid.

Configuration (``SourceConfig.extra_params``):
    ``search_radius_m``       Overpass ``around`` radius (default 50,000).
    ``containment_radius_m``  Distance that counts as inside (default 100).
"""

from __future__ import annotations

from typing import Any

from parcel_compliance.activities.compute_geometry import haversine_m
from parcel_compliance.core.config import DEFAULT_OVERPASS_URL
from parcel_compliance.models.verification import ProtectedAreaSourceResult
from parcel_compliance.sources.base import CandidateArea, SourceResponseError
from parcel_compliance.sources.http import HttpProtectedAreaSource

DEFAULT_SEARCH_RADIUS_M = 50_000.0
DEFAULT_CONTAINMENT_RADIUS_M = 100.0

# Server-side timeout embedded in the query, in seconds
_OVERPASS_QUERY_TIMEOUT_S = 25


def build_overpass_query(lat: float, lng: float, *, search_radius_m: float) -> str:
    """Build the Overpass QL query for protected areas around a point."""
    around = f"around:{search_radius_m:.0f},{lat:.7f},{lng:.7f}"
    return (
        f"[out:json][timeout:{_OVERPASS_QUERY_TIMEOUT_S}];"
        "("
        f"relation[boundary=protected_area]({around});"
        f"way[boundary=protected_area]({around});"
        ");"
        "out center tags;"
    )


class OverpassSource(HttpProtectedAreaSource):
    """OpenStreetMap Overpass API source."""

    default_url = DEFAULT_OVERPASS_URL

    async def query(self, lat: float, lng: float) -> ProtectedAreaSourceResult:
        search_radius_m = self._float_param("search_radius_m", DEFAULT_SEARCH_RADIUS_M)
        containment_m = self._float_param("containment_radius_m", DEFAULT_CONTAINMENT_RADIUS_M)

        body = await self._request_json(
            "POST",
            data={"data": build_overpass_query(lat, lng, search_radius_m=search_radius_m)},
        )
        elements = _elements(body, self.name)

        candidates = []
        for element in elements:
            centre = _element_centre(element)
            if centre is None:
                continue
            tags = element.get("tags") or {}
            candidates.append(
                CandidateArea(
                    name=tags.get("name") if isinstance(tags, dict) else None,
                    distance_m=haversine_m(lat, lng, *centre),
                    containment_radius_m=containment_m,
                )
            )
        return self._nearest_result(candidates)


def _elements(body: Any, source: str) -> list[dict[str, Any]]:
    if not isinstance(body, dict):
        msg = f"Expected a JSON object, got {type(body).__name__}"
        raise SourceResponseError(source, msg)
    elements = body.get("elements", [])
    if not isinstance(elements, list):
        msg = f"'elements' must be a list, got {type(elements).__name__}"
        raise SourceResponseError(source, msg)
    return [e for e in elements if isinstance(e, dict)]


def _element_centre(element: dict[str, Any]) -> tuple[float, float] | None:
    """Return ``(lat, lon)`` from an element's ``center`` or own coordinates."""
    centre = element.get("center")
    if isinstance(centre, dict) and "lat" in centre and "lon" in centre:
        return float(centre["lat"]), float(centre["lon"])
    if "lat" in element and "lon" in element:
        return float(element["lat"]), float(element["lon"])
    return None
