"""iNaturalist Places adapter.

Queries the iNaturalist biodiversity registry for ``Open Space`` places in
a box around the query point.  Places are points of interest rather than
reserve polygons, so the containment radius is tight (1 km by default).

The API reports a place's position either as ``latitude``/``longitude``
(strings or numbers) or as a ``"lat,lng"`` ``location`` string; both are
accepted.

Configuration (``SourceConfig.extra_params``):
    ``search_box_deg``        Half-width of the search box (default 0.5).
    ``containment_radius_m``  Distance that counts as inside (default 1,000).
"""

from __future__ import annotations

from typing import Any

from parcel_compliance.activities.compute_geometry import haversine_m
from parcel_compliance.core.config import DEFAULT_INATURALIST_URL
from parcel_compliance.models.verification import ProtectedAreaSourceResult
from parcel_compliance.sources.base import CandidateArea, SourceResponseError
from parcel_compliance.sources.http import HttpProtectedAreaSource

DEFAULT_SEARCH_BOX_DEG = 0.5
DEFAULT_CONTAINMENT_RADIUS_M = 1_000.0
PLACE_TYPE = "Open Space"
PER_PAGE = 50


class INaturalistSource(HttpProtectedAreaSource):
    """iNaturalist ``/v1/places`` source."""

    default_url = DEFAULT_INATURALIST_URL

    async def query(self, lat: float, lng: float) -> ProtectedAreaSourceResult:
        box = self._float_param("search_box_deg", DEFAULT_SEARCH_BOX_DEG)
        containment_m = self._float_param("containment_radius_m", DEFAULT_CONTAINMENT_RADIUS_M)

        body = await self._request_json(
            "GET",
            params={
                "place_type": PLACE_TYPE,
                "nelat": lat + box,
                "nelng": lng + box,
                "swlat": lat - box,
                "swlng": lng - box,
                "per_page": PER_PAGE,
            },
        )
        if not isinstance(body, dict):
            msg = f"Expected a JSON object, got {type(body).__name__}"
            raise SourceResponseError(self.name, msg)
        places = body.get("results", [])
        if not isinstance(places, list):
            msg = f"'results' must be a list, got {type(places).__name__}"
            raise SourceResponseError(self.name, msg)

        candidates = []
        for place in places:
            if not isinstance(place, dict):
                continue
            position = _place_position(place)
            if position is None:
                continue
            candidates.append(
                CandidateArea(
                    name=place.get("display_name") or place.get("name"),
                    distance_m=haversine_m(lat, lng, *position),
                    containment_radius_m=containment_m,
                )
            )
        return self._nearest_result(candidates)


def _place_position(place: dict[str, Any]) -> tuple[float, float] | None:
    """Return ``(lat, lng)`` for a place, or ``None`` if it has no usable position."""
    try:
        if place.get("latitude") not in (None, "") and place.get("longitude") not in (None, ""):
            return float(place["latitude"]), float(place["longitude"])
        location = place.get("location")
        if isinstance(location, str) and "," in location:
            lat_raw, lng_raw = location.split(",", 1)
            return float(lat_raw), float(lng_raw)
    except (TypeError, ValueError):
        return None
    return None
