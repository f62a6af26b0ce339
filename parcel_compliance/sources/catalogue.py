"""Catalogue-backed verification sources.

Some authorities (the WDPA registry behind Protected Planet, the Global
Forest Watch protected-areas layer) need API tokens or bulk downloads
that are not available to every deployment.  These adapters answer from
a reference catalogue instead: a YAML file listing each area as a centre
and a containment radius.

Reserve-scale areas are large, so containment uses each area's own
radius (tens of kilometres) rather than a tight point-of-interest radius.

The catalogue is read on the first query and cached per adapter, so a
broken file surfaces as that source's query error rather than at
construction.  Override the file with ``SourceConfig.extra_params["catalogue_path"]``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

import yaml

from parcel_compliance.activities.compute_geometry import haversine_m
from parcel_compliance.core.constants import GLOBAL_FOREST_WATCH, WDPA
from parcel_compliance.models.boundary import CoordinateValidationError, validate_coordinate
from parcel_compliance.models.verification import ProtectedAreaSourceResult
from parcel_compliance.sources.base import CandidateArea, ProtectedAreaSource, SourceResponseError

if TYPE_CHECKING:
    from parcel_compliance.models.verification import SourceConfig

logger = logging.getLogger(__name__)

DEFAULT_CATALOGUE_PATH = Path(__file__).resolve().parent / "data" / "reference_areas.yaml"

_METRES_PER_KM = 1_000.0


@dataclass(frozen=True, slots=True)
class ReferenceArea:
    """A catalogued protected area approximated by a circle."""

    name: str
    latitude: float
    longitude: float
    radius_km: float


def load_reference_areas(path: Path, section: str, *, source: str) -> list[ReferenceArea]:
    """Load and validate one catalogue section.

    Raises:
        SourceResponseError: If the file is unreadable, the section is
            missing, or an entry is malformed.
    """
    try:
        document: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Cannot load reference catalogue {path}: {exc}"
        raise SourceResponseError(source, msg) from exc

    if not isinstance(document, dict) or not isinstance(document.get(section), list):
        msg = f"Reference catalogue {path} has no '{section}' list"
        raise SourceResponseError(source, msg)

    areas: list[ReferenceArea] = []
    for index, entry in enumerate(document[section]):
        try:
            area = ReferenceArea(
                name=str(entry["name"]),
                latitude=float(entry["latitude"]),
                longitude=float(entry["longitude"]),
                radius_km=float(entry["radius_km"]),
            )
            validate_coordinate(area.latitude, area.longitude)
        except (KeyError, TypeError, ValueError, CoordinateValidationError) as exc:
            msg = f"Invalid entry {index} in '{section}' of {path}: {exc}"
            raise SourceResponseError(source, msg) from exc
        if area.radius_km < 0:
            msg = f"Entry {index} in '{section}' has negative radius_km"
            raise SourceResponseError(source, msg)
        areas.append(area)

    logger.debug("Loaded reference catalogue | source=%s | areas=%d", source, len(areas))
    return areas


class CatalogueSource(ProtectedAreaSource):
    """Answers from a static reference catalogue section."""

    #: Catalogue section read by the concrete source.
    catalogue_section: ClassVar[str] = ""

    def __init__(self, config: SourceConfig) -> None:
        super().__init__(config)
        path_override = config.extra_params.get("catalogue_path", "")
        self._path = Path(path_override) if path_override else DEFAULT_CATALOGUE_PATH
        self._areas: list[ReferenceArea] | None = None

    @property
    def areas(self) -> list[ReferenceArea]:
        """Catalogued areas, loaded on first access.

        Raises:
            SourceResponseError: If the catalogue cannot be loaded.
        """
        if self._areas is None:
            self._areas = load_reference_areas(self._path, self.catalogue_section, source=self.name)
        return list(self._areas)

    async def query(self, lat: float, lng: float) -> ProtectedAreaSourceResult:
        return self._nearest_result(
            CandidateArea(
                name=area.name,
                distance_m=haversine_m(lat, lng, area.latitude, area.longitude),
                containment_radius_m=area.radius_km * _METRES_PER_KM,
            )
            for area in self.areas
        )


class WdpaSource(CatalogueSource):
    """World Database on Protected Areas (official UN registry)."""

    catalogue_section = WDPA


class GlobalForestWatchSource(CatalogueSource):
    """Global Forest Watch protected-areas layer."""

    catalogue_section = GLOBAL_FOREST_WATCH
