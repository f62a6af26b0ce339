"""Compliance record composition.

Merges a ``GeometryResult``, a ``ConsensusVerdict`` and caller-supplied
parcel metadata into one ``ComplianceRecord``.  Pure aggregation: this
module never recomputes geometry and never triggers verification; it
only copies, labels and annotates what it is given.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from parcel_compliance.core.exceptions import ValidationError
from parcel_compliance.models.boundary import validate_point_order
from parcel_compliance.models.record import (
    BoundarySection,
    ComplianceRecord,
    GeometrySection,
    SourceResultSection,
    VerificationSection,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from parcel_compliance.models.boundary import BoundaryPoint
    from parcel_compliance.models.geometry import GeometryResult
    from parcel_compliance.models.verification import ConsensusVerdict

logger = logging.getLogger("parcel_compliance.activities.compose_record")

CAVEAT_NOT_SIMPLE = (
    "Boundary is self-intersecting or otherwise not a simple polygon; "
    "the reported area may not correspond to the physical parcel."
)
CAVEAT_UNVERIFIED = (
    "No verification source responded; protected-area status is unverified, "
    "not confirmed clear."
)
CAVEAT_PARTIAL = "Only {succeeded} of {checked} verification sources responded."
CAVEAT_LOW_CONFIDENCE = (
    "Protected-area flag is supported by {confidence}% of responding sources; "
    "review before treating as final."
)

#: Positive verdicts at or below this confidence get a review caveat.
LOW_CONFIDENCE_PCT = 50


class IncompleteInputError(ValidationError):
    """Raised when the composer is called without geometry or verdict."""

    default_stage = "compose_record"
    default_code = "INCOMPLETE_INPUT"


def compose_record(
    geometry: GeometryResult | None,
    verdict: ConsensusVerdict | None,
    parcel_metadata: Mapping[str, object] | None = None,
    *,
    points: Sequence[BoundaryPoint] = (),
    computed_at: datetime | None = None,
) -> ComplianceRecord:
    """Compose a ``ComplianceRecord``.

    Args:
        geometry: Geometry of the frozen boundary.
        verdict: Consensus verdict for the boundary.
        parcel_metadata: Descriptive fields; ``parcel_id`` (or ``id``) is
            lifted out as the record identifier, everything else is kept
            as strings.
        points: The frozen vertices, stored as a GeoJSON ring.
        computed_at: Composition time (defaults to now, UTC).

    Raises:
        IncompleteInputError: If *geometry* or *verdict* is missing.
        CoordinateValidationError: If *points* are not in strictly increasing order.
    """
    if geometry is None or verdict is None:
        missing = [name for name, value in (("geometry", geometry), ("verdict", verdict)) if value is None]
        msg = f"Cannot compose compliance record: missing {', '.join(missing)}"
        raise IncompleteInputError(msg)
    validate_point_order(points)

    metadata = {str(k): str(v) for k, v in (parcel_metadata or {}).items() if v is not None}
    parcel_id = metadata.pop("parcel_id", "") or metadata.pop("id", "") or "unassigned"
    computed_at = computed_at or datetime.now(UTC)

    record = ComplianceRecord(
        parcel_id=parcel_id,
        parcel_metadata=metadata,
        boundary=_boundary_section(points),
        geometry=GeometrySection(
            area_hectares=geometry.area_ha,
            perimeter_metres=geometry.perimeter_m,
            centroid=geometry.centroid.to_dict() if geometry.centroid is not None else None,
            point_count=geometry.point_count,
            accuracy_level=geometry.accuracy_level.value,
            is_simple=geometry.is_simple,
        ),
        verification=VerificationSection(
            status=verdict.status.value,
            is_protected=verdict.is_protected,
            confidence_percent=verdict.confidence_pct,
            sources_checked=verdict.sources_checked,
            sources_confirmed=verdict.sources_confirmed,
            sources_succeeded=verdict.sources_succeeded,
            nearest_area_name=verdict.nearest_area_name,
            nearest_distance_metres=verdict.nearest_distance_m,
            degraded=verdict.degraded,
            summary=verdict.summary,
            verification_sources=verdict.verification_sources,
            source_results=[
                SourceResultSection(
                    source_name=r.source_name,
                    query_status=r.query_status.value,
                    is_protected=r.is_protected,
                    distance_m=r.distance_m,
                    matched_area_name=r.matched_area_name,
                    error_message=r.error_message,
                )
                for r in verdict.source_results
            ],
        ),
        caveats=build_caveats(geometry, verdict),
        computed_at=computed_at.isoformat(),
    )

    logger.info(
        "Compliance record composed | parcel=%s | area=%.2f ha | status=%s | "
        "confidence=%d%% | caveats=%d",
        record.parcel_id,
        geometry.area_ha,
        record.verification.status,
        verdict.confidence_pct,
        len(record.caveats),
    )
    return record


def build_caveats(geometry: GeometryResult, verdict: ConsensusVerdict) -> list[str]:
    """Reviewer-facing warnings for a geometry/verdict pair."""
    caveats: list[str] = []
    if not geometry.is_simple:
        caveats.append(CAVEAT_NOT_SIMPLE)
    if verdict.sources_succeeded == 0:
        caveats.append(CAVEAT_UNVERIFIED)
    elif verdict.sources_succeeded < verdict.sources_checked:
        caveats.append(
            CAVEAT_PARTIAL.format(succeeded=verdict.sources_succeeded, checked=verdict.sources_checked)
        )
    if verdict.is_protected and verdict.confidence_pct <= LOW_CONFIDENCE_PCT:
        caveats.append(CAVEAT_LOW_CONFIDENCE.format(confidence=verdict.confidence_pct))
    return caveats


def _boundary_section(points: Sequence[BoundaryPoint]) -> BoundarySection:
    ring = [[p.longitude, p.latitude] for p in points]
    if ring:
        ring.append(list(ring[0]))
    return BoundarySection(
        coordinates=[ring] if ring else [],
        accuracy_m=[p.accuracy_m for p in points],
    )
