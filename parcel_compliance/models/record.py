"""Pydantic model for the per-parcel compliance record.

The ``ComplianceRecord`` is the only entity intended for downstream
persistence, reporting and PDF export.  It is composed from a
``GeometryResult`` and a ``ConsensusVerdict`` (see
``parcel_compliance.activities.compose_record``) and never mutated
after composition.

The schema is split into nested sections:
- **boundary**: GeoJSON polygon of the frozen vertices
- **geometry**: area, perimeter, centroid, vertex count
- **verification**: consensus verdict and per-source results

Units are explicit: hectares, metres, percent.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Schema version for forward compatibility
SCHEMA_VERSION = "parcel-compliance-v1"


class BoundarySection(BaseModel):
    """Frozen boundary as a GeoJSON Polygon.

    Attributes:
        type: GeoJSON geometry type, always ``"Polygon"``.
        coordinates: ``[ring]`` where the ring is a closed list of
            ``[lng, lat]`` pairs (GeoJSON axis order).
        accuracy_m: Reported GPS accuracy per vertex, in ring order.
    """

    type: str = "Polygon"
    coordinates: list[list[list[float]]] = Field(default_factory=list)
    accuracy_m: list[float] = Field(default_factory=list)


class GeometrySection(BaseModel):
    """Geometry section of the record.

    Attributes:
        area_hectares: Planar shoelace area in hectares.
        perimeter_metres: Haversine perimeter in metres.
        centroid: Vertex-mean centroid as ``{"lat": .., "lng": ..}``.
        point_count: Vertices the geometry was computed from.
        accuracy_level: Grade of the mean GPS accuracy.
        is_simple: Whether the ring is a valid simple polygon.
    """

    area_hectares: float = 0.0
    perimeter_metres: float = 0.0
    centroid: dict[str, float] | None = None
    point_count: int = 0
    accuracy_level: str = "poor"
    is_simple: bool = True


class SourceResultSection(BaseModel):
    """One verification source's contribution."""

    source_name: str
    query_status: str
    is_protected: bool = False
    distance_m: float | None = None
    matched_area_name: str | None = None
    error_message: str = ""


class VerificationSection(BaseModel):
    """Consensus verdict section of the record.

    ``status`` is one of ``protected``, ``clear`` or ``unverified``;
    ``degraded`` is carried separately from the boolean verdict.
    """

    status: str = "unverified"
    is_protected: bool = False
    confidence_percent: int = 0
    sources_checked: int = 0
    sources_confirmed: int = 0
    sources_succeeded: int = 0
    nearest_area_name: str | None = None
    nearest_distance_metres: float | None = None
    degraded: bool = True
    summary: str = ""
    verification_sources: list[str] = Field(default_factory=list)
    source_results: list[SourceResultSection] = Field(default_factory=list)


class ComplianceRecord(BaseModel):
    """Top-level per-parcel compliance record.

    Attributes:
        schema_version: Schema identifier for forward compatibility.
        parcel_id: Identifier of the parcel the boundary belongs to.
        parcel_metadata: Caller-supplied descriptive fields (farmer, crop, county...).
        boundary: The frozen boundary ring.
        geometry: Derived geometry.
        verification: Protected-area consensus verdict.
        caveats: Reviewer-facing warnings (degraded verification, odd shapes).
        computed_at: Composition timestamp (ISO 8601, UTC).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    schema_version: str = Field(default=SCHEMA_VERSION, alias="$schema")
    parcel_id: str
    parcel_metadata: dict[str, str] = Field(default_factory=dict)
    boundary: BoundarySection = Field(default_factory=BoundarySection)
    geometry: GeometrySection = Field(default_factory=GeometrySection)
    verification: VerificationSection = Field(default_factory=VerificationSection)
    caveats: list[str] = Field(default_factory=list)
    computed_at: str = ""

    def to_json(self, *, indent: int = 2) -> str:
        """Serialise to a JSON string.

        Uses the ``$schema`` alias for the schema version field.
        """
        return self.model_dump_json(indent=indent, by_alias=True)

    def to_dict(self) -> dict[str, object]:
        """Serialise to a plain dict (for HTTP responses and persistence)."""
        return self.model_dump(by_alias=True)  # type: ignore[return-value]
