"""Data models and schemas.

Defines the data structures used throughout the engine:
- BoundaryPoint / LatLng: validated boundary vertices
- GeometryResult: derived area, perimeter, centroid
- ProtectedAreaSourceResult / ConsensusVerdict: verification outputs
- ComplianceRecord: the composed, reportable record
- payloads: TypedDict request contracts for the HTTP endpoints
"""

from parcel_compliance.models.boundary import (
    BoundaryPoint,
    CoordinateValidationError,
    LatLng,
    validate_coordinate,
)
from parcel_compliance.models.geometry import AccuracyLevel, GeometryResult
from parcel_compliance.models.record import ComplianceRecord
from parcel_compliance.models.verification import (
    ConsensusVerdict,
    ProtectedAreaSourceResult,
    QueryStatus,
    SourceConfig,
    VerdictStatus,
)

__all__ = [
    "AccuracyLevel",
    "BoundaryPoint",
    "ComplianceRecord",
    "ConsensusVerdict",
    "CoordinateValidationError",
    "GeometryResult",
    "LatLng",
    "ProtectedAreaSourceResult",
    "QueryStatus",
    "SourceConfig",
    "VerdictStatus",
    "validate_coordinate",
]
