"""Boundary capture state machine.

A ``BoundaryCaptureSession`` owns one parcel boundary while it is walked.
It decides when the vertex list may change, recomputes geometry after
every change, and on completion freezes the boundary, verifies it and
composes the ``ComplianceRecord``.

States::

    EMPTY ──add──▶ COLLECTING ──add (n >= min_points)──▶ READY_TO_CLOSE ──complete──▶ CLOSED
      ▲                                                                                  │
      └──────────────────────────────── reset (from any state) ─────────────────────────┘

- ``add_point`` / ``remove_point`` are rejected once ``CLOSED``.
- ``complete`` is only accepted from ``READY_TO_CLOSE``.
- ``CLOSED`` is terminal for the boundary; ``reset`` discards it and
  starts a fresh one.

The session is not shared between concurrent mutators and needs no locks.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from parcel_compliance.activities.compose_record import compose_record
from parcel_compliance.activities.compute_geometry import compute_geometry
from parcel_compliance.core.constants import DEFAULT_MIN_BOUNDARY_POINTS, MIN_POLYGON_POINTS
from parcel_compliance.core.exceptions import ValidationError
from parcel_compliance.models.boundary import BoundaryPoint
from parcel_compliance.models.geometry import AccuracyLevel, GeometryResult

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from parcel_compliance.core.config import ComplianceConfig
    from parcel_compliance.models.record import ComplianceRecord
    from parcel_compliance.orchestrators.verification import VerificationOrchestrator

logger = logging.getLogger("parcel_compliance.capture.session")

# Share of ``progress_pct`` earned by point count vs. accuracy grade
_POINTS_PROGRESS_WEIGHT = 60.0
_ACCURACY_PROGRESS: dict[AccuracyLevel, float] = {
    AccuracyLevel.EXCELLENT: 40.0,
    AccuracyLevel.GOOD: 30.0,
    AccuracyLevel.FAIR: 20.0,
    AccuracyLevel.POOR: 10.0,
}


class CaptureState(enum.Enum):
    """Lifecycle state of a boundary capture session."""

    EMPTY = "empty"
    COLLECTING = "collecting"
    READY_TO_CLOSE = "ready_to_close"
    CLOSED = "closed"


class BoundaryStateError(ValidationError):
    """Raised when an operation is not allowed in the session's current state.

    Attributes:
        state: The state the session was in.
        operation: The rejected operation.
    """

    default_stage = "capture"
    default_code = "INVALID_STATE_TRANSITION"

    def __init__(self, operation: str, state: CaptureState, detail: str = "") -> None:
        self.operation = operation
        self.state = state
        message = f"Cannot {operation} while boundary is {state.value}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class BoundaryCaptureSession:
    """Collects boundary vertices and produces the compliance record.

    Args:
        verifier: Orchestrator used to verify the frozen boundary.
        min_points: Vertices required before ``complete`` is allowed (>= 3).
        verify_vertices: Verify every vertex as well as the centroid.
        on_complete: Optional callback receiving the composed record
            (e.g. a persistence or notification collaborator).
    """

    def __init__(
        self,
        verifier: VerificationOrchestrator,
        *,
        min_points: int = DEFAULT_MIN_BOUNDARY_POINTS,
        verify_vertices: bool = False,
        on_complete: Callable[[ComplianceRecord], None] | None = None,
    ) -> None:
        if min_points < MIN_POLYGON_POINTS:
            msg = f"min_points must be >= {MIN_POLYGON_POINTS}, got {min_points}"
            raise ValueError(msg)
        self._verifier = verifier
        self._min_points = min_points
        self._verify_vertices = verify_vertices
        self._on_complete = on_complete
        self._points: tuple[BoundaryPoint, ...] = ()
        self._geometry = GeometryResult()
        self._state = CaptureState.EMPTY
        self._record: ComplianceRecord | None = None

    @classmethod
    def from_config(
        cls,
        config: ComplianceConfig,
        verifier: VerificationOrchestrator | None = None,
        *,
        on_complete: Callable[[ComplianceRecord], None] | None = None,
    ) -> BoundaryCaptureSession:
        if verifier is None:
            from parcel_compliance.orchestrators.verification import VerificationOrchestrator

            verifier = VerificationOrchestrator.from_config(config)
        return cls(
            verifier,
            min_points=config.min_boundary_points,
            verify_vertices=config.verify_vertices,
            on_complete=on_complete,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def points(self) -> tuple[BoundaryPoint, ...]:
        return self._points

    @property
    def geometry(self) -> GeometryResult:
        """Geometry of the current vertex list (recomputed on every change)."""
        return self._geometry

    @property
    def record(self) -> ComplianceRecord | None:
        """The composed record once ``complete`` has settled, else ``None``."""
        return self._record

    @property
    def min_points(self) -> int:
        return self._min_points

    @property
    def progress_pct(self) -> float:
        """Capture progress: point count toward ``min_points`` plus accuracy grade."""
        if not self._points:
            return 0.0
        points_share = min(1.0, len(self._points) / self._min_points) * _POINTS_PROGRESS_WEIGHT
        return points_share + _ACCURACY_PROGRESS[self._geometry.accuracy_level]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_point(
        self,
        latitude: float,
        longitude: float,
        accuracy_m: float = 0.0,
        captured_at: datetime | None = None,
    ) -> BoundaryPoint:
        """Validate and append a vertex, then recompute geometry.

        Raises:
            BoundaryStateError: If the boundary is closed.
            CoordinateValidationError: If the coordinate or accuracy is invalid.
        """
        self._require_open("add a point")
        point = BoundaryPoint(
            latitude=latitude,
            longitude=longitude,
            accuracy_m=accuracy_m,
            order=len(self._points) + 1,
            captured_at=captured_at or datetime.now(UTC),
        )
        self._set_points((*self._points, point))
        logger.debug(
            "Point added | order=%d | lat=%.6f | lng=%.6f | accuracy=%.1f m | state=%s",
            point.order,
            point.latitude,
            point.longitude,
            point.accuracy_m,
            self._state.value,
        )
        return point

    def remove_point(self, point_id: str) -> None:
        """Remove a vertex by id and renumber the remaining vertices.

        Raises:
            BoundaryStateError: If the boundary is closed.
            KeyError: If no vertex has *point_id*.
        """
        self._require_open("remove a point")
        remaining = [p for p in self._points if p.id != point_id]
        if len(remaining) == len(self._points):
            raise KeyError(point_id)
        self._set_points(
            tuple(dataclasses.replace(p, order=index) for index, p in enumerate(remaining, start=1))
        )
        logger.debug("Point removed | id=%s | remaining=%d | state=%s", point_id, len(remaining), self._state.value)

    def reset(self) -> None:
        """Discard every vertex, the geometry and any record; back to ``EMPTY``."""
        previous = self._state
        self._points = ()
        self._geometry = GeometryResult()
        self._record = None
        self._state = CaptureState.EMPTY
        logger.info("Boundary reset | previous_state=%s", previous.value)

    async def complete(self, parcel_metadata: Mapping[str, object] | None = None) -> ComplianceRecord:
        """Freeze the boundary, verify it and compose the compliance record.

        The boundary is frozen (``CLOSED``) before verification starts, so
        no vertex can change while sources are being queried.  If
        verification is cancelled or raises, the session returns to
        ``READY_TO_CLOSE`` with its points intact.

        Raises:
            BoundaryStateError: Unless the session is ``READY_TO_CLOSE``.
        """
        if self._state is not CaptureState.READY_TO_CLOSE:
            detail = f"need at least {self._min_points} points" if self._state is not CaptureState.CLOSED else ""
            raise BoundaryStateError("complete", self._state, detail)

        self._state = CaptureState.CLOSED
        geometry = self._geometry
        centroid = geometry.centroid
        if centroid is None:  # unreachable with min_points >= 3
            raise BoundaryStateError("complete", self._state, "boundary has no centroid")

        logger.info(
            "Boundary closed | points=%d | area=%.4f ha | centroid=(%.6f, %.6f)",
            geometry.point_count,
            geometry.area_ha,
            centroid.lat,
            centroid.lng,
        )

        vertices = [p.lat_lng for p in self._points] if self._verify_vertices else None
        try:
            verdict = await self._verifier.verify(centroid.lat, centroid.lng, vertices=vertices)
        except BaseException:
            # No record was produced; reopen so completion can be retried
            # without walking the boundary again.
            if self._state is CaptureState.CLOSED and self._record is None:
                self._state = CaptureState.READY_TO_CLOSE
                logger.warning(
                    "Verification interrupted | points=%d | state=%s",
                    len(self._points),
                    self._state.value,
                )
            raise

        record = compose_record(geometry, verdict, parcel_metadata, points=self._points)
        self._record = record
        if self._on_complete is not None:
            self._on_complete(record)
        return record

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_boundary(self) -> dict[str, object]:
        """Export the current boundary as a GeoJSON Feature.

        Available in every state; an empty boundary exports with no rings.
        """
        ring = [[p.longitude, p.latitude] for p in self._points]
        if len(ring) >= MIN_POLYGON_POINTS:
            ring.append(list(ring[0]))
        return {
            "type": "Feature",
            "geometry": {
                "type": "Polygon",
                "coordinates": [ring] if ring else [],
            },
            "properties": {
                "state": self._state.value,
                "exported_at": datetime.now(UTC).isoformat(),
                "points": [p.to_dict() for p in self._points],
                **self._geometry.to_dict(),
            },
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_open(self, operation: str) -> None:
        if self._state is CaptureState.CLOSED:
            raise BoundaryStateError(operation, self._state, "boundary is frozen")

    def _set_points(self, points: tuple[BoundaryPoint, ...]) -> None:
        self._points = points
        self._geometry = compute_geometry(points)
        previous = self._state
        if not points:
            self._state = CaptureState.EMPTY
        elif len(points) >= self._min_points:
            self._state = CaptureState.READY_TO_CLOSE
        else:
            self._state = CaptureState.COLLECTING
        if self._state is not previous:
            logger.info(
                "Capture state changed | %s -> %s | points=%d",
                previous.value,
                self._state.value,
                len(points),
            )
