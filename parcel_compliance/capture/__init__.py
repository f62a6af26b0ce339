"""Boundary capture session (state machine over the vertex list)."""

from parcel_compliance.capture.session import (
    BoundaryCaptureSession,
    BoundaryStateError,
    CaptureState,
)

__all__ = ["BoundaryCaptureSession", "BoundaryStateError", "CaptureState"]
