"""Thin ingress boundary helpers for the Azure Functions HTTP entrypoints.

Centralises the transport concerns so that ``function_app.py`` contains
only trigger bindings and handoff:

- **parse_json_body**: decodes a request body into a JSON object,
  raising ``ContractError`` for anything else.
- **points_from_payload**: turns the ``points`` array into validated,
  ordered ``BoundaryPoint`` instances.
- **handle_***: one coroutine/function per endpoint returning a plain
  JSON-serialisable dict.
- **error_response**: maps an exception to an HTTP status and a
  structured error body.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from parcel_compliance.core.exceptions import ComplianceError, ContractError, ValidationError
from parcel_compliance.models.payloads import (
    AssessParcelRequest,
    GeometryRequest,
    VerifyRequest,
    validate_payload,
)

if TYPE_CHECKING:
    from parcel_compliance.core.config import ComplianceConfig
    from parcel_compliance.models.boundary import BoundaryPoint, LatLng
    from parcel_compliance.orchestrators.verification import VerificationOrchestrator

logger = logging.getLogger("parcel_compliance.core.ingress")

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_CONFLICT = 409
HTTP_INTERNAL_ERROR = 500
HTTP_SERVICE_UNAVAILABLE = 503


# ---------------------------------------------------------------------------
# Body parsing
# ---------------------------------------------------------------------------


def parse_json_body(raw: bytes | str | None) -> dict[str, Any]:
    """Decode an HTTP request body into a JSON object.

    Raises:
        ContractError: If the body is empty, not JSON, or not an object.
    """
    if not raw:
        msg = "Request body is empty"
        raise ContractError(msg, stage="ingress", code="EMPTY_BODY")
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as exc:
        msg = f"Request body is not valid JSON: {exc}"
        raise ContractError(msg, stage="ingress", code="INVALID_JSON") from exc
    if not isinstance(parsed, dict):
        msg = f"Request body must be a JSON object, got {type(parsed).__name__}"
        raise ContractError(msg, stage="ingress", code="INVALID_INPUT_TYPE")
    return parsed


def points_from_payload(raw_points: object) -> list[BoundaryPoint]:
    """Build ordered ``BoundaryPoint`` instances from a ``points`` array.

    Vertex order is the array order; any ``order`` field sent by the
    client is ignored.

    Raises:
        ContractError: If *raw_points* is not a list of objects.
        CoordinateValidationError: If any vertex is invalid.
    """
    from parcel_compliance.models.boundary import BoundaryPoint

    if not isinstance(raw_points, list):
        msg = f"'points' must be an array, got {type(raw_points).__name__}"
        raise ContractError(msg, stage="ingress", code="INVALID_POINTS")

    points: list[BoundaryPoint] = []
    for index, item in enumerate(raw_points, start=1):
        if not isinstance(item, dict):
            msg = f"points[{index - 1}] must be an object, got {type(item).__name__}"
            raise ContractError(msg, stage="ingress", code="INVALID_POINTS")
        points.append(BoundaryPoint.from_dict({**item, "order": index}))
    return points


def _vertices_from_payload(raw_vertices: object) -> list[LatLng]:
    if not isinstance(raw_vertices, list):
        msg = f"'vertices' must be an array, got {type(raw_vertices).__name__}"
        raise ContractError(msg, stage="ingress", code="INVALID_VERTICES")
    return [point.lat_lng for point in points_from_payload(raw_vertices)]


# ---------------------------------------------------------------------------
# Endpoint handlers
# ---------------------------------------------------------------------------


def handle_compute_geometry(body: dict[str, Any]) -> dict[str, object]:
    """``POST /api/geometry``: geometry of an ad-hoc boundary."""
    from parcel_compliance.activities.compute_geometry import compute_geometry

    validate_payload(body, GeometryRequest, endpoint="geometry")
    points = points_from_payload(body["points"])
    result = compute_geometry(points)
    logger.info(
        "Geometry request | points=%d | area=%.4f ha | perimeter=%.1f m",
        result.point_count,
        result.area_ha,
        result.perimeter_m,
    )
    return result.to_dict()


async def handle_verify(
    body: dict[str, Any],
    orchestrator: VerificationOrchestrator,
) -> dict[str, object]:
    """``POST /api/verify``: consensus verdict for one coordinate."""
    from parcel_compliance.models.boundary import BoundaryPoint

    validate_payload(body, VerifyRequest, endpoint="verify")
    point = BoundaryPoint.from_dict({"latitude": body["latitude"], "longitude": body["longitude"]})
    vertices = _vertices_from_payload(body["vertices"]) if body.get("vertices") else None

    logger.info(
        "Verify request | lat=%.6f | lng=%.6f | vertices=%d",
        point.latitude,
        point.longitude,
        len(vertices or ()),
    )
    verdict = await orchestrator.verify(point.latitude, point.longitude, vertices=vertices)
    return verdict.to_dict()


async def handle_assess_parcel(
    body: dict[str, Any],
    config: ComplianceConfig,
    orchestrator: VerificationOrchestrator,
) -> dict[str, object]:
    """``POST /api/parcels/assess``: capture, verify and compose in one call.

    Replays the submitted vertices through a ``BoundaryCaptureSession`` so
    the same state rules apply as for interactive capture.
    """
    from parcel_compliance.capture.session import BoundaryCaptureSession

    validate_payload(body, AssessParcelRequest, endpoint="assess_parcel")
    parcel_id = str(body["parcel_id"]).strip()
    if not parcel_id:
        msg = "assess_parcel: 'parcel_id' must be a non-empty string"
        raise ContractError(msg, stage="assess_parcel", code="INVALID_PARCEL_ID")

    metadata = body.get("metadata") or {}
    if not isinstance(metadata, dict):
        msg = f"'metadata' must be an object, got {type(metadata).__name__}"
        raise ContractError(msg, stage="assess_parcel", code="INVALID_METADATA")

    session = BoundaryCaptureSession.from_config(config, orchestrator)
    for point in points_from_payload(body["points"]):
        session.add_point(point.latitude, point.longitude, point.accuracy_m, point.captured_at)

    logger.info(
        "Assess request | parcel=%s | points=%d | state=%s",
        parcel_id,
        len(session.points),
        session.state.value,
    )
    record = await session.complete({**metadata, "parcel_id": parcel_id})
    return record.to_dict()


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def error_response(exc: Exception) -> tuple[int, dict[str, object]]:
    """Map an exception to ``(http_status, body)``.

    - ``BoundaryStateError`` → 409
    - ``ContractError`` / ``ValidationError`` → 400
    - other ``ComplianceError`` → 503 if retryable, else 500
    - anything else → 500 with a generic body
    """
    from parcel_compliance.capture.session import BoundaryStateError

    if isinstance(exc, BoundaryStateError):
        return HTTP_CONFLICT, {"error": exc.to_error_dict()}
    if isinstance(exc, (ContractError, ValidationError)):
        return HTTP_BAD_REQUEST, {"error": exc.to_error_dict()}
    if isinstance(exc, ComplianceError):
        status = HTTP_SERVICE_UNAVAILABLE if exc.retryable else HTTP_INTERNAL_ERROR
        return status, {"error": exc.to_error_dict()}
    return HTTP_INTERNAL_ERROR, {
        "error": {
            "category": "internal",
            "code": "INTERNAL_ERROR",
            "stage": "ingress",
            "message": "Internal server error",
            "retryable": False,
            "correlation_id": "",
        }
    }
