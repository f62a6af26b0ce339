"""Typed payload schemas for the HTTP request contracts.

Every endpoint receives a JSON object body.  These ``TypedDict``
definitions make the contracts explicit so that pyright catches key
mismatches at analysis time and ``validate_payload`` catches them at
runtime.

Usage::

    from parcel_compliance.models.payloads import VerifyRequest, validate_payload

    def handle_verify(body: dict) -> ...:
        validate_payload(body, VerifyRequest, endpoint="verify")
        # body is now known to contain all required keys
"""

from __future__ import annotations

from typing import Any, NotRequired, TypedDict

from parcel_compliance.core.exceptions import ContractError

# ---------------------------------------------------------------------------
# Boundary point (shared)
# ---------------------------------------------------------------------------


class BoundaryPointPayload(TypedDict):
    """One captured vertex as sent by a client."""

    latitude: float
    longitude: float
    accuracy_m: NotRequired[float]
    timestamp: NotRequired[str]


# ---------------------------------------------------------------------------
# POST /api/geometry
# ---------------------------------------------------------------------------


class GeometryRequest(TypedDict):
    """Client → geometry endpoint."""

    points: list[BoundaryPointPayload]


# ---------------------------------------------------------------------------
# POST /api/verify
# ---------------------------------------------------------------------------


class VerifyRequest(TypedDict):
    """Client → verify endpoint."""

    latitude: float
    longitude: float
    vertices: NotRequired[list[dict[str, float]]]


# ---------------------------------------------------------------------------
# POST /api/parcels/assess
# ---------------------------------------------------------------------------


class AssessParcelRequest(TypedDict):
    """Client → parcel assessment endpoint."""

    parcel_id: str
    points: list[BoundaryPointPayload]
    metadata: NotRequired[dict[str, Any]]


# ---------------------------------------------------------------------------
# Required-key registrations (used by validate_payload)
# ---------------------------------------------------------------------------

_REQUIRED_KEYS: dict[type, frozenset[str]] = {
    GeometryRequest: frozenset({"points"}),
    VerifyRequest: frozenset({"latitude", "longitude"}),
    AssessParcelRequest: frozenset({"parcel_id", "points"}),
}


# ---------------------------------------------------------------------------
# Runtime validation
# ---------------------------------------------------------------------------


def validate_payload(
    raw: dict[str, Any],
    schema: type,
    *,
    endpoint: str,
) -> None:
    """Validate that *raw* contains the required keys for *schema*.

    Raises:
        ContractError: If required keys are missing from the payload.
    """
    required = _REQUIRED_KEYS.get(schema)
    if required is None:
        return

    missing = required - raw.keys()
    if missing:
        msg = f"{endpoint}: missing required payload key(s): {', '.join(sorted(missing))}"
        raise ContractError(msg, stage=endpoint, code="PAYLOAD_MISSING_KEYS")
