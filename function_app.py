"""Azure Functions entry point: Parcel Compliance Engine.

This module registers the HTTP triggers using the Python v2 programming
model.

All business logic lives in the parcel_compliance package. This file is
purely the wiring layer between Azure Functions bindings and application
code.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import azure.functions as func

from parcel_compliance.core.config import ComplianceConfig
from parcel_compliance.core.ingress import (
    HTTP_OK,
    error_response,
    handle_assess_parcel,
    handle_compute_geometry,
    handle_verify,
    parse_json_body,
)
from parcel_compliance.orchestrators.verification import VerificationOrchestrator

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

app = func.FunctionApp(http_auth_level=func.AuthLevel.FUNCTION)

logger = logging.getLogger("parcel_compliance.function_app")

_config: ComplianceConfig | None = None


def _get_config() -> ComplianceConfig:
    global _config  # noqa: PLW0603
    if _config is None:
        _config = ComplianceConfig.from_env()
    return _config


def _json_response(status_code: int, body: dict[str, object]) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(body),
        status_code=status_code,
        mimetype="application/json",
    )


async def _run(
    endpoint: str,
    handler: Callable[[], Awaitable[dict[str, object]] | dict[str, object]],
) -> func.HttpResponse:
    try:
        result = handler()
        if not isinstance(result, dict):
            result = await result
    except Exception as exc:
        status_code, body = error_response(exc)
        if status_code >= 500:  # noqa: PLR2004
            logger.exception("Request failed | endpoint=%s | status=%d", endpoint, status_code)
        else:
            logger.warning("Request rejected | endpoint=%s | status=%d | error=%s", endpoint, status_code, exc)
        return _json_response(status_code, body)
    return _json_response(HTTP_OK, result)


# ---------------------------------------------------------------------------
# HTTP: Geometry
# ---------------------------------------------------------------------------


@app.function_name("compute_geometry")
@app.route(route="geometry", methods=["POST"])
async def compute_geometry_http(req: func.HttpRequest) -> func.HttpResponse:
    """Area, perimeter, centroid and accuracy grade for a list of points."""
    return await _run("geometry", lambda: handle_compute_geometry(parse_json_body(req.get_body())))


# ---------------------------------------------------------------------------
# HTTP: Protected-area verification
# ---------------------------------------------------------------------------


@app.function_name("verify_location")
@app.route(route="verify", methods=["POST"])
async def verify_location_http(req: func.HttpRequest) -> func.HttpResponse:
    """Consensus protected-area verdict for a single coordinate."""

    async def handler() -> dict[str, object]:
        body = parse_json_body(req.get_body())
        orchestrator = VerificationOrchestrator.from_config(_get_config())
        try:
            return await handle_verify(body, orchestrator)
        finally:
            await orchestrator.aclose()

    return await _run("verify", handler)


# ---------------------------------------------------------------------------
# HTTP: Full parcel assessment
# ---------------------------------------------------------------------------


@app.function_name("assess_parcel")
@app.route(route="parcels/assess", methods=["POST"])
async def assess_parcel_http(req: func.HttpRequest) -> func.HttpResponse:
    """Capture, verify and compose a compliance record in one request."""

    async def handler() -> dict[str, object]:
        body = parse_json_body(req.get_body())
        config = _get_config()
        orchestrator = VerificationOrchestrator.from_config(config)
        try:
            return await handle_assess_parcel(body, config, orchestrator)
        finally:
            await orchestrator.aclose()

    return await _run("assess_parcel", handler)
