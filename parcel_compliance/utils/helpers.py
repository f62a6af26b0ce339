"""Shared helper functions used across multiple modules."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from parcel_compliance.core.config import ComplianceConfig
from parcel_compliance.models.verification import SourceConfig


def build_source_config(
    source_name: str,
    config: ComplianceConfig | None = None,
    overrides: dict[str, Any] | None = None,
) -> SourceConfig:
    """Build a ``SourceConfig`` for *source_name* from engine configuration.

    Args:
        source_name: Registry name of the verification source.
        config: Engine configuration supplying timeouts, endpoints and the
            User-Agent. Defaults to ``ComplianceConfig()``.
        overrides: Optional dict of per-source overrides
            (``api_base_url``, ``timeout_s``, ``extra_params``).

    Returns:
        A populated ``SourceConfig`` instance.
    """
    from parcel_compliance.core.constants import INATURALIST, OSM_OVERPASS

    config = config or ComplianceConfig()
    overrides = overrides or {}

    default_urls = {
        OSM_OVERPASS: config.overpass_url,
        INATURALIST: config.inaturalist_url,
    }

    return SourceConfig(
        name=source_name,
        api_base_url=str(overrides.get("api_base_url", default_urls.get(source_name, ""))),
        timeout_s=float(overrides.get("timeout_s", config.source_timeout_s)),
        user_agent=config.http_user_agent,
        extra_params={str(k): str(v) for k, v in overrides.get("extra_params", {}).items()},
    )


def parse_timestamp(timestamp: str) -> datetime:
    """Parse an ISO 8601 timestamp string, defaulting to current UTC time.

    Args:
        timestamp: ISO 8601 timestamp string, or empty string.

    Returns:
        A timezone-aware ``datetime``. Naive inputs are taken as UTC.
        Falls back to ``datetime.now(UTC)`` if the input is empty or
        unparseable.
    """
    if not timestamp:
        return datetime.now(UTC)
    try:
        parsed = datetime.fromisoformat(timestamp)
    except (ValueError, TypeError):
        return datetime.now(UTC)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed
