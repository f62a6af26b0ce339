"""Engine configuration loaded from environment variables.

All configuration values have sensible defaults. Azure Functions app
settings (or ``local.settings.json`` for local dev) are the source of
truth when running behind the HTTP entrypoint.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is out
    of its valid range, so bad configuration is caught at startup rather
    than during a verification call.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from parcel_compliance import __version__
from parcel_compliance.core.constants import DEFAULT_MIN_BOUNDARY_POINTS, DEFAULT_SOURCES, MIN_POLYGON_POINTS
from parcel_compliance.core.exceptions import ComplianceError

DEFAULT_OVERPASS_URL = "https://overpass-api.de/api/interpreter"
DEFAULT_INATURALIST_URL = "https://api.inaturalist.org/v1/places"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})


class ConfigValidationError(ComplianceError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        self.message = message
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class ComplianceConfig:
    """Immutable engine configuration.

    Attributes:
        min_boundary_points: Vertices required before a boundary may be completed.
        verification_sources: Names of the source adapters to query.
        source_timeout_s: Per-source timeout budget in seconds.
        verification_timeout_s: Overall verification budget in seconds.
        degrade_on_partial_failure: Flag a verdict as degraded when any
            source fails, not only when all of them do.
        verify_vertices: Also query every boundary vertex, not just the centroid.
        overpass_url: OpenStreetMap Overpass interpreter endpoint.
        inaturalist_url: iNaturalist places endpoint.
        http_user_agent: User-Agent sent to live source APIs.
    """

    min_boundary_points: int = DEFAULT_MIN_BOUNDARY_POINTS
    verification_sources: tuple[str, ...] = DEFAULT_SOURCES
    source_timeout_s: float = 10.0
    verification_timeout_s: float = 30.0
    degrade_on_partial_failure: bool = True
    verify_vertices: bool = False
    overpass_url: str = DEFAULT_OVERPASS_URL
    inaturalist_url: str = DEFAULT_INATURALIST_URL
    http_user_agent: str = f"parcel-compliance/{__version__}"

    @classmethod
    def from_env(cls) -> ComplianceConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range, a boolean
                flag is unparseable, or a required string is empty.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``SOURCE_TIMEOUT_S=abc``).
        """
        sources_raw = os.getenv("VERIFICATION_SOURCES", ",".join(DEFAULT_SOURCES))
        config = cls(
            min_boundary_points=int(os.getenv("MIN_BOUNDARY_POINTS", str(DEFAULT_MIN_BOUNDARY_POINTS))),
            verification_sources=tuple(s.strip() for s in sources_raw.split(",") if s.strip()),
            source_timeout_s=float(os.getenv("SOURCE_TIMEOUT_S", "10")),
            verification_timeout_s=float(os.getenv("VERIFICATION_TIMEOUT_S", "30")),
            degrade_on_partial_failure=_env_flag("DEGRADE_ON_PARTIAL_FAILURE", default=True),
            verify_vertices=_env_flag("VERIFY_VERTICES", default=False),
            overpass_url=os.getenv("OVERPASS_URL", DEFAULT_OVERPASS_URL),
            inaturalist_url=os.getenv("INATURALIST_URL", DEFAULT_INATURALIST_URL),
            http_user_agent=os.getenv("HTTP_USER_AGENT", f"parcel-compliance/{__version__}"),
        )
        _validate(config)
        return config


def _env_flag(key: str, *, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigValidationError(key, raw, "must be a boolean (true/false, 1/0, yes/no)")


def _validate(config: ComplianceConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.min_boundary_points < MIN_POLYGON_POINTS:
        raise ConfigValidationError(
            "MIN_BOUNDARY_POINTS",
            config.min_boundary_points,
            f"must be >= {MIN_POLYGON_POINTS} (a polygon needs three vertices)",
        )

    if not config.verification_sources:
        raise ConfigValidationError(
            "VERIFICATION_SOURCES",
            config.verification_sources,
            "must name at least one source",
        )

    if config.source_timeout_s <= 0:
        raise ConfigValidationError(
            "SOURCE_TIMEOUT_S",
            config.source_timeout_s,
            "must be > 0 (seconds)",
        )

    if config.verification_timeout_s < config.source_timeout_s:
        raise ConfigValidationError(
            "VERIFICATION_TIMEOUT_S",
            config.verification_timeout_s,
            f"must be >= SOURCE_TIMEOUT_S ({config.source_timeout_s})",
        )

    if not config.overpass_url:
        raise ConfigValidationError("OVERPASS_URL", config.overpass_url, "must not be empty")

    if not config.inaturalist_url:
        raise ConfigValidationError("INATURALIST_URL", config.inaturalist_url, "must not be empty")
