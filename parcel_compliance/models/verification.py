"""Typed models for the protected-area verification layer.

Defines the data structures exchanged between the verification
orchestrator and the source adapters:

- ``SourceConfig``: Configuration for a specific verification source
- ``ProtectedAreaSourceResult``: One source's normalised answer (or failure)
- ``ConsensusVerdict``: The reconciled verdict across all sources

Design notes:
- All models are frozen dataclasses.
- Explicit units on every numeric field (metres, percent).
- Status values are enums, never bare strings.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from parcel_compliance.core.constants import SOURCE_DISPLAY_NAMES
from parcel_compliance.core.exceptions import ComplianceError

# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ModelValidationError(ValueError, ComplianceError):
    """Raised when a domain model is constructed with invalid field values.

    Attributes:
        model: Name of the model class that failed validation.
        field_name: The field that violated the invariant.
        value: The invalid value.
    """

    default_stage = "model_validation"
    default_code = "MODEL_VALIDATION_FAILED"

    def __init__(self, model: str, field_name: str, value: object, message: str) -> None:
        self.model = model
        self.field_name = field_name
        self.value = value
        formatted = f"{model}.{field_name}={value!r}: {message}"
        ComplianceError.__init__(self, formatted)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class QueryStatus(enum.Enum):
    """Outcome of a single source query.

    Values:
        OK:      The source answered and the answer was normalised.
        TIMEOUT: The source did not answer within its budget.
        ERROR:   The source failed (network, HTTP status, malformed body).
    """

    OK = "ok"
    TIMEOUT = "timeout"
    ERROR = "error"


class VerdictStatus(enum.Enum):
    """Headline reading of a consensus verdict.

    ``UNVERIFIED`` is structurally distinct from ``CLEAR`` so that
    "unable to verify" can never be mistaken for "confirmed not protected".
    """

    PROTECTED = "protected"
    CLEAR = "clear"
    UNVERIFIED = "unverified"


# ---------------------------------------------------------------------------
# Source configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceConfig:
    """Configuration for a specific verification source.

    Attributes:
        name: Source identifier (must match the adapter registry key).
        api_base_url: Endpoint for live sources (empty for catalogue sources).
        timeout_s: Per-request HTTP timeout in seconds.
        user_agent: User-Agent header sent to live APIs.
        extra_params: Source-specific configuration parameters.
    """

    name: str
    api_base_url: str = ""
    timeout_s: float = 10.0
    user_agent: str = ""
    extra_params: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_non_empty("SourceConfig", "name", self.name)
        if self.timeout_s <= 0:
            raise ModelValidationError("SourceConfig", "timeout_s", self.timeout_s, "must be > 0")


# ---------------------------------------------------------------------------
# Per-source result
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ProtectedAreaSourceResult:
    """One source's normalised answer for a coordinate.

    Attributes:
        source_name: Registry name of the source that produced the result.
        query_status: Whether the query succeeded, timed out or failed.
        is_protected: The source's vote; always ``False`` unless ``OK``.
        distance_m: Distance to the nearest candidate area in metres.
            ``None`` when the source knows no candidate nearby or failed.
        matched_area_name: Name of the nearest candidate area, if known.
        error_message: Failure description for ``TIMEOUT``/``ERROR`` results.
    """

    source_name: str
    query_status: QueryStatus = QueryStatus.OK
    is_protected: bool = False
    distance_m: float | None = None
    matched_area_name: str | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        _check_non_empty("ProtectedAreaSourceResult", "source_name", self.source_name)
        if self.distance_m is not None and self.distance_m < 0:
            raise ModelValidationError(
                "ProtectedAreaSourceResult", "distance_m", self.distance_m, "must be >= 0"
            )
        if self.is_protected and self.query_status is not QueryStatus.OK:
            raise ModelValidationError(
                "ProtectedAreaSourceResult",
                "is_protected",
                self.is_protected,
                f"a {self.query_status.value} result cannot vote protected",
            )

    @property
    def succeeded(self) -> bool:
        return self.query_status is QueryStatus.OK

    @classmethod
    def failed(
        cls,
        source_name: str,
        status: QueryStatus,
        message: str = "",
    ) -> ProtectedAreaSourceResult:
        """Build a non-voting result for a timed-out or failed query."""
        if status is QueryStatus.OK:
            raise ModelValidationError(
                "ProtectedAreaSourceResult", "query_status", status, "failed() needs TIMEOUT or ERROR"
            )
        return cls(source_name=source_name, query_status=status, error_message=message)

    def to_dict(self) -> dict[str, object]:
        """Serialise to a JSON-friendly dict."""
        return {
            "source_name": self.source_name,
            "query_status": self.query_status.value,
            "is_protected": self.is_protected,
            "distance_m": self.distance_m,
            "matched_area_name": self.matched_area_name,
            "error_message": self.error_message,
        }


# ---------------------------------------------------------------------------
# Consensus verdict
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ConsensusVerdict:
    """Reconciled protected-area verdict across all configured sources.

    Attributes:
        is_protected: ``True`` when at least one successful source confirms.
        confidence_pct: ``round(confirmed / succeeded * 100)``; 0 with no successes.
        sources_checked: Number of configured sources.
        sources_confirmed: Successful sources voting protected.
        sources_succeeded: Sources that answered ``OK``.
        nearest_area_name: Name of the closest confirming area (protected only).
        nearest_distance_m: Closest confirming distance when protected,
            otherwise the closest distance among all successful sources.
        degraded: Verification was incomplete; see ``status``.
        source_results: The per-source results the verdict was built from.
    """

    is_protected: bool
    confidence_pct: int
    sources_checked: int
    sources_confirmed: int
    sources_succeeded: int
    nearest_area_name: str | None = None
    nearest_distance_m: float | None = None
    degraded: bool = False
    source_results: tuple[ProtectedAreaSourceResult, ...] = ()

    def __post_init__(self) -> None:
        _check_range("ConsensusVerdict", "confidence_pct", self.confidence_pct, 0, 100)
        if not 0 <= self.sources_confirmed <= self.sources_succeeded <= self.sources_checked:
            raise ModelValidationError(
                "ConsensusVerdict",
                "sources_confirmed",
                (self.sources_confirmed, self.sources_succeeded, self.sources_checked),
                "must satisfy 0 <= confirmed <= succeeded <= checked",
            )

    @property
    def status(self) -> VerdictStatus:
        if self.is_protected:
            return VerdictStatus.PROTECTED
        if self.sources_succeeded == 0 or self.degraded:
            return VerdictStatus.UNVERIFIED
        return VerdictStatus.CLEAR

    @property
    def verification_sources(self) -> list[str]:
        """Display names of the sources that answered successfully."""
        return [
            SOURCE_DISPLAY_NAMES.get(r.source_name, r.source_name)
            for r in self.source_results
            if r.succeeded
        ]

    @property
    def summary(self) -> str:
        """One-line human-readable distance statement for reports."""
        tally = f"({self.sources_confirmed}/{self.sources_checked} sources verified)"
        if self.sources_succeeded == 0:
            return f"Protected-area status could not be verified {tally}"
        if self.nearest_distance_m is None:
            return f"No known protected area nearby {tally}"
        distance = round(self.nearest_distance_m)
        if self.is_protected:
            return f"{distance}m from {self.nearest_area_name or 'protected area'} {tally}"
        return f"{distance}m from nearest area {tally}"

    def to_dict(self) -> dict[str, object]:
        """Serialise to a JSON-friendly dict."""
        return {
            "status": self.status.value,
            "is_protected": self.is_protected,
            "confidence_pct": self.confidence_pct,
            "sources_checked": self.sources_checked,
            "sources_confirmed": self.sources_confirmed,
            "sources_succeeded": self.sources_succeeded,
            "nearest_area_name": self.nearest_area_name,
            "nearest_distance_m": self.nearest_distance_m,
            "degraded": self.degraded,
            "summary": self.summary,
            "verification_sources": self.verification_sources,
            "source_results": [r.to_dict() for r in self.source_results],
        }


# ---------------------------------------------------------------------------
# Validation helpers (module-private)
# ---------------------------------------------------------------------------


def _check_range(model: str, field_name: str, value: float, lo: float, hi: float) -> None:
    """Raise `ModelValidationError` if *value* falls outside [lo, hi]."""
    if value < lo or value > hi:
        raise ModelValidationError(model, field_name, value, f"must be between {lo} and {hi}")


def _check_non_empty(model: str, field_name: str, value: str) -> None:
    """Raise `ModelValidationError` if *value* is empty or blank."""
    if not value or not value.strip():
        raise ModelValidationError(model, field_name, value, "must not be empty")
