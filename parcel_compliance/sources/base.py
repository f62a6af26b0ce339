"""ProtectedAreaSource abstract base class.

Defines the contract that every verification source adapter must
implement.  The orchestrator interacts exclusively with this interface;
it never knows which authority, wire protocol or backing store is behind
an adapter.

Contract:
    ``await source.query(lat, lng)`` returns a ``ProtectedAreaSourceResult``
    with ``query_status == OK``, or raises a ``SourceError``.  Adapters do
    not build failure results themselves: the orchestrator converts
    raised errors and timeouts into ``TIMEOUT``/``ERROR`` results.

Each concrete adapter decides its own containment rule: large-reserve
sources can use a generous radius, point-of-interest sources need a tight
one to avoid false positives.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from parcel_compliance.core.exceptions import ComplianceError
from parcel_compliance.models.verification import ProtectedAreaSourceResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from parcel_compliance.models.verification import SourceConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CandidateArea:
    """A protected-area candidate located relative to the query point.

    Attributes:
        name: Area name as published by the source (may be ``None``).
        distance_m: Distance from the query point in metres.
        containment_radius_m: Radius within which the query point counts
            as inside this area.
    """

    name: str | None
    distance_m: float
    containment_radius_m: float

    @property
    def contains_query_point(self) -> bool:
        return self.distance_m <= self.containment_radius_m


class ProtectedAreaSource(abc.ABC):
    """Abstract base class for protected-area verification sources.

    The constructor receives a ``SourceConfig`` which carries the endpoint,
    timeout and source-specific parameters.

    Example usage::

        source = get_source("osm_overpass")
        result = await source.query(6.4281, -9.4295)
    """

    def __init__(self, config: SourceConfig) -> None:
        self._config = config

    @property
    def name(self) -> str:
        """Return the source name from configuration."""
        return self._config.name

    @property
    def config(self) -> SourceConfig:
        """Return the source configuration (read-only)."""
        return self._config

    @abc.abstractmethod
    async def query(self, lat: float, lng: float) -> ProtectedAreaSourceResult:
        """Check whether ``(lat, lng)`` lies in a protected area.

        Args:
            lat: Query latitude in decimal degrees.
            lng: Query longitude in decimal degrees.

        Returns:
            A ``ProtectedAreaSourceResult`` with ``query_status == OK``.

        Raises:
            SourceError: On network failure, bad status or malformed body.
        """

    async def aclose(self) -> None:  # noqa: B027
        """Release network resources held by the adapter (no-op by default)."""

    # ------------------------------------------------------------------
    # Shared normalisation
    # ------------------------------------------------------------------

    def _nearest_result(self, candidates: Iterable[CandidateArea]) -> ProtectedAreaSourceResult:
        """Normalise located candidates into this source's vote.

        Containing candidates win over closer non-containing ones (a small
        reserve's centre can be nearer than a large reserve the point is
        inside); otherwise the nearest candidate is reported.  An empty
        candidate list is a successful "nothing nearby" answer.
        """
        nearest: CandidateArea | None = None
        for candidate in candidates:
            if nearest is None:
                nearest = candidate
                continue
            rank = (not candidate.contains_query_point, candidate.distance_m)
            best = (not nearest.contains_query_point, nearest.distance_m)
            if rank < best:
                nearest = candidate

        if nearest is None:
            logger.info("Source result | source=%s | status=ok | candidates=0", self.name)
            return ProtectedAreaSourceResult(source_name=self.name)

        logger.info(
            "Source result | source=%s | status=ok | protected=%s | distance_m=%.0f | area=%s",
            self.name,
            nearest.contains_query_point,
            nearest.distance_m,
            nearest.name,
        )
        return ProtectedAreaSourceResult(
            source_name=self.name,
            is_protected=nearest.contains_query_point,
            distance_m=nearest.distance_m,
            matched_area_name=nearest.name,
        )


# ---------------------------------------------------------------------------
# Source exceptions
# ---------------------------------------------------------------------------


class SourceError(ComplianceError):
    """Base exception for source adapter errors.

    Attributes:
        source: Name of the source that raised the error.
        message: Human-readable error description.
        retryable: Whether the caller could retry the query.
    """

    default_stage = "source"
    default_code = "SOURCE_ERROR"

    def __init__(
        self,
        source: str,
        message: str,
        *,
        retryable: bool = False,
    ) -> None:
        self.source = source
        super().__init__(
            message,
            retryable=retryable,
            code=self.default_code,
            stage=self.default_stage,
        )

    def __str__(self) -> str:
        return f"[{self.source}] {self.message}"


class SourceTimeoutError(SourceError):
    """The source did not answer within its timeout budget."""

    default_code = "SOURCE_TIMEOUT"

    def __init__(self, source: str, message: str) -> None:
        super().__init__(source, message, retryable=True)


class SourceUnavailableError(SourceError):
    """Network failure or non-success HTTP status from the source."""

    default_code = "SOURCE_UNAVAILABLE"


class SourceResponseError(SourceError):
    """The source answered, but the body could not be normalised."""

    default_code = "SOURCE_RESPONSE_INVALID"
