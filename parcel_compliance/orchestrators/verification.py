"""Protected-area verification orchestrator.

Fans a coordinate out to every configured source concurrently, collects
every outcome with an all-settled join, and reduces the outcomes into a
``ConsensusVerdict``.

Failure isolation
-----------------
- Each source runs in its own task under its own timeout budget.  A slow,
  failing or misbehaving source becomes a ``TIMEOUT``/``ERROR`` result and
  never fails, stalls or discards the others.
- An overall budget caps total latency: sources still running when it
  expires are cancelled and recorded as ``TIMEOUT``.
- If the caller's task is cancelled, every in-flight source task is
  cancelled and awaited before ``CancelledError`` propagates; results that
  would have arrived later are discarded.

Consensus rule (any positive vote)
----------------------------------
``is_protected`` is true as soon as one successful source confirms; the
confidence percentage (confirmed / succeeded) reports agreement strength
separately.  Missing a real overlap is worse than a conservative flag
that a reviewer can clear.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import TYPE_CHECKING

from parcel_compliance.models.verification import (
    ConsensusVerdict,
    ProtectedAreaSourceResult,
    QueryStatus,
)
from parcel_compliance.sources.base import SourceError, SourceTimeoutError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from parcel_compliance.core.config import ComplianceConfig
    from parcel_compliance.models.boundary import LatLng
    from parcel_compliance.sources.base import ProtectedAreaSource

logger = logging.getLogger("parcel_compliance.orchestrators.verification")

DEFAULT_SOURCE_TIMEOUT_S = 10.0
DEFAULT_VERIFICATION_TIMEOUT_S = 30.0


class VerificationOrchestrator:
    """Queries all sources for a coordinate and builds the consensus verdict.

    Args:
        sources: Source adapters to fan out to; their count is ``sources_checked``.
        source_timeout_s: Independent budget for each source.
        total_timeout_s: Budget for the whole verification call.
        degrade_on_partial_failure: Mark the verdict degraded when any
            source fails, not only when all of them do.
    """

    def __init__(
        self,
        sources: Sequence[ProtectedAreaSource],
        *,
        source_timeout_s: float = DEFAULT_SOURCE_TIMEOUT_S,
        total_timeout_s: float = DEFAULT_VERIFICATION_TIMEOUT_S,
        degrade_on_partial_failure: bool = True,
    ) -> None:
        if not sources:
            msg = "VerificationOrchestrator needs at least one source"
            raise ValueError(msg)
        self._sources = list(sources)
        self._source_timeout_s = source_timeout_s
        self._total_timeout_s = total_timeout_s
        self._degrade_on_partial_failure = degrade_on_partial_failure

    @classmethod
    def from_config(
        cls,
        config: ComplianceConfig,
        sources: Sequence[ProtectedAreaSource] | None = None,
    ) -> VerificationOrchestrator:
        """Build an orchestrator from engine configuration.

        When *sources* is ``None`` the sources named in the configuration
        are instantiated through the source factory.
        """
        if sources is None:
            from parcel_compliance.sources.factory import build_sources

            sources = build_sources(config)
        return cls(
            sources,
            source_timeout_s=config.source_timeout_s,
            total_timeout_s=config.verification_timeout_s,
            degrade_on_partial_failure=config.degrade_on_partial_failure,
        )

    @property
    def source_names(self) -> list[str]:
        return [s.name for s in self._sources]

    async def aclose(self) -> None:
        """Close every source adapter."""
        for source in self._sources:
            await source.aclose()

    # ------------------------------------------------------------------
    # verify
    # ------------------------------------------------------------------

    async def verify(
        self,
        lat: float,
        lng: float,
        *,
        vertices: Sequence[LatLng] | None = None,
    ) -> ConsensusVerdict:
        """Determine protected-area overlap for a coordinate.

        Args:
            lat: Representative latitude (usually the parcel centroid).
            lng: Representative longitude.
            vertices: Optional boundary vertices to check as well.  A source
                then votes protected if any point is protected and only
                counts as succeeded if every point query succeeded.

        Returns:
            The ``ConsensusVerdict``.  Never raises for source failures.
        """
        points = [(lat, lng), *((v.lat, v.lng) for v in vertices or ())]
        logger.info(
            "Verification started | lat=%.6f | lng=%.6f | points=%d | sources=%s",
            lat,
            lng,
            len(points),
            ",".join(self.source_names),
        )

        tasks = {
            asyncio.create_task(self._query_source(source, points), name=f"verify:{source.name}"): source
            for source in self._sources
        }
        try:
            done, pending = await asyncio.wait(tasks, timeout=self._total_timeout_s)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.warning("Verification cancelled | in-flight sources abandoned")
            raise

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        results: list[ProtectedAreaSourceResult] = []
        for task, source in tasks.items():
            if task in done:
                results.append(task.result())
            else:
                logger.warning(
                    "Source exceeded verification budget | source=%s | budget=%.1fs",
                    source.name,
                    self._total_timeout_s,
                )
                results.append(
                    ProtectedAreaSourceResult.failed(
                        source.name,
                        QueryStatus.TIMEOUT,
                        f"no answer within the {self._total_timeout_s}s verification budget",
                    )
                )

        verdict = build_consensus(
            results,
            degrade_on_partial_failure=self._degrade_on_partial_failure,
        )
        logger.info(
            "Verification completed | protected=%s | confidence=%d%% | "
            "confirmed=%d | succeeded=%d | checked=%d | degraded=%s",
            verdict.is_protected,
            verdict.confidence_pct,
            verdict.sources_confirmed,
            verdict.sources_succeeded,
            verdict.sources_checked,
            verdict.degraded,
        )
        return verdict

    async def _query_source(
        self,
        source: ProtectedAreaSource,
        points: list[tuple[float, float]],
    ) -> ProtectedAreaSourceResult:
        """Run one source under its own budget; never raises except on cancel."""
        try:
            return await asyncio.wait_for(
                self._query_points(source, points),
                timeout=self._source_timeout_s,
            )
        except (TimeoutError, SourceTimeoutError) as exc:
            message = str(exc) or f"no answer within {self._source_timeout_s}s"
            logger.warning("Source timed out | source=%s | %s", source.name, message)
            return ProtectedAreaSourceResult.failed(source.name, QueryStatus.TIMEOUT, message)
        except SourceError as exc:
            logger.warning("Source failed | source=%s | code=%s | %s", source.name, exc.code, exc.message)
            return ProtectedAreaSourceResult.failed(source.name, QueryStatus.ERROR, exc.message)
        except Exception as exc:
            logger.exception("Source raised unexpectedly | source=%s", source.name)
            return ProtectedAreaSourceResult.failed(source.name, QueryStatus.ERROR, repr(exc))

    @staticmethod
    async def _query_points(
        source: ProtectedAreaSource,
        points: list[tuple[float, float]],
    ) -> ProtectedAreaSourceResult:
        # Points share the source's budget, so they are queried concurrently.
        tasks = [asyncio.create_task(source.query(lat, lng)) for lat, lng in points]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return merge_point_results(source.name, results)


# ---------------------------------------------------------------------------
# Pure reduction helpers
# ---------------------------------------------------------------------------


def merge_point_results(
    source_name: str,
    results: Sequence[ProtectedAreaSourceResult],
) -> ProtectedAreaSourceResult:
    """Fold one source's answers for several points into a single vote.

    Protected if any point is protected; the reported distance is the
    closest protected hit, or the closest candidate overall otherwise.
    """
    if len(results) == 1:
        return results[0]

    hits = [r for r in results if r.is_protected and r.distance_m is not None]
    pool = hits or [r for r in results if r.distance_m is not None]
    if not pool:
        return ProtectedAreaSourceResult(source_name=source_name)

    nearest = min(pool, key=lambda r: r.distance_m)  # type: ignore[arg-type, return-value]
    return ProtectedAreaSourceResult(
        source_name=source_name,
        is_protected=bool(hits),
        distance_m=nearest.distance_m,
        matched_area_name=nearest.matched_area_name,
    )


def build_consensus(
    results: Sequence[ProtectedAreaSourceResult],
    *,
    degrade_on_partial_failure: bool = True,
) -> ConsensusVerdict:
    """Reduce per-source results into a ``ConsensusVerdict``.

    - ``sources_checked`` is the number of results (one per configured source).
    - Failed sources are excluded from the confidence denominator.
    - ``confidence_pct`` rounds half up; it is 0 when nothing succeeded.
    - ``degraded`` is set when nothing succeeded, or when anything failed
      and *degrade_on_partial_failure* is on.
    """
    checked = len(results)
    succeeded = [r for r in results if r.succeeded]
    confirmed = [r for r in succeeded if r.is_protected]

    confidence = _percent(len(confirmed), len(succeeded))
    is_protected = len(confirmed) > 0

    nearest_name: str | None = None
    nearest_distance: float | None = None
    if is_protected:
        located = [r for r in confirmed if r.distance_m is not None]
        if located:
            closest = min(located, key=lambda r: r.distance_m)  # type: ignore[arg-type, return-value]
            nearest_distance = closest.distance_m
            nearest_name = closest.matched_area_name
    else:
        distances = [r.distance_m for r in succeeded if r.distance_m is not None]
        if distances:
            nearest_distance = min(distances)

    degraded = not succeeded or (degrade_on_partial_failure and len(succeeded) < checked)

    return ConsensusVerdict(
        is_protected=is_protected,
        confidence_pct=confidence,
        sources_checked=checked,
        sources_confirmed=len(confirmed),
        sources_succeeded=len(succeeded),
        nearest_area_name=nearest_name,
        nearest_distance_m=nearest_distance,
        degraded=degraded,
        source_results=tuple(results),
    )


def _percent(part: int, whole: int) -> int:
    if whole == 0:
        return 0
    return math.floor(part * 100 / whole + 0.5)
