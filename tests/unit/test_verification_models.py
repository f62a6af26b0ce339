"""Tests for verification models (source results and consensus verdict).

Verifies:
- Construction invariants (non-negative distance, failed results never vote)
- ``status`` keeps ``unverified`` distinct from ``clear``
- Summary strings for reports
- Serialisation shape
"""

from __future__ import annotations

import pytest

from parcel_compliance.models.verification import (
    ConsensusVerdict,
    ModelValidationError,
    ProtectedAreaSourceResult,
    QueryStatus,
    SourceConfig,
    VerdictStatus,
)


class TestSourceConfig:
    def test_defaults(self) -> None:
        cfg = SourceConfig(name="wdpa")
        assert cfg.timeout_s == 10.0
        assert cfg.extra_params == {}

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ModelValidationError, match="name"):
            SourceConfig(name=" ")

    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ModelValidationError, match="timeout_s"):
            SourceConfig(name="wdpa", timeout_s=0)


class TestProtectedAreaSourceResult:
    def test_ok_defaults(self) -> None:
        r = ProtectedAreaSourceResult("wdpa")
        assert r.succeeded is True
        assert r.is_protected is False
        assert r.distance_m is None

    def test_negative_distance_rejected(self) -> None:
        with pytest.raises(ModelValidationError, match="distance_m"):
            ProtectedAreaSourceResult("wdpa", distance_m=-1.0)

    def test_failed_result_cannot_vote(self) -> None:
        with pytest.raises(ModelValidationError, match="cannot vote"):
            ProtectedAreaSourceResult("wdpa", query_status=QueryStatus.ERROR, is_protected=True)

    def test_failed_factory(self) -> None:
        r = ProtectedAreaSourceResult.failed("osm_overpass", QueryStatus.TIMEOUT, "slow")
        assert r.succeeded is False
        assert r.query_status is QueryStatus.TIMEOUT
        assert r.error_message == "slow"
        assert r.is_protected is False

    def test_failed_factory_rejects_ok(self) -> None:
        with pytest.raises(ModelValidationError):
            ProtectedAreaSourceResult.failed("wdpa", QueryStatus.OK)

    def test_model_validation_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            ProtectedAreaSourceResult("")

    def test_to_dict(self) -> None:
        r = ProtectedAreaSourceResult("wdpa", is_protected=True, distance_m=12.5, matched_area_name="Sapo")
        assert r.to_dict() == {
            "source_name": "wdpa",
            "query_status": "ok",
            "is_protected": True,
            "distance_m": 12.5,
            "matched_area_name": "Sapo",
            "error_message": "",
        }


class TestConsensusVerdictInvariants:
    def test_confidence_out_of_range(self) -> None:
        with pytest.raises(ModelValidationError, match="confidence_pct"):
            ConsensusVerdict(False, 101, 1, 0, 1)

    def test_confirmed_exceeds_succeeded(self) -> None:
        with pytest.raises(ModelValidationError):
            ConsensusVerdict(True, 100, 4, 3, 2)

    def test_succeeded_exceeds_checked(self) -> None:
        with pytest.raises(ModelValidationError):
            ConsensusVerdict(False, 0, 2, 0, 3)


class TestConsensusVerdictStatus:
    def test_protected(self, protected_verdict: ConsensusVerdict) -> None:
        assert protected_verdict.status is VerdictStatus.PROTECTED

    def test_clear(self, clear_verdict: ConsensusVerdict) -> None:
        assert clear_verdict.status is VerdictStatus.CLEAR

    def test_nothing_succeeded_is_unverified(self) -> None:
        verdict = ConsensusVerdict(False, 0, 4, 0, 0, degraded=True)
        assert verdict.status is VerdictStatus.UNVERIFIED

    def test_degraded_negative_is_unverified(self) -> None:
        verdict = ConsensusVerdict(False, 0, 4, 0, 2, degraded=True)
        assert verdict.status is VerdictStatus.UNVERIFIED

    def test_degraded_positive_is_still_protected(self) -> None:
        verdict = ConsensusVerdict(True, 100, 4, 1, 1, degraded=True)
        assert verdict.status is VerdictStatus.PROTECTED


class TestConsensusVerdictSummary:
    def test_protected_summary(self, protected_verdict: ConsensusVerdict) -> None:
        assert protected_verdict.summary == "900m from Liberian Forest Reserve (GFW) (2/4 sources verified)"

    def test_clear_with_distance(self, clear_verdict: ConsensusVerdict) -> None:
        assert clear_verdict.summary == "80000m from nearest area (0/2 sources verified)"

    def test_clear_nothing_nearby(self) -> None:
        verdict = ConsensusVerdict(False, 0, 2, 0, 2)
        assert verdict.summary == "No known protected area nearby (0/2 sources verified)"

    def test_unverified(self) -> None:
        verdict = ConsensusVerdict(False, 0, 4, 0, 0, degraded=True)
        assert verdict.summary.startswith("Protected-area status could not be verified")

    def test_verification_sources_lists_successful_authorities(self, protected_verdict: ConsensusVerdict) -> None:
        assert protected_verdict.verification_sources == ["WDPA", "OpenStreetMap", "Global Forest Watch"]


class TestConsensusVerdictSerialisation:
    def test_to_dict(self, protected_verdict: ConsensusVerdict) -> None:
        d = protected_verdict.to_dict()
        assert d["status"] == "protected"
        assert d["confidence_pct"] == 67
        assert d["degraded"] is True
        assert len(d["source_results"]) == 4  # type: ignore[arg-type]
        assert d["source_results"][3]["query_status"] == "timeout"  # type: ignore[index]
