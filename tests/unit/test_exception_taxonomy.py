"""Tests for the unified exception taxonomy.

Validates:
- ComplianceError hierarchy and structured attributes
- Category classification (validation, transient, permanent, contract)
- ``to_error_dict()`` produces stable payload keys
- Every domain exception is a ComplianceError subclass
"""

from __future__ import annotations

from typing import ClassVar

import pytest

from parcel_compliance.activities.compose_record import IncompleteInputError
from parcel_compliance.capture.session import BoundaryStateError, CaptureState
from parcel_compliance.core.config import ConfigValidationError
from parcel_compliance.core.exceptions import (
    ComplianceError,
    ContractError,
    PermanentError,
    TransientError,
    ValidationError,
)
from parcel_compliance.models.boundary import CoordinateValidationError
from parcel_compliance.models.verification import ModelValidationError
from parcel_compliance.sources.base import (
    SourceError,
    SourceResponseError,
    SourceTimeoutError,
    SourceUnavailableError,
)


class TestComplianceErrorBase:
    """ComplianceError base class behaviour."""

    def test_default_attributes(self) -> None:
        err = ComplianceError("boom")
        assert err.message == "boom"
        assert err.stage == ""
        assert err.code == ""
        assert err.retryable is False
        assert err.correlation_id == ""

    def test_custom_attributes(self) -> None:
        err = ComplianceError(
            "fail",
            stage="verification",
            code="SOURCE_DOWN",
            retryable=True,
            correlation_id="req-7",
        )
        assert err.stage == "verification"
        assert err.code == "SOURCE_DOWN"
        assert err.retryable is True
        assert err.correlation_id == "req-7"

    def test_str_is_message(self) -> None:
        assert str(ComplianceError("human-readable error")) == "human-readable error"

    def test_to_error_dict_keys(self) -> None:
        d = ComplianceError("x", stage="s", code="C", retryable=True, correlation_id="id").to_error_dict()
        assert set(d) == {"category", "code", "stage", "message", "retryable", "correlation_id"}

    def test_uncategorised_falls_back_on_retryable(self) -> None:
        assert ComplianceError("x", retryable=True).category == "transient"
        assert ComplianceError("x").category == "permanent"


class TestCategories:
    @pytest.mark.parametrize(
        ("cls", "category"),
        [
            (ValidationError, "validation"),
            (TransientError, "transient"),
            (PermanentError, "permanent"),
            (ContractError, "contract"),
        ],
    )
    def test_category(self, cls: type[ComplianceError], category: str) -> None:
        assert cls("x").category == category


class TestDomainExceptions:
    """Every domain exception sits in the taxonomy with a stable code."""

    CASES: ClassVar[list[tuple[ComplianceError, type[ComplianceError], str, str]]] = [
        (CoordinateValidationError("bad"), ValidationError, "capture", "INVALID_COORDINATE"),
        (IncompleteInputError("missing"), ValidationError, "compose_record", "INCOMPLETE_INPUT"),
        (BoundaryStateError("complete", CaptureState.EMPTY), ValidationError, "capture", "INVALID_STATE_TRANSITION"),
        (ConfigValidationError("K", 1, "bad"), ComplianceError, "config", "CONFIG_VALIDATION_FAILED"),
        (ModelValidationError("M", "f", 1, "bad"), ComplianceError, "model_validation", "MODEL_VALIDATION_FAILED"),
        (SourceError("wdpa", "x"), ComplianceError, "source", "SOURCE_ERROR"),
        (SourceTimeoutError("wdpa", "x"), SourceError, "source", "SOURCE_TIMEOUT"),
        (SourceUnavailableError("wdpa", "x"), SourceError, "source", "SOURCE_UNAVAILABLE"),
        (SourceResponseError("wdpa", "x"), SourceError, "source", "SOURCE_RESPONSE_INVALID"),
    ]

    @pytest.mark.parametrize(("err", "base", "stage", "code"), CASES)
    def test_taxonomy(self, err: ComplianceError, base: type[ComplianceError], stage: str, code: str) -> None:
        assert isinstance(err, base)
        assert err.stage == stage
        assert err.code == code

    def test_validation_errors_never_retryable(self) -> None:
        for err in (CoordinateValidationError("x"), IncompleteInputError("x"), ContractError("x")):
            assert err.retryable is False

    def test_source_timeout_is_retryable(self) -> None:
        err = SourceTimeoutError("osm_overpass", "slow")
        assert err.retryable is True
        assert err.category == "transient"

    def test_source_error_str_names_source(self) -> None:
        assert str(SourceUnavailableError("inaturalist", "HTTP 503")) == "[inaturalist] HTTP 503"

    def test_boundary_state_error_details(self) -> None:
        err = BoundaryStateError("add a point", CaptureState.CLOSED, "boundary is frozen")
        assert err.state is CaptureState.CLOSED
        assert err.operation == "add a point"
        assert err.message == "Cannot add a point while boundary is closed: boundary is frozen"
