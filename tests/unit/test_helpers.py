"""Tests for shared helper functions in utils/helpers.py."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from parcel_compliance.core.config import DEFAULT_INATURALIST_URL, DEFAULT_OVERPASS_URL, ComplianceConfig
from parcel_compliance.models.verification import SourceConfig
from parcel_compliance.utils.helpers import build_source_config, parse_timestamp


class TestBuildSourceConfig:
    """Tests for the shared build_source_config helper."""

    def test_returns_source_config(self) -> None:
        result = build_source_config("wdpa")
        assert isinstance(result, SourceConfig)
        assert result.name == "wdpa"
        assert result.api_base_url == ""

    def test_live_sources_get_their_endpoint(self) -> None:
        assert build_source_config("osm_overpass").api_base_url == DEFAULT_OVERPASS_URL
        assert build_source_config("inaturalist").api_base_url == DEFAULT_INATURALIST_URL

    def test_timeout_and_user_agent_from_config(self) -> None:
        cfg = ComplianceConfig(source_timeout_s=4.0, verification_timeout_s=8.0, http_user_agent="field-app/2")
        result = build_source_config("osm_overpass", cfg)
        assert result.timeout_s == 4.0
        assert result.user_agent == "field-app/2"

    def test_endpoint_from_config(self) -> None:
        cfg = ComplianceConfig(overpass_url="https://overpass.example/api/interpreter")
        assert build_source_config("osm_overpass", cfg).api_base_url == "https://overpass.example/api/interpreter"

    def test_overrides(self) -> None:
        result = build_source_config(
            "inaturalist",
            overrides={
                "api_base_url": "http://localhost:9000/places",
                "timeout_s": 2,
                "extra_params": {"containment_radius_m": 250},
            },
        )
        assert result.api_base_url == "http://localhost:9000/places"
        assert result.timeout_s == 2.0
        assert result.extra_params == {"containment_radius_m": "250"}


class TestParseTimestamp:
    """Tests for the shared parse_timestamp helper."""

    def test_valid_iso(self) -> None:
        assert parse_timestamp("2026-03-01T09:30:00+00:00") == datetime(2026, 3, 1, 9, 30, tzinfo=UTC)

    def test_z_suffix(self) -> None:
        assert parse_timestamp("2026-03-01T09:30:00Z").tzinfo is not None

    def test_naive_is_utc(self) -> None:
        assert parse_timestamp("2026-03-01T09:30:00").tzinfo == UTC

    def test_empty_string_returns_now(self) -> None:
        before = datetime.now(UTC)
        result = parse_timestamp("")
        assert before - timedelta(seconds=1) <= result <= datetime.now(UTC) + timedelta(seconds=1)

    def test_invalid_string_returns_now(self) -> None:
        assert parse_timestamp("not-a-date").tzinfo is not None
