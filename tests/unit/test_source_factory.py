"""Tests for the verification source factory.

Covers: get_source, list_sources, register_source, build_sources, error
handling and config-driven source selection.
"""

from __future__ import annotations

import unittest

from parcel_compliance.core.config import ComplianceConfig
from parcel_compliance.core.constants import (
    DEFAULT_SOURCES,
    GLOBAL_FOREST_WATCH,
    INATURALIST,
    OSM_OVERPASS,
    WDPA,
)
from parcel_compliance.models.verification import ProtectedAreaSourceResult, SourceConfig
from parcel_compliance.sources.base import ProtectedAreaSource, SourceError
from parcel_compliance.sources.catalogue import GlobalForestWatchSource, WdpaSource
from parcel_compliance.sources.factory import (
    build_sources,
    get_source,
    list_sources,
    register_source,
    unregister_source,
)
from parcel_compliance.sources.inaturalist import INaturalistSource
from parcel_compliance.sources.overpass import OverpassSource


class _NullSource(ProtectedAreaSource):
    async def query(self, lat: float, lng: float) -> ProtectedAreaSourceResult:
        return ProtectedAreaSourceResult(source_name=self.name)


class TestListSources(unittest.TestCase):
    """list_sources returns known adapters."""

    def test_includes_builtin_sources(self) -> None:
        sources = list_sources()
        for name in DEFAULT_SOURCES:
            assert name in sources

    def test_returns_sorted(self) -> None:
        sources = list_sources()
        assert sources == sorted(sources)


class TestGetSource(unittest.TestCase):
    """get_source creates the correct adapter instance."""

    def test_builtin_classes(self) -> None:
        assert isinstance(get_source(WDPA), WdpaSource)
        assert isinstance(get_source(OSM_OVERPASS), OverpassSource)
        assert isinstance(get_source(GLOBAL_FOREST_WATCH), GlobalForestWatchSource)
        assert isinstance(get_source(INATURALIST), INaturalistSource)

    def test_unknown_source_raises(self) -> None:
        with self.assertRaises(SourceError) as ctx:
            get_source("nonexistent_registry")
        assert "nonexistent_registry" in str(ctx.exception)
        assert "Available:" in str(ctx.exception)

    def test_custom_config_passed(self) -> None:
        cfg = SourceConfig(name=OSM_OVERPASS, api_base_url="https://overpass.example/api/interpreter")
        source = get_source(OSM_OVERPASS, config=cfg)
        assert isinstance(source, OverpassSource)
        assert source.url == "https://overpass.example/api/interpreter"

    def test_live_source_falls_back_to_default_url(self) -> None:
        source = get_source(INATURALIST)
        assert isinstance(source, INaturalistSource)
        assert source.url.startswith("https://api.inaturalist.org")

    def test_mismatched_config_name_raises(self) -> None:
        with self.assertRaises(SourceError):
            get_source(WDPA, config=SourceConfig(name=INATURALIST))


class TestRegisterSource(unittest.TestCase):
    def tearDown(self) -> None:
        unregister_source("null_registry")

    def test_register_and_get(self) -> None:
        register_source("null_registry", lambda: _NullSource)
        assert "null_registry" in list_sources()
        source = get_source("null_registry")
        assert isinstance(source, _NullSource)
        assert source.name == "null_registry"

    def test_empty_name_rejected(self) -> None:
        with self.assertRaises(ValueError):
            register_source("", lambda: _NullSource)

    def test_unregister_is_idempotent(self) -> None:
        unregister_source("never_registered")


class TestBuildSources(unittest.TestCase):
    def test_default_config_builds_all_four(self) -> None:
        sources = build_sources(ComplianceConfig())
        assert [s.name for s in sources] == list(DEFAULT_SOURCES)

    def test_subset_and_order_follow_config(self) -> None:
        cfg = ComplianceConfig(verification_sources=(INATURALIST, WDPA))
        assert [s.name for s in build_sources(cfg)] == [INATURALIST, WDPA]

    def test_timeout_propagates(self) -> None:
        cfg = ComplianceConfig(verification_sources=(OSM_OVERPASS,), source_timeout_s=3.0)
        (source,) = build_sources(cfg)
        assert source.config.timeout_s == 3.0

    def test_unknown_configured_source_raises(self) -> None:
        cfg = ComplianceConfig(verification_sources=(WDPA, "bogus"))
        with self.assertRaises(SourceError):
            build_sources(cfg)
