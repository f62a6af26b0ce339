"""Source factory: builds verification source adapters by name.

The factory maintains a registry of known adapters. New adapters are
registered by adding an entry to ``_SOURCE_REGISTRY`` or by calling
``register_source`` (tests use this to plug in deterministic fakes).

Usage::

    from parcel_compliance.sources.factory import build_sources

    sources = build_sources(ComplianceConfig.from_env())

The active source list is read from the ``VERIFICATION_SOURCES``
environment variable via ``ComplianceConfig.verification_sources``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from parcel_compliance.core.constants import GLOBAL_FOREST_WATCH, INATURALIST, OSM_OVERPASS, WDPA
from parcel_compliance.models.verification import SourceConfig
from parcel_compliance.sources.base import ProtectedAreaSource, SourceError

if TYPE_CHECKING:
    from collections.abc import Callable

    from parcel_compliance.core.config import ComplianceConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Lazy-import adapter registry
# ---------------------------------------------------------------------------

# Each entry maps a source name to a callable that returns the adapter
# *class*, so httpx/yaml-backed modules load only when selected.

_SOURCE_REGISTRY: dict[str, Callable[[], type[ProtectedAreaSource]]] = {}


def _register_builtin_sources() -> None:
    """Register the built-in source adapters.

    Called once on first use. Each registration is a lazy import thunk.
    """

    def _wdpa() -> type[ProtectedAreaSource]:
        from parcel_compliance.sources.catalogue import WdpaSource

        return WdpaSource

    def _overpass() -> type[ProtectedAreaSource]:
        from parcel_compliance.sources.overpass import OverpassSource

        return OverpassSource

    def _gfw() -> type[ProtectedAreaSource]:
        from parcel_compliance.sources.catalogue import GlobalForestWatchSource

        return GlobalForestWatchSource

    def _inaturalist() -> type[ProtectedAreaSource]:
        from parcel_compliance.sources.inaturalist import INaturalistSource

        return INaturalistSource

    _SOURCE_REGISTRY[WDPA] = _wdpa
    _SOURCE_REGISTRY[OSM_OVERPASS] = _overpass
    _SOURCE_REGISTRY[GLOBAL_FOREST_WATCH] = _gfw
    _SOURCE_REGISTRY[INATURALIST] = _inaturalist


def _ensure_registry() -> None:
    """Initialise the adapter registry once (idempotent)."""
    if not _SOURCE_REGISTRY:
        _register_builtin_sources()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def register_source(
    name: str,
    loader: Callable[[], type[ProtectedAreaSource]],
) -> None:
    """Register a custom source adapter.

    Args:
        name: Source name (e.g. ``"national_registry"``).
        loader: A zero-argument callable that returns the adapter class.

    Raises:
        ValueError: If the name is empty.
    """
    if not name:
        msg = "Source name must be non-empty"
        raise ValueError(msg)
    _ensure_registry()
    _SOURCE_REGISTRY[name] = loader
    logger.debug("Registered verification source: %s", name)


def unregister_source(name: str) -> None:
    """Remove a registered source (no-op if absent)."""
    _SOURCE_REGISTRY.pop(name, None)


def get_source(
    name: str,
    config: SourceConfig | None = None,
) -> ProtectedAreaSource:
    """Create and return a verification source instance.

    Args:
        name: Source identifier (e.g. ``"wdpa"``, ``"osm_overpass"``).
        config: Optional ``SourceConfig``. If ``None``, a default config
                with just the source name is used.

    Raises:
        SourceError: If the named source is not registered, or the
            config names a different source.
    """
    _ensure_registry()

    loader = _SOURCE_REGISTRY.get(name)
    if loader is None:
        available = ", ".join(sorted(_SOURCE_REGISTRY))
        msg = f"Unknown verification source: {name!r}. Available: {available}"
        raise SourceError(source=name, message=msg)

    adapter_cls = loader()

    if config is None:
        config = SourceConfig(name=name)
    elif config.name != name:
        msg = f"SourceConfig.name {config.name!r} does not match requested source {name!r}"
        raise SourceError(source=name, message=msg)

    logger.info("Creating verification source: %s", name)
    return adapter_cls(config)


def build_sources(config: ComplianceConfig) -> list[ProtectedAreaSource]:
    """Instantiate every source named in ``config.verification_sources``.

    Raises:
        SourceError: If any configured source is unknown.
    """
    from parcel_compliance.utils.helpers import build_source_config

    return [
        get_source(name, build_source_config(name, config))
        for name in config.verification_sources
    ]


def list_sources() -> list[str]:
    """Return the names of all registered source adapters."""
    _ensure_registry()
    return sorted(_SOURCE_REGISTRY)
