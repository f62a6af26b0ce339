"""Protected-area verification source adapters.

Implements the source-agnostic adapter pattern (Strategy pattern):
- ProtectedAreaSource: Abstract base class defining ``query(lat, lng)``
- WdpaSource: World Database on Protected Areas (reference catalogue)
- OverpassSource: OpenStreetMap Overpass API (live)
- GlobalForestWatchSource: Global Forest Watch layer (reference catalogue)
- INaturalistSource: iNaturalist places API (live)

The active sources are selected via configuration, so adapters can be
swapped (including for deterministic fakes in tests) without code changes.
"""

from parcel_compliance.sources.base import (
    CandidateArea,
    ProtectedAreaSource,
    SourceError,
    SourceResponseError,
    SourceTimeoutError,
    SourceUnavailableError,
)
from parcel_compliance.sources.factory import (
    build_sources,
    get_source,
    list_sources,
    register_source,
    unregister_source,
)

__all__ = [
    "CandidateArea",
    "ProtectedAreaSource",
    "SourceError",
    "SourceResponseError",
    "SourceTimeoutError",
    "SourceUnavailableError",
    "build_sources",
    "get_source",
    "list_sources",
    "register_source",
    "unregister_source",
]
