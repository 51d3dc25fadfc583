"""
Surface classification module.

Usage:
    from trailsurface.features.surface import SurfaceClassificationCache
    from trailsurface.features.surface import SurfaceSegmenter, SurfaceType

Components:
- SurfaceType: Surface label vocabulary
- SurfaceLookupService / OverpassSurfaceLookup: External surface provider
- SurfaceClassificationCache: Memoizing front for the provider
- SurfaceSegmenter: Per-point labels -> unpaved sections
"""

from .types import SurfaceType, NON_PAVED_TYPES, is_non_paved, surface_from_osm_tags
from .lookup import SurfaceLookupService, OverpassSurfaceLookup, SurfaceLookupError
from .cache import (
    SurfaceClassificationCache,
    SurfaceCacheBackend,
    MemorySurfaceCacheBackend,
    RedisSurfaceCacheBackend,
)
from .segmenter import SurfaceSegmenter, UnpavedSection, InvariantError, segment
from .schemas import (
    CoordinateBatchRequest,
    SurfaceResponse,
    SurfaceBatchResponse,
    UnpavedSectionSchema,
)

__all__ = [
    # Types
    "SurfaceType",
    "NON_PAVED_TYPES",
    "is_non_paved",
    "surface_from_osm_tags",
    # Lookup
    "SurfaceLookupService",
    "OverpassSurfaceLookup",
    "SurfaceLookupError",
    # Cache
    "SurfaceClassificationCache",
    "SurfaceCacheBackend",
    "MemorySurfaceCacheBackend",
    "RedisSurfaceCacheBackend",
    # Segmenter
    "SurfaceSegmenter",
    "UnpavedSection",
    "InvariantError",
    "segment",
    # Schemas
    "CoordinateBatchRequest",
    "SurfaceResponse",
    "SurfaceBatchResponse",
    "UnpavedSectionSchema",
]
