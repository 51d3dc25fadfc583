"""
Surface classification cache.

Memoizes surface lookups keyed by coordinate so repeated points never hit
the external provider twice. Storage is pluggable:

- MemorySurfaceCacheBackend: per-process LRU with a size cap
- RedisSurfaceCacheBackend: shared between workers, entries expire (7 days)

Keys use the exact float values by default. Set `precision` to bucket
nearby points together (trades accuracy for hit rate).
"""

import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Sequence

import redis.asyncio as aioredis

from trailsurface.shared.geo import Coordinate, round_coordinate
from .lookup import SurfaceLookupService
from .types import SurfaceType

logger = logging.getLogger(__name__)

# Surface cache prefix for Redis keys
SURFACE_CACHE_PREFIX = "surface:"

# Default Redis entry lifetime (7 days)
DEFAULT_CACHE_TTL_SECONDS = 60 * 60 * 24 * 7


def _to_surface_type(value: str) -> SurfaceType:
    try:
        return SurfaceType(value)
    except ValueError:
        return SurfaceType.UNKNOWN


# =============================================================================
# Backends
# =============================================================================

class SurfaceCacheBackend(ABC):
    """Key/value storage for cached classifications."""

    @abstractmethod
    async def get_many(self, keys: Sequence[Coordinate]) -> List[Optional[SurfaceType]]:
        """Cached value per key (None on miss), in key order."""
        ...

    @abstractmethod
    async def set_many(self, entries: Dict[Coordinate, SurfaceType]) -> None:
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...


class MemorySurfaceCacheBackend(SurfaceCacheBackend):
    """
    In-process LRU cache.

    Lives as long as the owning pipeline. Evicts least recently used
    entries once `max_entries` is exceeded.
    """

    def __init__(self, max_entries: int = 100_000):
        self.max_entries = max_entries
        self._entries: "OrderedDict[Coordinate, SurfaceType]" = OrderedDict()

    async def get_many(self, keys: Sequence[Coordinate]) -> List[Optional[SurfaceType]]:
        result = []
        for key in keys:
            value = self._entries.get(key)
            if value is not None:
                self._entries.move_to_end(key)
            result.append(value)
        return result

    async def set_many(self, entries: Dict[Coordinate, SurfaceType]) -> None:
        for key, value in entries.items():
            self._entries[key] = value
            self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    async def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisSurfaceCacheBackend(SurfaceCacheBackend):
    """Redis-backed cache shared by all workers. Keys: surface:{lon},{lat}."""

    def __init__(
        self,
        client: aioredis.Redis,
        ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    ):
        self._client = client
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(coordinate: Coordinate) -> str:
        lon, lat = coordinate
        return f"{SURFACE_CACHE_PREFIX}{lon},{lat}"

    async def get_many(self, keys: Sequence[Coordinate]) -> List[Optional[SurfaceType]]:
        if not keys:
            return []
        raw = await self._client.mget([self._key(k) for k in keys])
        return [_to_surface_type(v) if v else None for v in raw]

    async def set_many(self, entries: Dict[Coordinate, SurfaceType]) -> None:
        if not entries:
            return
        pipe = self._client.pipeline()
        for key, value in entries.items():
            pipe.set(self._key(key), SurfaceType(value).value, ex=self.ttl_seconds)
        await pipe.execute()

    async def clear(self) -> None:
        keys = [key async for key in self._client.scan_iter(match=f"{SURFACE_CACHE_PREFIX}*")]
        if keys:
            await self._client.delete(*keys)


# =============================================================================
# Cache
# =============================================================================

class SurfaceClassificationCache:
    """
    Cache in front of a SurfaceLookupService.

    Usage:
        cache = SurfaceClassificationCache(lookup, MemorySurfaceCacheBackend())
        surface = await cache.classify((147.32, -42.88))
        surfaces = await cache.classify_batch(track_coordinates)
    """

    def __init__(
        self,
        lookup: SurfaceLookupService,
        backend: Optional[SurfaceCacheBackend] = None,
        precision: Optional[int] = None,
    ):
        self._lookup = lookup
        self._backend = backend or MemorySurfaceCacheBackend()
        self.precision = precision
        self.hits = 0
        self.misses = 0

    def _key(self, coordinate: Iterable[float]) -> Coordinate:
        lon, lat = coordinate
        return round_coordinate((float(lon), float(lat)), self.precision)

    async def classify(self, coordinate: Coordinate) -> SurfaceType:
        """Surface type of a single coordinate."""
        result = await self.classify_batch([coordinate])
        return result[0]

    async def classify_batch(self, coordinates: Sequence[Coordinate]) -> List[SurfaceType]:
        """
        Surface types for many coordinates, in input order.

        Cache hits are answered locally; the remaining distinct misses go to
        the lookup service in one call and are stored before returning.

        Raises:
            SurfaceLookupError: If the external lookup fails
        """
        if not coordinates:
            return []

        keys = [self._key(c) for c in coordinates]
        cached = await self._backend.get_many(keys)

        # dict keeps first-seen order and drops duplicate misses
        missing = list(dict.fromkeys(k for k, v in zip(keys, cached) if v is None))
        self.hits += len(keys) - sum(1 for v in cached if v is None)

        fetched: Dict[Coordinate, SurfaceType] = {}
        if missing:
            self.misses += len(missing)
            surfaces = await self._lookup.lookup(missing)
            if len(surfaces) != len(missing):
                logger.warning(
                    f"Lookup returned {len(surfaces)} surfaces for {len(missing)} points"
                )
            fetched = {
                key: _to_surface_type(getattr(surface, "value", surface))
                for key, surface in zip(missing, surfaces)
            }
            await self._backend.set_many(fetched)

        return [
            value if value is not None else fetched.get(key, SurfaceType.UNKNOWN)
            for key, value in zip(keys, cached)
        ]

    async def clear(self) -> None:
        """Drop every cached classification."""
        await self._backend.clear()
        logger.info("Surface cache cleared")

    def stats(self) -> dict:
        return {"hits": self.hits, "misses": self.misses}
