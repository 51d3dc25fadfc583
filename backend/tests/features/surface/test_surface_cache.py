"""
Tests for the surface classification cache and its backends.
"""

import pytest

from trailsurface.features.surface import (
    SurfaceClassificationCache,
    MemorySurfaceCacheBackend,
    RedisSurfaceCacheBackend,
    SurfaceLookupError,
    SurfaceType,
)
from trailsurface.features.surface.cache import SURFACE_CACHE_PREFIX


A = (147.32, -42.88)
B = (147.33, -42.89)
C = (147.34, -42.90)


# =============================================================================
# Test Cache Semantics
# =============================================================================

class TestSurfaceClassificationCache:
    """Tests for SurfaceClassificationCache."""

    @pytest.mark.asyncio
    async def test_repeat_classify_looks_up_once(self, fake_lookup):
        fake_lookup.surfaces[A] = SurfaceType.GRAVEL
        cache = SurfaceClassificationCache(fake_lookup)

        first = await cache.classify(A)
        second = await cache.classify(A)

        assert first == second == SurfaceType.GRAVEL
        assert len(fake_lookup.calls) == 1
        assert cache.stats() == {"hits": 1, "misses": 1}

    @pytest.mark.asyncio
    async def test_batch_keeps_input_order(self, fake_lookup):
        fake_lookup.surfaces[B] = SurfaceType.DIRT
        cache = SurfaceClassificationCache(fake_lookup)

        result = await cache.classify_batch([A, B, C])

        assert result == [SurfaceType.PAVED, SurfaceType.DIRT, SurfaceType.PAVED]

    @pytest.mark.asyncio
    async def test_batch_single_lookup_for_misses_only(self, fake_lookup):
        cache = SurfaceClassificationCache(fake_lookup)
        await cache.classify(A)

        await cache.classify_batch([A, B, C, B])

        assert len(fake_lookup.calls) == 2
        # Hit skipped, duplicate miss sent once
        assert fake_lookup.calls[1] == [B, C]

    @pytest.mark.asyncio
    async def test_all_hits_no_lookup(self, fake_lookup):
        cache = SurfaceClassificationCache(fake_lookup)
        await cache.classify_batch([A, B])

        await cache.classify_batch([B, A])

        assert len(fake_lookup.calls) == 1

    @pytest.mark.asyncio
    async def test_empty_batch(self, fake_lookup):
        cache = SurfaceClassificationCache(fake_lookup)
        assert await cache.classify_batch([]) == []
        assert fake_lookup.calls == []

    @pytest.mark.asyncio
    async def test_lookup_error_propagates_and_caches_nothing(self, fake_lookup):
        backend = MemorySurfaceCacheBackend()
        cache = SurfaceClassificationCache(fake_lookup, backend)
        fake_lookup.error = SurfaceLookupError("provider down")

        with pytest.raises(SurfaceLookupError):
            await cache.classify(A)
        assert len(backend) == 0

    @pytest.mark.asyncio
    async def test_precision_buckets_nearby_points(self, fake_lookup):
        cache = SurfaceClassificationCache(fake_lookup, precision=3)

        await cache.classify((147.32001, -42.88001))
        await cache.classify((147.32002, -42.88002))

        assert len(fake_lookup.calls) == 1

    @pytest.mark.asyncio
    async def test_exact_keys_by_default(self, fake_lookup):
        cache = SurfaceClassificationCache(fake_lookup)

        await cache.classify((147.32001, -42.88001))
        await cache.classify((147.32002, -42.88002))

        assert len(fake_lookup.calls) == 2

    @pytest.mark.asyncio
    async def test_clear(self, fake_lookup):
        cache = SurfaceClassificationCache(fake_lookup)
        await cache.classify(A)

        await cache.clear()
        await cache.classify(A)

        assert len(fake_lookup.calls) == 2


# =============================================================================
# Test Backends
# =============================================================================

class TestMemoryBackend:
    """Tests for MemorySurfaceCacheBackend."""

    @pytest.mark.asyncio
    async def test_lru_eviction(self):
        backend = MemorySurfaceCacheBackend(max_entries=2)
        await backend.set_many({A: SurfaceType.PAVED, B: SurfaceType.DIRT})

        # Touch A so B is the least recently used
        await backend.get_many([A])
        await backend.set_many({C: SurfaceType.GRAVEL})

        assert await backend.get_many([A, B, C]) == [
            SurfaceType.PAVED, None, SurfaceType.GRAVEL
        ]
        assert len(backend) == 2


class TestRedisBackend:
    """Tests for RedisSurfaceCacheBackend."""

    @pytest.mark.asyncio
    async def test_keys_and_ttl(self, fake_redis):
        backend = RedisSurfaceCacheBackend(fake_redis, ttl_seconds=60)

        await backend.set_many({A: SurfaceType.GRAVEL})

        key = f"{SURFACE_CACHE_PREFIX}147.32,-42.88"
        assert fake_redis.data[key] == "gravel"
        assert fake_redis.ttls[key] == 60

    @pytest.mark.asyncio
    async def test_get_many(self, fake_redis):
        backend = RedisSurfaceCacheBackend(fake_redis)
        await backend.set_many({A: SurfaceType.DIRT})

        assert await backend.get_many([A, B]) == [SurfaceType.DIRT, None]

    @pytest.mark.asyncio
    async def test_clear_only_touches_surface_keys(self, fake_redis):
        fake_redis.data["job:abc"] = "{}"
        backend = RedisSurfaceCacheBackend(fake_redis)
        await backend.set_many({A: SurfaceType.DIRT, B: SurfaceType.PAVED})

        await backend.clear()

        assert list(fake_redis.data) == ["job:abc"]

    @pytest.mark.asyncio
    async def test_shared_between_caches(self, fake_redis, fake_lookup):
        """Second worker reuses the first worker's lookups."""
        first = SurfaceClassificationCache(fake_lookup, RedisSurfaceCacheBackend(fake_redis))
        second = SurfaceClassificationCache(fake_lookup, RedisSurfaceCacheBackend(fake_redis))

        await first.classify_batch([A, B])
        await second.classify_batch([A, B])

        assert len(fake_lookup.calls) == 1
