"""
Tests for building the ingestion pipeline from Settings.
"""

import pytest

from trailsurface.config import Settings
from trailsurface.features.artifacts import LocalArtifactStore
from trailsurface.features.ingestion import IngestionService, build_ingestion_service
from trailsurface.features.ingestion.factory import (
    build_artifact_store,
    build_cache_backend,
    build_job_store,
)
from trailsurface.features.jobs import InMemoryJobStore, RedisJobStore
from trailsurface.features.surface import MemorySurfaceCacheBackend, RedisSurfaceCacheBackend


class TestBuildIngestionService:

    @pytest.mark.asyncio
    async def test_memory_defaults(self, fake_lookup, tmp_path):
        settings = Settings(artifact_dir=str(tmp_path))

        runtime = build_ingestion_service(settings, lookup=fake_lookup)

        assert isinstance(runtime.service, IngestionService)
        assert runtime.redis is None
        await runtime.aclose()
        assert fake_lookup.closed

    def test_memory_job_store_ttl(self):
        store = build_job_store(Settings(job_ttl_seconds=120))
        assert isinstance(store, InMemoryJobStore)
        assert store.ttl_seconds == 120

    def test_redis_backends(self, fake_redis):
        settings = Settings(job_store_backend="redis", surface_cache_backend="redis")

        assert isinstance(build_job_store(settings, fake_redis), RedisJobStore)
        assert isinstance(build_cache_backend(settings, fake_redis), RedisSurfaceCacheBackend)

    def test_memory_cache_size(self):
        backend = build_cache_backend(Settings(surface_cache_max_entries=10))
        assert isinstance(backend, MemorySurfaceCacheBackend)
        assert backend.max_entries == 10

    def test_local_artifacts(self, tmp_path):
        store = build_artifact_store(Settings(artifact_dir=str(tmp_path)))
        assert isinstance(store, LocalArtifactStore)

    def test_s3_needs_bucket(self):
        with pytest.raises(ValueError):
            build_artifact_store(Settings(artifact_backend="s3", s3_bucket=None))
