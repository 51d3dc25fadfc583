"""
Wiring of the ingestion pipeline from Settings.

Picks the job store, surface cache backend and artifact store configured
for this deployment and returns a ready IngestionService plus the
resources that must be closed on shutdown.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import redis.asyncio as aioredis

from trailsurface.config import Settings
from trailsurface.features.artifacts import (
    ArtifactStore,
    LocalArtifactStore,
    S3ArtifactStore,
)
from trailsurface.features.jobs import InMemoryJobStore, JobStore, RedisJobStore
from trailsurface.features.surface import (
    MemorySurfaceCacheBackend,
    OverpassSurfaceLookup,
    RedisSurfaceCacheBackend,
    SurfaceCacheBackend,
    SurfaceClassificationCache,
    SurfaceLookupService,
)
from .service import IngestionService, RouteSink

logger = logging.getLogger(__name__)


@dataclass
class IngestionRuntime:
    """Service plus the connections it was built with."""

    service: IngestionService
    lookup: SurfaceLookupService
    redis: Optional[aioredis.Redis] = None

    async def aclose(self) -> None:
        await self.service.stop()
        await self.lookup.aclose()
        if self.redis is not None:
            await self.redis.aclose()


def _redis_client(settings: Settings) -> aioredis.Redis:
    return aioredis.from_url(settings.redis_url, decode_responses=True)


def build_job_store(settings: Settings, redis: Optional[aioredis.Redis] = None) -> JobStore:
    if settings.job_store_backend == "redis":
        return RedisJobStore(redis or _redis_client(settings), ttl_seconds=settings.job_ttl_seconds)
    return InMemoryJobStore(ttl_seconds=settings.job_ttl_seconds)


def build_cache_backend(
    settings: Settings,
    redis: Optional[aioredis.Redis] = None
) -> SurfaceCacheBackend:
    if settings.surface_cache_backend == "redis":
        return RedisSurfaceCacheBackend(
            redis or _redis_client(settings),
            ttl_seconds=settings.surface_cache_ttl_seconds,
        )
    return MemorySurfaceCacheBackend(max_entries=settings.surface_cache_max_entries)


def build_artifact_store(settings: Settings) -> ArtifactStore:
    if settings.artifact_backend == "s3":
        if not settings.s3_bucket:
            raise ValueError("S3_BUCKET must be set when ARTIFACT_BACKEND=s3")
        return S3ArtifactStore(settings.s3_bucket, region=settings.aws_region)
    return LocalArtifactStore(settings.artifact_dir)


def build_ingestion_service(
    settings: Settings,
    lookup: Optional[SurfaceLookupService] = None,
    route_sink: Optional[RouteSink] = None,
) -> IngestionRuntime:
    """
    Build the ingestion service for the configured backends.

    Args:
        settings: Application settings
        lookup: Surface provider override (defaults to Overpass)
        route_sink: Optional consumer of completed payloads
    """
    uses_redis = "redis" in (settings.job_store_backend, settings.surface_cache_backend)
    redis = _redis_client(settings) if uses_redis else None

    if lookup is None:
        lookup = OverpassSurfaceLookup(
            settings.overpass_api_url,
            search_radius_m=settings.overpass_search_radius_m,
            timeout=settings.overpass_timeout_seconds,
        )

    cache = SurfaceClassificationCache(
        lookup,
        backend=build_cache_backend(settings, redis),
        precision=settings.surface_cache_precision,
    )

    service = IngestionService(
        job_store=build_job_store(settings, redis),
        cache=cache,
        artifact_store=build_artifact_store(settings),
        route_sink=route_sink,
        max_concurrent_jobs=settings.max_concurrent_jobs,
        classify_batch_size=settings.classify_batch_size,
        progress_interval=settings.progress_interval_seconds,
        cleanup_interval=settings.cleanup_interval_seconds,
        artifact_max_age_seconds=settings.job_ttl_seconds,
    )

    logger.info(
        f"Ingestion service: jobs={settings.job_store_backend}, "
        f"cache={settings.surface_cache_backend}, artifacts={settings.artifact_backend}"
    )
    return IngestionRuntime(service=service, lookup=lookup, redis=redis)
