"""
Track Ingestion Service

Main orchestrator of the upload pipeline:
1. create_job() stores the upload, creates a pending Job, returns its id
2. A background task parses the GPX, classifies every point through the
   surface cache (chunk by chunk), segments unpaved sections and writes
   the terminal state
3. Callers follow the job via get_job_snapshot() or subscribe_progress()

Failures inside the background task never reach the caller; they are
recorded on the Job. Cancelling a job deletes it (and its upload); a task
that is still running notices on its next write and stops.
"""

import asyncio
import logging
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Set,
)

from trailsurface.shared.geo import Coordinate
from trailsurface.features.artifacts import ArtifactStore, make_artifact_name
from trailsurface.features.gpx import GPXParserService, ParseError, ParsedTrack
from trailsurface.features.jobs import (
    Job,
    JobSnapshot,
    JobStore,
    ProgressChannel,
    ProgressEvent,
    fraction_to_percent,
)
from trailsurface.features.surface import (
    SurfaceClassificationCache,
    SurfaceLookupError,
    SurfaceSegmenter,
    SurfaceType,
    UnpavedSection,
)
from .config import IngestionConfig

logger = logging.getLogger(__name__)

# Downstream consumer of finished payloads (route persistence)
RouteSink = Callable[[str, Dict[str, Any]], Awaitable[None]]


class JobCancelled(Exception):
    """The job was deleted or expired while its task was running."""
    pass


class IngestionService:
    """
    Orchestrates track ingestion jobs.

    Usage:
        service = IngestionService(job_store, cache, artifact_store)
        await service.start()
        job_id = await service.create_job(content, "ride.gpx")
        async for event in service.subscribe_progress(job_id):
            ...
        await service.stop()
    """

    def __init__(
        self,
        job_store: JobStore,
        cache: SurfaceClassificationCache,
        artifact_store: Optional[ArtifactStore] = None,
        parser: Callable[[bytes], ParsedTrack] = GPXParserService.parse,
        route_sink: Optional[RouteSink] = None,
        max_concurrent_jobs: int = IngestionConfig.MAX_CONCURRENT_JOBS,
        classify_batch_size: int = IngestionConfig.CLASSIFY_BATCH_SIZE,
        progress_interval: float = 1.0,
        cleanup_interval: float = 300.0,
        artifact_max_age_seconds: Optional[int] = None,
    ):
        self._store = job_store
        self._cache = cache
        self._artifacts = artifact_store
        self._parse = parser
        self._route_sink = route_sink
        self.classify_batch_size = classify_batch_size
        self.cleanup_interval = cleanup_interval
        self.artifact_max_age_seconds = artifact_max_age_seconds

        self.channel = ProgressChannel(job_store, interval=progress_interval)
        self._semaphore = asyncio.Semaphore(max_concurrent_jobs)
        # Keep strong references to running tasks to prevent GC
        self._tasks: Set[asyncio.Task] = set()
        self._cleanup_task: Optional[asyncio.Task] = None

    # =========================================================================
    # Public API
    # =========================================================================

    async def create_job(self, content: bytes, filename: Optional[str] = None) -> str:
        """
        Register an upload and start processing it in the background.

        Returns immediately with the job id; parsing and classification
        happen in the background task.
        """
        artifact_ref = None
        if self._artifacts is not None:
            artifact_ref = await self._artifacts.save(make_artifact_name(filename), content)

        try:
            job = await self._store.create(Job(filename=filename, artifact_ref=artifact_ref))
        except Exception:
            if artifact_ref is not None:
                await self._discard_artifact(artifact_ref)
            raise

        task = asyncio.create_task(
            self._run(job.id, content, filename, artifact_ref),
            name=f"ingest-{job.id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.info(f"Created ingestion job {job.id} for {filename or 'upload'} ({len(content)} bytes)")
        return job.id

    async def get_job_snapshot(self, job_id: str) -> Optional[JobSnapshot]:
        """Current job state for pollers, None if the job is unknown."""
        return await self.channel.snapshot(job_id)

    def subscribe_progress(self, job_id: str) -> AsyncIterator[ProgressEvent]:
        """Progress stream for a job, ends after the terminal or invalid_job event."""
        return self.channel.subscribe(job_id)

    async def cancel_job(self, job_id: str) -> bool:
        """
        Delete a job and its uploaded file. Idempotent.

        Returns:
            True if a job was removed, False if it was already gone
        """
        job = await self._store.delete(job_id)
        if job is None:
            return False

        if job.artifact_ref:
            await self._discard_artifact(job.artifact_ref)

        logger.info(f"Cancelled job {job_id} (was {job.status.value})")
        return True

    async def list_jobs(self) -> List[JobSnapshot]:
        jobs = await self._store.list_jobs()
        return [job.snapshot() for job in sorted(jobs, key=lambda j: j.created_at)]

    async def classify_batch(self, coordinates: Sequence[Coordinate]) -> List[SurfaceType]:
        """Ad-hoc classification outside the job pipeline (same cache)."""
        return await self._cache.classify_batch(coordinates)

    async def segment_coordinates(self, coordinates: Sequence[Coordinate]) -> List[UnpavedSection]:
        """Classify coordinates chunk by chunk and return their unpaved sections."""
        surfaces = await self._classify_in_chunks(coordinates)
        return SurfaceSegmenter.segment(coordinates, surfaces)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Start the housekeeping loop (expired jobs and uploads)."""
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info("Ingestion service started")

    async def stop(self) -> None:
        """Stop housekeeping and cancel in-flight ingestion tasks."""
        tasks = list(self._tasks)
        if self._cleanup_task is not None:
            tasks.append(self._cleanup_task)
            self._cleanup_task = None

        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Ingestion service stopped")

    async def wait_idle(self) -> None:
        """Wait until every running ingestion task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def running_jobs(self) -> int:
        return len(self._tasks)

    # =========================================================================
    # Background processing
    # =========================================================================

    async def _run(
        self,
        job_id: str,
        content: bytes,
        filename: Optional[str],
        artifact_ref: Optional[str],
    ) -> None:
        try:
            async with self._semaphore:
                payload = await self._execute(job_id, content, filename, artifact_ref)
        except asyncio.CancelledError:
            # Covers jobs still queued on the semaphore as well as running ones
            await self._record_failure(job_id, IngestionConfig.MESSAGE_SHUTDOWN)
            raise

        if payload is not None and self._route_sink is not None:
            try:
                await self._route_sink(job_id, payload)
            except Exception:
                logger.exception(f"Route sink failed for job {job_id}")

    async def _execute(
        self,
        job_id: str,
        content: bytes,
        filename: Optional[str],
        artifact_ref: Optional[str],
    ) -> Optional[Dict[str, Any]]:
        """
        Run one job to a terminal state.

        Returns:
            The completed payload, or None if the job failed or vanished
        """
        try:
            if await self._store.mark_processing(job_id, IngestionConfig.MESSAGE_STARTING) is None:
                logger.info(f"Job {job_id} was cancelled before processing started")
                return None

            payload = await self._process(job_id, content)
            payload["filename"] = filename
            payload["artifact_ref"] = artifact_ref

            if await self._store.complete(job_id, payload) is None:
                logger.info(f"Job {job_id} vanished before completion; result discarded")
                return None
        except JobCancelled:
            logger.info(f"Job {job_id} was cancelled or expired; stopping")
            return None
        except (ParseError, SurfaceLookupError) as e:
            logger.warning(f"Job {job_id} failed: {e}")
            await self._record_failure(job_id, str(e))
            return None
        except Exception as e:
            logger.exception(f"Unexpected error processing job {job_id}")
            await self._record_failure(job_id, f"{type(e).__name__}: {e}")
            return None

        logger.info(
            f"Job {job_id} completed: {payload['point_count']} points, "
            f"{len(payload['unpaved_sections'])} unpaved sections"
        )
        return payload

    async def _process(self, job_id: str, content: bytes) -> Dict[str, Any]:
        """Parse -> classify -> segment -> payload."""
        await self._report(job_id, IngestionConfig.PROGRESS_PARSING, IngestionConfig.MESSAGE_PARSING)
        track = await asyncio.to_thread(self._parse, content)
        coordinates = track.coordinates

        await self._report(
            job_id, IngestionConfig.PROGRESS_CLASSIFY_START, IngestionConfig.MESSAGE_CLASSIFYING
        )
        surfaces = await self._classify_in_chunks(
            coordinates,
            on_progress=lambda fraction: self._report(job_id, self._classify_percent(fraction)),
        )

        await self._report(
            job_id, IngestionConfig.PROGRESS_SEGMENTING, IngestionConfig.MESSAGE_SEGMENTING
        )
        sections = SurfaceSegmenter.segment(coordinates, surfaces)

        await self._report(
            job_id, IngestionConfig.PROGRESS_FINALIZING, IngestionConfig.MESSAGE_FINALIZING
        )
        return self._build_payload(track, surfaces, sections)

    async def _classify_in_chunks(
        self,
        coordinates: Sequence[Coordinate],
        on_progress: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> List[SurfaceType]:
        """One cache call (at most one external lookup) per chunk of points."""
        surfaces: List[SurfaceType] = []
        total = len(coordinates)
        size = self.classify_batch_size

        for start in range(0, total, size):
            chunk = coordinates[start:start + size]
            surfaces.extend(await self._cache.classify_batch(chunk))
            if on_progress is not None:
                await on_progress(len(surfaces) / total)

        return surfaces

    @staticmethod
    def _classify_percent(fraction: float) -> int:
        """Map classification progress (0-1 fraction) into its 0-100 window."""
        span = IngestionConfig.PROGRESS_CLASSIFY_END - IngestionConfig.PROGRESS_CLASSIFY_START
        return IngestionConfig.PROGRESS_CLASSIFY_START + fraction_to_percent(fraction) * span // 100

    async def _report(self, job_id: str, progress: int, message: Optional[str] = None) -> None:
        job = await self._store.update_progress(job_id, progress, message)
        if job is None:
            raise JobCancelled(job_id)
        logger.debug(f"Job {job_id} progress {job.progress}%")

    async def _record_failure(self, job_id: str, error: str) -> None:
        try:
            job = await self._store.fail(job_id, error)
        except Exception:
            logger.exception(f"Could not record failure of job {job_id}")
            return
        if job is None:
            logger.debug(f"Job {job_id} vanished before failure could be recorded")

    async def _discard_artifact(self, artifact_ref: str) -> None:
        if self._artifacts is None:
            return
        try:
            await self._artifacts.delete(artifact_ref)
        except Exception as e:
            logger.error(f"Error deleting artifact {artifact_ref}: {e}")

    @staticmethod
    def _build_payload(
        track: ParsedTrack,
        surfaces: List[SurfaceType],
        sections: List[UnpavedSection],
    ) -> Dict[str, Any]:
        return {
            "name": track.name or "Unnamed Route",
            "description": track.description or "",
            "point_count": len(track.points),
            "geojson": track.to_geojson(),
            "surfaces": [getattr(s, "value", s) for s in surfaces],
            "surface_breakdown": SurfaceSegmenter.surface_breakdown(surfaces),
            "unpaved_sections": [section.to_dict() for section in sections],
        }

    # =========================================================================
    # Housekeeping
    # =========================================================================

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            try:
                await self._store.purge_expired()
                if self._artifacts is not None and self.artifact_max_age_seconds:
                    await self._artifacts.cleanup_expired(self.artifact_max_age_seconds)
            except Exception as e:
                logger.error(f"Cleanup error: {e}")
