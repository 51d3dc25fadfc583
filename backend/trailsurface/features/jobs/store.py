"""
Job store interface and in-process implementation.

All write operations return the updated Job, or None when the job no
longer exists (cancelled or expired). A None return is the normal outcome
of a background task finishing after its job was deleted, not an error.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from .models import Job

logger = logging.getLogger(__name__)


class JobNotFoundError(KeyError):
    """Job id is unknown (never existed, cancelled or expired)."""
    pass


class JobStore(ABC):
    """Abstract interface for job state storage (local or shared)."""

    @abstractmethod
    async def create(self, job: Job) -> Job:
        """Store a new job. Returns the stored job."""
        ...

    @abstractmethod
    async def get(self, job_id: str) -> Optional[Job]:
        """Current state of a job, None if unknown or expired."""
        ...

    @abstractmethod
    async def list_jobs(self) -> List[Job]:
        """All live jobs."""
        ...

    @abstractmethod
    async def delete(self, job_id: str) -> Optional[Job]:
        """Remove a job. Returns the removed job, None if it was absent."""
        ...

    @abstractmethod
    async def _apply(self, job_id: str, change: Callable[[Job], Job]) -> Optional[Job]:
        """Atomically replace a job with change(job); no-op if absent."""
        ...

    async def purge_expired(self) -> int:
        """Drop expired jobs. Returns count removed."""
        return 0

    async def mark_processing(self, job_id: str, message: str = "") -> Optional[Job]:
        return await self._apply(job_id, lambda job: job.start(message))

    async def update_progress(
        self,
        job_id: str,
        progress: int,
        message: Optional[str] = None
    ) -> Optional[Job]:
        return await self._apply(job_id, lambda job: job.advance(progress, message))

    async def complete(self, job_id: str, result: Dict[str, Any]) -> Optional[Job]:
        return await self._apply(job_id, lambda job: job.complete(result))

    async def fail(self, job_id: str, error: str) -> Optional[Job]:
        return await self._apply(job_id, lambda job: job.fail(error))


class InMemoryJobStore(JobStore):
    """
    Process-local job store.

    Each job has its own lock so state transitions of one job are
    serialized without blocking readers or other jobs. Optional TTL:
    expired jobs read as absent and their writes are ignored.
    """

    def __init__(self, ttl_seconds: Optional[int] = None):
        self.ttl_seconds = ttl_seconds
        self._jobs: Dict[str, Job] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    async def create(self, job: Job) -> Job:
        if self.ttl_seconds and job.expires_at is None:
            job = job.model_copy(update={
                "expires_at": job.created_at + timedelta(seconds=self.ttl_seconds)
            })
        self._jobs[job.id] = job
        self._locks[job.id] = asyncio.Lock()
        logger.debug(f"Created job {job.id}")
        return job

    def _live(self, job_id: str) -> Optional[Job]:
        job = self._jobs.get(job_id)
        if job is None:
            return None
        if job.is_expired():
            self._evict(job_id)
            logger.debug(f"Job {job_id} expired")
            return None
        return job

    def _evict(self, job_id: str) -> Optional[Job]:
        self._locks.pop(job_id, None)
        return self._jobs.pop(job_id, None)

    async def get(self, job_id: str) -> Optional[Job]:
        return self._live(job_id)

    async def list_jobs(self) -> List[Job]:
        jobs = [self._live(job_id) for job_id in list(self._jobs)]
        return [job for job in jobs if job is not None]

    async def delete(self, job_id: str) -> Optional[Job]:
        return self._evict(job_id)

    async def _apply(self, job_id: str, change: Callable[[Job], Job]) -> Optional[Job]:
        lock = self._locks.get(job_id)
        if lock is None:
            return None

        async with lock:
            current = self._live(job_id)
            # Deleted (or replaced) while we waited for the lock
            if current is None or self._locks.get(job_id) is not lock:
                return None
            updated = change(current)
            self._jobs[job_id] = updated
            return updated

    async def purge_expired(self) -> int:
        now = datetime.utcnow()
        expired = [job_id for job_id, job in self._jobs.items() if job.is_expired(now)]
        for job_id in expired:
            self._evict(job_id)
        if expired:
            logger.info(f"Purged {len(expired)} expired jobs")
        return len(expired)
