"""
Progress delivery for ingestion jobs.

Two read-only modes over the same JobStore:
- Pull: snapshot() returns the current state, the caller re-polls
- Push: subscribe() yields events on a fixed interval until the job is
  terminal, then yields the outcome once and stops

Unknown or vanished jobs end a stream with an `invalid_job` event.
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Any, AsyncIterator, Dict, Optional

from pydantic import BaseModel

from .models import Job, JobSnapshot, JobStatus
from .store import JobStore

logger = logging.getLogger(__name__)

# Seconds between pushes on a progress stream
DEFAULT_PROGRESS_INTERVAL = 1.0


class ProgressEventType(str, Enum):
    PROGRESS = "progress"
    COMPLETED = "completed"
    FAILED = "failed"
    INVALID_JOB = "invalid_job"


class ProgressEvent(BaseModel):
    """One message on a progress stream."""

    type: ProgressEventType
    job_id: str
    progress: Optional[int] = None
    message: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def is_final(self) -> bool:
        return self.type != ProgressEventType.PROGRESS

    @classmethod
    def from_job(cls, job: Job) -> "ProgressEvent":
        if job.status == JobStatus.COMPLETED:
            return cls(
                type=ProgressEventType.COMPLETED,
                job_id=job.id,
                progress=job.progress,
                result=job.result,
            )
        if job.status == JobStatus.FAILED:
            return cls(
                type=ProgressEventType.FAILED,
                job_id=job.id,
                progress=job.progress,
                error=job.error,
            )
        return cls(
            type=ProgressEventType.PROGRESS,
            job_id=job.id,
            progress=job.progress,
            message=job.message,
        )

    @classmethod
    def invalid(cls, job_id: str) -> "ProgressEvent":
        return cls(
            type=ProgressEventType.INVALID_JOB,
            job_id=job_id,
            error="Invalid job ID",
        )


def format_sse(event: ProgressEvent) -> str:
    """Render an event as a Server-Sent Events `data:` frame."""
    payload = event.model_dump(mode="json", exclude_none=True)
    return f"data: {json.dumps(payload)}\n\n"


class ProgressChannel:
    """
    Reads job progress for pollers and stream subscribers.

    Usage:
        channel = ProgressChannel(store, interval=1.0)
        snapshot = await channel.snapshot(job_id)
        async for event in channel.subscribe(job_id):
            ...
    """

    def __init__(self, store: JobStore, interval: float = DEFAULT_PROGRESS_INTERVAL):
        self._store = store
        self.interval = interval

    async def snapshot(self, job_id: str) -> Optional[JobSnapshot]:
        """Current state of a job, None if it is unknown."""
        job = await self._store.get(job_id)
        if job is None:
            return None
        return job.snapshot()

    async def subscribe(self, job_id: str) -> AsyncIterator[ProgressEvent]:
        """
        Stream progress events for a job.

        The first event is sent immediately. Closing the iterator (client
        disconnect) cancels the pending sleep, nothing keeps running.
        """
        job = await self._store.get(job_id)
        if job is None:
            yield ProgressEvent.invalid(job_id)
            return

        event = ProgressEvent.from_job(job)
        yield event
        if event.is_final:
            return

        while True:
            await asyncio.sleep(self.interval)

            job = await self._store.get(job_id)
            if job is None:
                logger.debug(f"Job {job_id} disappeared mid-stream")
                yield ProgressEvent.invalid(job_id)
                return

            event = ProgressEvent.from_job(job)
            yield event
            if event.is_final:
                return
