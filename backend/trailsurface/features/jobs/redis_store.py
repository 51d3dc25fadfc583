"""Redis-backed job store with TTL, shared between API workers."""

import logging
from datetime import timedelta
from typing import Callable, List, Optional

import redis.asyncio as aioredis
from pydantic import ValidationError

from .models import Job
from .store import JobStore

logger = logging.getLogger(__name__)

# Job prefix for Redis keys
JOB_PREFIX = "job:"

# Default job expiry in seconds (1 hour, matches upload retention)
DEFAULT_JOB_TTL_SECONDS = 60 * 60


def _job_key(job_id: str) -> str:
    return f"{JOB_PREFIX}{job_id}"


class RedisJobStore(JobStore):
    """
    Job store on Redis.

    Jobs are JSON documents under `job:{id}` with an expiry set at creation.
    Updates use SET XX KEEPTTL: they never recreate a key that was deleted
    or expired, and never extend its lifetime.
    """

    def __init__(
        self,
        client: aioredis.Redis,
        ttl_seconds: Optional[int] = DEFAULT_JOB_TTL_SECONDS
    ):
        self._client = client
        self.ttl_seconds = ttl_seconds

    def _decode(self, job_id: str, raw: Optional[str]) -> Optional[Job]:
        if not raw:
            return None
        try:
            return Job.model_validate_json(raw)
        except ValidationError:
            logger.warning(f"Invalid job document for {job_id}; ignoring")
            return None

    async def create(self, job: Job) -> Job:
        if self.ttl_seconds and job.expires_at is None:
            job = job.model_copy(update={
                "expires_at": job.created_at + timedelta(seconds=self.ttl_seconds)
            })
        await self._client.set(
            _job_key(job.id),
            job.model_dump_json(),
            ex=self.ttl_seconds or None,
        )
        logger.debug(f"Created job {job.id} in Redis")
        return job

    async def get(self, job_id: str) -> Optional[Job]:
        raw = await self._client.get(_job_key(job_id))
        return self._decode(job_id, raw)

    async def list_jobs(self) -> List[Job]:
        keys = [key async for key in self._client.scan_iter(match=f"{JOB_PREFIX}*")]
        if not keys:
            return []
        raws = await self._client.mget(keys)
        jobs = [
            self._decode(key[len(JOB_PREFIX):], raw)
            for key, raw in zip(keys, raws)
        ]
        return [job for job in jobs if job is not None]

    async def delete(self, job_id: str) -> Optional[Job]:
        pipe = self._client.pipeline(transaction=True)
        pipe.get(_job_key(job_id))
        pipe.delete(_job_key(job_id))
        raw, _ = await pipe.execute()
        return self._decode(job_id, raw)

    async def _apply(self, job_id: str, change: Callable[[Job], Job]) -> Optional[Job]:
        current = await self.get(job_id)
        if current is None:
            return None

        updated = change(current)
        written = await self._client.set(
            _job_key(job_id),
            updated.model_dump_json(),
            xx=True,
            keepttl=True,
        )
        if not written:
            logger.debug(f"Job {job_id} vanished before update; write dropped")
            return None
        return updated
