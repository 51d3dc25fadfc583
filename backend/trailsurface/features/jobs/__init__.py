"""
Ingestion job module.

Usage:
    from trailsurface.features.jobs import Job, JobStatus, InMemoryJobStore
    from trailsurface.features.jobs import ProgressChannel

Components:
- Job / JobStatus / JobSnapshot: Job state machine
- JobStore: Storage interface
- InMemoryJobStore: Process-local store, optional TTL
- RedisJobStore: Shared store with TTL
- ProgressChannel: Snapshot polling and progress streaming
"""

from .models import (
    Job,
    JobStatus,
    JobSnapshot,
    InvalidTransitionError,
    fraction_to_percent,
)
from .store import JobStore, InMemoryJobStore, JobNotFoundError
from .redis_store import RedisJobStore
from .progress import ProgressChannel, ProgressEvent, ProgressEventType, format_sse

__all__ = [
    # Models
    "Job",
    "JobStatus",
    "JobSnapshot",
    "InvalidTransitionError",
    "fraction_to_percent",
    # Stores
    "JobStore",
    "InMemoryJobStore",
    "RedisJobStore",
    "JobNotFoundError",
    # Progress
    "ProgressChannel",
    "ProgressEvent",
    "ProgressEventType",
    "format_sse",
]
