"""
Ingestion job model.

A Job moves through a small state machine:

    pending -> processing -> completed
                          -> failed

Terminal states are final. Progress is an integer percent (0-100) that
never decreases and is frozen once the job is terminal.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class InvalidTransitionError(Exception):
    """Attempted state change not allowed by the job state machine."""
    pass


def fraction_to_percent(fraction: float) -> int:
    """Convert a 0-1 progress fraction to the canonical 0-100 integer."""
    return max(0, min(100, int(round(fraction * 100))))


def _new_job_id() -> str:
    return uuid.uuid4().hex


class Job(BaseModel):
    """Lifecycle state of one track ingestion."""

    id: str = Field(default_factory=_new_job_id)
    status: JobStatus = JobStatus.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    message: str = ""
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    filename: Optional[str] = None
    artifact_ref: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    expires_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_outcome(self) -> "Job":
        """result only on completed jobs, error only on failed ones."""
        if self.result is not None and self.status != JobStatus.COMPLETED:
            raise ValueError("result is only allowed on completed jobs")
        if self.status == JobStatus.COMPLETED and self.result is None:
            raise ValueError("completed jobs must carry a result")
        if self.error is not None and self.status != JobStatus.FAILED:
            raise ValueError("error is only allowed on failed jobs")
        if self.status == JobStatus.FAILED and self.error is None:
            raise ValueError("failed jobs must carry an error")
        return self

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.utcnow()) >= self.expires_at

    # =========================================================================
    # Transitions (each returns a new Job, the original is untouched)
    # =========================================================================

    def _require_not_terminal(self, action: str) -> None:
        if self.status.is_terminal:
            raise InvalidTransitionError(
                f"Cannot {action} job {self.id}: already {self.status.value}"
            )

    def start(self, message: str = "") -> "Job":
        """pending -> processing."""
        if self.status != JobStatus.PENDING:
            raise InvalidTransitionError(
                f"Cannot start job {self.id} from {self.status.value}"
            )
        return self.model_copy(update={
            "status": JobStatus.PROCESSING,
            "message": message or self.message,
            "updated_at": datetime.utcnow(),
        })

    def advance(self, progress: int, message: Optional[str] = None) -> "Job":
        """Record progress; values below the current one are ignored."""
        if self.status != JobStatus.PROCESSING:
            raise InvalidTransitionError(
                f"Progress updates need a processing job, {self.id} is {self.status.value}"
            )
        progress = max(0, min(100, int(progress)))
        return self.model_copy(update={
            "progress": max(self.progress, progress),
            "message": message if message is not None else self.message,
            "updated_at": datetime.utcnow(),
        })

    def complete(self, result: Dict[str, Any], message: str = "Completed") -> "Job":
        """processing -> completed, progress forced to 100."""
        self._require_not_terminal("complete")
        if self.status != JobStatus.PROCESSING:
            raise InvalidTransitionError(
                f"Cannot complete job {self.id} from {self.status.value}"
            )
        return self.model_copy(update={
            "status": JobStatus.COMPLETED,
            "progress": 100,
            "message": message,
            "result": result,
            "updated_at": datetime.utcnow(),
        })

    def fail(self, error: str) -> "Job":
        """pending/processing -> failed, progress left where it was."""
        self._require_not_terminal("fail")
        return self.model_copy(update={
            "status": JobStatus.FAILED,
            "error": error,
            "message": "Failed",
            "updated_at": datetime.utcnow(),
        })

    def snapshot(self) -> "JobSnapshot":
        return JobSnapshot(
            job_id=self.id,
            status=self.status,
            progress=self.progress,
            message=self.message,
            result=self.result,
            error=self.error,
        )


class JobSnapshot(BaseModel):
    """Read-only view returned to pollers."""

    job_id: str
    status: JobStatus
    progress: int
    message: str = ""
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
