"""
Track Upload Routes

Endpoints for uploading GPX tracks and following their ingestion jobs.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from trailsurface.api.deps import get_ingestion_service
from trailsurface.config import settings
from trailsurface.features.ingestion import IngestionService
from trailsurface.features.jobs import JobNotFoundError, JobSnapshot, format_sse

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Schemas
# =============================================================================

class JobCreatedResponse(BaseModel):
    job_id: str


class JobCancelledResponse(BaseModel):
    job_id: str
    cancelled: bool


# =============================================================================
# Routes
# =============================================================================

@router.post("/upload", response_model=JobCreatedResponse, status_code=202)
async def upload_track(
    file: UploadFile = File(...),
    service: IngestionService = Depends(get_ingestion_service),
):
    """
    Upload a GPX file for background processing.

    Returns the job id right away; follow it via /jobs/{job_id}
    or /jobs/{job_id}/progress.
    """
    if not file.filename or not file.filename.lower().endswith('.gpx'):
        raise HTTPException(status_code=400, detail="Only .gpx files are allowed")

    max_bytes = settings.max_upload_bytes
    too_large = HTTPException(
        status_code=400, detail=f"File too large (max {max_bytes // (1024 * 1024)}MB)"
    )

    if file.size is not None and file.size > max_bytes:
        raise too_large

    # Never buffer more than one byte past the limit
    content = await file.read(max_bytes + 1)

    if len(content) == 0:
        raise HTTPException(status_code=400, detail="File is empty")

    if len(content) > max_bytes:
        raise too_large

    job_id = await service.create_job(content, file.filename)
    return JobCreatedResponse(job_id=job_id)


@router.get("/jobs", response_model=List[JobSnapshot])
async def list_jobs(service: IngestionService = Depends(get_ingestion_service)):
    """All live ingestion jobs, oldest first."""
    return await service.list_jobs()


@router.get("/jobs/{job_id}", response_model=JobSnapshot)
async def get_job(
    job_id: str,
    service: IngestionService = Depends(get_ingestion_service),
):
    """Current state of an ingestion job."""
    snapshot = await service.get_job_snapshot(job_id)
    if snapshot is None:
        raise JobNotFoundError(job_id)
    return snapshot


@router.get("/jobs/{job_id}/progress")
async def stream_job_progress(
    job_id: str,
    service: IngestionService = Depends(get_ingestion_service),
):
    """Stream job progress via SSE until the job completes or fails."""

    async def event_generator():
        async for event in service.subscribe_progress(job_id):
            yield format_sse(event)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )


@router.delete("/jobs/{job_id}", response_model=JobCancelledResponse)
async def cancel_job(
    job_id: str,
    service: IngestionService = Depends(get_ingestion_service),
):
    """Cancel a job and delete its upload. Safe to repeat."""
    cancelled = await service.cancel_job(job_id)
    return JobCancelledResponse(job_id=job_id, cancelled=cancelled)
