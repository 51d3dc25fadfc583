"""
Track ingestion pipeline.

Usage:
    from trailsurface.features.ingestion import build_ingestion_service

    runtime = build_ingestion_service(settings)
    await runtime.service.start()
    job_id = await runtime.service.create_job(content, "ride.gpx")

Components:
- IngestionService: Job creation, background processing, progress, cancel
- IngestionConfig: Progress checkpoints and step messages
- build_ingestion_service: Backend selection from Settings
"""

from .config import IngestionConfig
from .service import IngestionService, JobCancelled, RouteSink
from .factory import IngestionRuntime, build_ingestion_service

__all__ = [
    "IngestionConfig",
    "IngestionService",
    "IngestionRuntime",
    "JobCancelled",
    "RouteSink",
    "build_ingestion_service",
]
