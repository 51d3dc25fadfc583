"""
Shared route dependencies.
"""

from fastapi import HTTPException, Request

from trailsurface.features.ingestion import IngestionService


def get_ingestion_service(request: Request) -> IngestionService:
    """Ingestion service created by the application lifespan."""
    service = getattr(request.app.state, "ingestion", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Ingestion service not available")
    return service
