"""
Surface Routes

Ad-hoc surface classification for coordinates outside an upload.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from trailsurface.api.deps import get_ingestion_service
from trailsurface.features.ingestion import IngestionService
from trailsurface.features.surface import (
    CoordinateBatchRequest,
    SurfaceBatchResponse,
    SurfaceLookupError,
    SurfaceResponse,
    UnpavedSectionSchema,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=SurfaceResponse)
async def get_surface(
    lng: float = Query(..., ge=-180, le=180),
    lat: float = Query(..., ge=-90, le=90),
    service: IngestionService = Depends(get_ingestion_service),
):
    """Surface type at a single point."""
    try:
        surfaces = await service.classify_batch([(lng, lat)])
    except SurfaceLookupError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return SurfaceResponse(surface=surfaces[0])


@router.post("/batch", response_model=SurfaceBatchResponse)
async def classify_batch(
    request: CoordinateBatchRequest,
    service: IngestionService = Depends(get_ingestion_service),
):
    """Surface types of many points, in request order."""
    try:
        surfaces = await service.classify_batch(request.coordinates)
    except SurfaceLookupError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return SurfaceBatchResponse(surfaces=surfaces)


@router.post("/sections", response_model=List[UnpavedSectionSchema])
async def unpaved_sections(
    request: CoordinateBatchRequest,
    service: IngestionService = Depends(get_ingestion_service),
):
    """Classify a coordinate path and return its unpaved sections."""
    try:
        sections = await service.segment_coordinates(request.coordinates)
    except SurfaceLookupError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return [section.to_dict() for section in sections]
