"""
Surface-related schemas.

Pydantic models for the ad-hoc classification endpoints.
"""

from typing import List, Tuple

from pydantic import BaseModel, Field

from .types import SurfaceType

# Upper bound of one ad-hoc request (each point may hit the lookup provider)
MAX_BATCH_COORDINATES = 10_000


class CoordinateBatchRequest(BaseModel):
    """Batch of (lon, lat) pairs to classify."""

    coordinates: List[Tuple[float, float]] = Field(
        default_factory=list, max_length=MAX_BATCH_COORDINATES
    )


class SurfaceResponse(BaseModel):
    """Surface of a single coordinate."""

    surface: SurfaceType


class SurfaceBatchResponse(BaseModel):
    """Surfaces of a coordinate batch, in request order."""

    surfaces: List[SurfaceType]


class UnpavedSectionSchema(BaseModel):
    """Contiguous run of non-paved points."""

    start_index: int
    end_index: int
    surface_type: str
    coordinates: List[Tuple[float, float]]
