"""
API Router v1

Combines all route modules.
"""

from fastapi import APIRouter

from trailsurface.api.v1.routes import tracks, surface

api_router = APIRouter()

api_router.include_router(tracks.router, prefix="/tracks", tags=["Tracks"])
api_router.include_router(surface.router, prefix="/surface", tags=["Surface"])
