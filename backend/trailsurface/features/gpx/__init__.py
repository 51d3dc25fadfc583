"""
GPX file handling module.

Usage:
    from trailsurface.features.gpx import GPXParserService, ParseError

Components:
- GPXParserService: Parse GPX files into ordered track points
- ParsedTrack / TrackPoint: Pydantic schemas for parsed data
"""

from .parser import GPXParserService, ParseError
from .schemas import ParsedTrack, TrackPoint

__all__ = [
    "GPXParserService",
    "ParseError",
    "ParsedTrack",
    "TrackPoint",
]
