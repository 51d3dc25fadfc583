"""
GPX Parser Service

Parses GPX files into an ordered coordinate sequence.
"""

import logging
from typing import List, Optional

import gpxpy
import gpxpy.gpx

from .schemas import ParsedTrack, TrackPoint

logger = logging.getLogger(__name__)


class ParseError(ValueError):
    """Uploaded track is not a usable GPX file."""
    pass


class GPXParserService:
    """Service for parsing GPX files."""

    @staticmethod
    def parse(content: bytes) -> ParsedTrack:
        """
        Parse GPX content into track points and metadata.

        Args:
            content: GPX file content as bytes

        Returns:
            ParsedTrack with points in file order

        Raises:
            ParseError: If GPX is invalid or has no points
        """
        try:
            gpx = gpxpy.parse(content.decode('utf-8'))
        except Exception as e:
            logger.error(f"Failed to parse GPX: {e}")
            raise ParseError(f"Invalid GPX file: {e}") from e

        points = GPXParserService._collect_points(gpx)

        if not points:
            raise ParseError("GPX file contains no track or route points")

        return ParsedTrack(
            name=GPXParserService._track_name(gpx),
            description=gpx.description,
            points=points,
        )

    @staticmethod
    def _collect_points(gpx: gpxpy.gpx.GPX) -> List[TrackPoint]:
        points: List[TrackPoint] = []

        # From tracks
        for track in gpx.tracks:
            for segment in track.segments:
                for point in segment.points:
                    points.append(TrackPoint(
                        lat=point.latitude,
                        lon=point.longitude,
                        elevation=point.elevation,
                        time=point.time,
                    ))

        # From routes (if no tracks)
        if not points:
            for route in gpx.routes:
                for point in route.points:
                    points.append(TrackPoint(
                        lat=point.latitude,
                        lon=point.longitude,
                        elevation=point.elevation,
                        time=point.time,
                    ))

        return points

    @staticmethod
    def _track_name(gpx: gpxpy.gpx.GPX) -> Optional[str]:
        if gpx.name:
            return gpx.name
        if gpx.tracks and gpx.tracks[0].name:
            return gpx.tracks[0].name
        if gpx.routes and gpx.routes[0].name:
            return gpx.routes[0].name
        return None
