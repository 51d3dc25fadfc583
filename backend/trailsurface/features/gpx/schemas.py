"""
GPX-related schemas.

Pydantic models for parsed track data.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field


class TrackPoint(BaseModel):
    """Single point in GPX track."""

    lat: float
    lon: float
    elevation: Optional[float] = None
    time: Optional[datetime] = None


class ParsedTrack(BaseModel):
    """Ordered points of an uploaded track plus its metadata."""

    name: Optional[str] = None
    description: Optional[str] = None
    points: List[TrackPoint] = Field(default_factory=list)

    @property
    def coordinates(self) -> List[Tuple[float, float]]:
        """(lon, lat) pairs in track order."""
        return [(p.lon, p.lat) for p in self.points]

    def to_geojson(self) -> dict:
        """FeatureCollection with one LineString ([lon, lat, ele] positions)."""
        positions = []
        for p in self.points:
            if p.elevation is not None:
                positions.append([p.lon, p.lat, p.elevation])
            else:
                positions.append([p.lon, p.lat])

        return {
            "type": "FeatureCollection",
            "features": [{
                "type": "Feature",
                "properties": {"name": self.name} if self.name else {},
                "geometry": {
                    "type": "LineString",
                    "coordinates": positions,
                },
            }],
        }
