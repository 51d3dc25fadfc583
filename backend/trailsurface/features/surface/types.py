"""
Surface type labels.

Single source of truth for the surface vocabulary used by the lookup
service, the classification cache and the segmenter.
"""

from enum import Enum
from typing import Optional


class SurfaceType(str, Enum):
    """Discrete ground surface classification of a track point."""
    PAVED = "paved"
    UNPAVED = "unpaved"
    DIRT = "dirt"
    GRAVEL = "gravel"
    FINE_GRAVEL = "fine_gravel"
    PATH = "path"
    TRACK = "track"
    SERVICE = "service"
    UNKNOWN = "unknown"


# Labels that open/extend an unpaved section. Everything else counts as paved.
NON_PAVED_TYPES: frozenset[str] = frozenset({
    SurfaceType.UNPAVED.value,
    SurfaceType.DIRT.value,
    SurfaceType.GRAVEL.value,
    SurfaceType.FINE_GRAVEL.value,
    SurfaceType.PATH.value,
    SurfaceType.TRACK.value,
    SurfaceType.SERVICE.value,
    SurfaceType.UNKNOWN.value,
})


# Mapping: OSM `surface=*` tag -> our SurfaceType
OSM_SURFACE_TO_TYPE: dict[str, SurfaceType] = {
    # Paved
    "paved": SurfaceType.PAVED,
    "asphalt": SurfaceType.PAVED,
    "concrete": SurfaceType.PAVED,
    "concrete:plates": SurfaceType.PAVED,
    "concrete:lanes": SurfaceType.PAVED,
    "paving_stones": SurfaceType.PAVED,
    "sett": SurfaceType.PAVED,
    "sealed": SurfaceType.PAVED,
    "bitumen": SurfaceType.PAVED,
    "tar": SurfaceType.PAVED,
    "chipseal": SurfaceType.PAVED,
    "compacted": SurfaceType.PAVED,
    "metal": SurfaceType.PAVED,
    "wood": SurfaceType.PAVED,
    # Unpaved
    "unpaved": SurfaceType.UNPAVED,
    "dirt": SurfaceType.DIRT,
    "earth": SurfaceType.DIRT,
    "ground": SurfaceType.DIRT,
    "mud": SurfaceType.DIRT,
    "sand": SurfaceType.DIRT,
    "grass": SurfaceType.DIRT,
    "gravel": SurfaceType.GRAVEL,
    "pebblestone": SurfaceType.GRAVEL,
    "rock": SurfaceType.GRAVEL,
    "fine_gravel": SurfaceType.FINE_GRAVEL,
    "fine": SurfaceType.FINE_GRAVEL,
}

# Mapping: OSM `highway=*` tag -> SurfaceType, used when `surface` is missing
OSM_HIGHWAY_TO_TYPE: dict[str, SurfaceType] = {
    "track": SurfaceType.TRACK,
    "path": SurfaceType.PATH,
    "footway": SurfaceType.PATH,
    "bridleway": SurfaceType.PATH,
    "trail": SurfaceType.PATH,
    "service": SurfaceType.SERVICE,
}


def is_non_paved(label: str) -> bool:
    """True if the label belongs to an unpaved section."""
    return getattr(label, "value", label) in NON_PAVED_TYPES


def surface_from_osm_tags(tags: Optional[dict]) -> SurfaceType:
    """
    Normalize OSM way tags to a SurfaceType.

    The explicit `surface` tag wins. Without it the `highway` class decides;
    any other road class is assumed paved. Unrecognized surfaces are UNKNOWN.
    """
    if not tags:
        return SurfaceType.UNKNOWN

    surface = tags.get("surface")
    if surface:
        return OSM_SURFACE_TO_TYPE.get(surface.strip().lower(), SurfaceType.UNKNOWN)

    highway = tags.get("highway")
    if not highway:
        return SurfaceType.UNKNOWN
    return OSM_HIGHWAY_TO_TYPE.get(highway, SurfaceType.PAVED)
