"""
Unpaved Section Segmenter

Splits a classified track into contiguous runs of non-paved points.
Used by the ingestion pipeline to build the `unpaved_sections` payload
that the map renders as highlighted overlays.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from trailsurface.shared.geo import Coordinate
from .types import is_non_paved


class InvariantError(ValueError):
    """Inputs violate a precondition of the segmenter (programming error)."""
    pass


@dataclass
class UnpavedSection:
    """A maximal run of consecutive points sharing one non-paved label."""
    start_index: int
    end_index: int  # inclusive
    surface_type: str
    coordinates: List[Coordinate] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "start_index": self.start_index,
            "end_index": self.end_index,
            "surface_type": self.surface_type,
            "coordinates": [list(c) for c in self.coordinates],
        }


def _label(value) -> str:
    return getattr(value, "value", value)


class SurfaceSegmenter:
    """
    Segments a track into unpaved sections (segment_by_surface).

    Single left-to-right scan over the per-point labels. A section is
    closed by a paved point, by a change to a different non-paved label,
    or by the end of the track. Sections plus the gaps between them
    partition the input indices.
    """

    @classmethod
    def segment(
        cls,
        coordinates: Sequence[Coordinate],
        surface_types: Sequence[str]
    ) -> List[UnpavedSection]:
        """
        Build unpaved sections from coordinates and their surface labels.

        Args:
            coordinates: Ordered (lon, lat) pairs of the track
            surface_types: One label per coordinate

        Returns:
            Sections in ascending, non-overlapping index order

        Raises:
            InvariantError: If the two sequences differ in length
        """
        if len(coordinates) != len(surface_types):
            raise InvariantError(
                f"coordinates ({len(coordinates)}) and surface_types "
                f"({len(surface_types)}) must have the same length"
            )

        sections: List[UnpavedSection] = []
        current: Optional[UnpavedSection] = None

        for i, (coord, raw_label) in enumerate(zip(coordinates, surface_types)):
            label = _label(raw_label)

            if not is_non_paved(label):
                if current is not None:
                    sections.append(current)
                    current = None
                continue

            if current is not None and current.surface_type != label:
                sections.append(current)
                current = None

            if current is None:
                current = UnpavedSection(
                    start_index=i,
                    end_index=i,
                    surface_type=label,
                    coordinates=[tuple(coord)],
                )
            else:
                current.end_index = i
                current.coordinates.append(tuple(coord))

        if current is not None:
            sections.append(current)

        return sections

    @staticmethod
    def surface_breakdown(surface_types: Sequence[str]) -> List[dict]:
        """
        Share of track points per surface label.

        Returns:
            [{"type": label, "points": n, "percentage": pct}, ...] sorted by
            descending point count
        """
        total = len(surface_types)
        if total == 0:
            return []

        counts = Counter(_label(t) for t in surface_types)
        return [
            {
                "type": label,
                "points": n,
                "percentage": round(n / total * 100, 1),
            }
            for label, n in counts.most_common()
        ]


def segment(
    coordinates: Sequence[Coordinate],
    surface_types: Sequence[str]
) -> List[UnpavedSection]:
    """Shortcut for SurfaceSegmenter.segment()."""
    return SurfaceSegmenter.segment(coordinates, surface_types)
