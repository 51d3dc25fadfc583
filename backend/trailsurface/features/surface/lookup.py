"""
Surface lookup service.

Answers "what is the ground surface at this coordinate" using an external
geospatial provider. The default provider is the OpenStreetMap Overpass API:
one query per batch fetches the highway ways around every coordinate, and
each coordinate takes the surface of the nearest way.

Overpass API usage policy:
- Keep queries small (the orchestrator sends chunks, not whole routes)
- No automatic retries here; a failed lookup fails the ingestion job
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import httpx

from trailsurface.shared.geo import Coordinate, nearest_vertex_distance_m
from .types import SurfaceType, surface_from_osm_tags

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================

class SurfaceLookupError(Exception):
    """External surface classification is unavailable or returned garbage."""
    pass


# =============================================================================
# Interface
# =============================================================================

class SurfaceLookupService(ABC):
    """Abstract external surface classifier."""

    @abstractmethod
    async def lookup(self, coordinates: Sequence[Coordinate]) -> List[SurfaceType]:
        """
        Classify coordinates.

        Args:
            coordinates: (lon, lat) pairs

        Returns:
            One SurfaceType per coordinate, in input order

        Raises:
            SurfaceLookupError: If the provider cannot answer
        """
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        return None


# =============================================================================
# Overpass implementation
# =============================================================================

class OverpassSurfaceLookup(SurfaceLookupService):
    """
    Surface lookup backed by the Overpass API.

    Usage:
        lookup = OverpassSurfaceLookup("https://overpass-api.de/api/interpreter")
        types = await lookup.lookup([(147.32, -42.88), (147.33, -42.89)])
        await lookup.aclose()
    """

    def __init__(
        self,
        api_url: str,
        search_radius_m: float = 25.0,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_url = api_url
        self.search_radius_m = search_radius_m
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def build_query(self, coordinates: Sequence[Coordinate]) -> str:
        """Build an Overpass QL union of `around` filters, one per coordinate."""
        radius = self.search_radius_m
        clauses = "\n".join(
            f'  way["highway"](around:{radius},{lat},{lon});'
            for lon, lat in coordinates
        )
        return (
            f"[out:json][timeout:{int(self.timeout)}];\n"
            f"(\n{clauses}\n);\n"
            "out tags geom;"
        )

    async def lookup(self, coordinates: Sequence[Coordinate]) -> List[SurfaceType]:
        if not coordinates:
            return []

        query = self.build_query(coordinates)
        try:
            response = await self._get_client().post(
                self.api_url,
                data={"data": query},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            logger.warning(f"Overpass request failed: {e}")
            raise SurfaceLookupError(f"Surface lookup failed: {e}") from e
        except ValueError as e:
            raise SurfaceLookupError(f"Surface lookup returned invalid JSON: {e}") from e

        elements = payload.get("elements")
        if not isinstance(elements, list):
            raise SurfaceLookupError("Surface lookup response has no 'elements'")

        ways = [
            el for el in elements
            if el.get("type") == "way" and el.get("geometry")
        ]
        logger.debug(f"Overpass returned {len(ways)} ways for {len(coordinates)} points")

        return [self._classify_point(lon, lat, ways) for lon, lat in coordinates]

    def _classify_point(self, lon: float, lat: float, ways: list[dict]) -> SurfaceType:
        """Take the surface of the closest way within the search radius."""
        best_way = None
        best_distance = None

        for way in ways:
            vertices = [(node["lat"], node["lon"]) for node in way["geometry"]]
            distance = nearest_vertex_distance_m(lat, lon, vertices)
            if distance is None:
                continue
            if best_distance is None or distance < best_distance:
                best_way, best_distance = way, distance

        # Vertices can be sparse on long straight ways, allow some slack
        if best_way is None or best_distance > self.search_radius_m * 4:
            return SurfaceType.UNKNOWN

        return surface_from_osm_tags(best_way.get("tags"))

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
