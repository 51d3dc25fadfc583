"""
Shared fixtures: GPX builder, fake surface provider, in-memory Redis double.
"""

import fnmatch
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from trailsurface.features.surface import SurfaceLookupService, SurfaceType


# =============================================================================
# GPX content
# =============================================================================

def build_gpx(
    points: Sequence[Tuple[float, float, Optional[float]]],
    name: Optional[str] = "Test Route",
    description: Optional[str] = None,
    as_route: bool = False,
) -> bytes:
    """GPX 1.1 document with one track (or route) made of (lat, lon, ele) points."""
    tag = "rtept" if as_route else "trkpt"
    body = []
    for lat, lon, ele in points:
        ele_xml = f"<ele>{ele}</ele>" if ele is not None else ""
        body.append(f'<{tag} lat="{lat}" lon="{lon}">{ele_xml}</{tag}>')
    pts = "\n      ".join(body)

    metadata = ""
    if name or description:
        metadata = "<metadata>"
        if name:
            metadata += f"<name>{name}</name>"
        if description:
            metadata += f"<desc>{description}</desc>"
        metadata += "</metadata>"

    if as_route:
        container = f"<rte>\n      {pts}\n  </rte>"
    else:
        container = f"<trk><trkseg>\n      {pts}\n  </trkseg></trk>"

    return f"""<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="trailsurface-tests" xmlns="http://www.topografix.com/GPX/1/1">
  {metadata}
  {container}
</gpx>""".encode("utf-8")


def line_points(count: int, start_lat: float = -42.88, start_lon: float = 147.32):
    """count points heading south, ~111 m apart, with elevation."""
    return [
        (round(start_lat - i * 0.001, 6), start_lon, 100.0 + i)
        for i in range(count)
    ]


@pytest.fixture
def gpx_builder():
    return build_gpx


@pytest.fixture
def track_points():
    return line_points


# =============================================================================
# Surface provider double
# =============================================================================

class FakeSurfaceLookup(SurfaceLookupService):
    """Answers from a (lon, lat) -> SurfaceType table and records every call."""

    def __init__(self, default: SurfaceType = SurfaceType.PAVED):
        self.surfaces: Dict[Tuple[float, float], SurfaceType] = {}
        self.default = default
        self.calls: List[List[Tuple[float, float]]] = []
        self.error: Optional[Exception] = None
        self.closed = False

    async def lookup(self, coordinates):
        self.calls.append([tuple(c) for c in coordinates])
        if self.error is not None:
            raise self.error
        return [self.surfaces.get(tuple(c), self.default) for c in coordinates]

    async def aclose(self) -> None:
        self.closed = True

    @property
    def looked_up(self) -> int:
        return sum(len(call) for call in self.calls)


@pytest.fixture
def fake_lookup():
    return FakeSurfaceLookup()


# =============================================================================
# Redis double
# =============================================================================

class FakePipeline:
    """Queues commands and runs them in order on execute()."""

    def __init__(self, client: "FakeRedis"):
        self._client = client
        self._commands = []

    def get(self, key):
        self._commands.append(("get", (key,), {}))
        return self

    def set(self, key, value, **kwargs):
        self._commands.append(("set", (key, value), kwargs))
        return self

    def delete(self, *keys):
        self._commands.append(("delete", keys, {}))
        return self

    async def execute(self):
        results = []
        for name, args, kwargs in self._commands:
            results.append(await getattr(self._client, name)(*args, **kwargs))
        self._commands = []
        return results


class FakeRedis:
    """Subset of redis.asyncio.Redis (decode_responses=True) used by the stores."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    async def get(self, key):
        return self.data.get(key)

    async def mget(self, keys):
        return [self.data.get(key) for key in keys]

    async def set(self, key, value, ex=None, xx=False, keepttl=False):
        if xx and key not in self.data:
            return None
        self.data[key] = value
        if ex is not None:
            self.ttls[key] = ex
        elif not keepttl:
            self.ttls.pop(key, None)
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def scan_iter(self, match=None):
        for key in list(self.data):
            if match is None or fnmatch.fnmatch(key, match):
                yield key

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    async def aclose(self):
        return None


@pytest.fixture
def fake_redis():
    return FakeRedis()
