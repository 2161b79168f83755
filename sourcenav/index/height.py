"""Ground height lookup on top of the spatial index."""

from __future__ import annotations
import math
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple

from ..geometry.polygon import DEFAULT_EPSILON
from ..navmesh.area import Area

if TYPE_CHECKING:
    from .quadtree import SpatialIndex


def _rank(height: float, z_hint: float) -> float:
    """Sort key for a height against a hint; smaller is closer."""
    # abs() against an infinite hint is inf for every height
    if math.isinf(z_hint):
        return -height if z_hint > 0 else height
    return abs(height - z_hint)


def select_closest(heights: Iterable[float], z_hint: float) -> Optional[float]:
    """
    Pick the height nearest to z_hint.

    An infinite hint picks the highest (+inf) or lowest (-inf) height. On
    equal distance, and for a NaN hint, the earlier height wins, so callers
    control ties through the order they pass heights in. Returns None for
    no heights.
    """
    best = None
    best_rank = 0.0
    for height in heights:
        rank = _rank(height, z_hint)
        if best is None or rank < best_rank:
            best = height
            best_rank = rank
    return best


class HeightQuery:
    """
    Resolves (x, y) to surface heights using a SpatialIndex.

    1. Collect bounding-box candidates from the quad-tree.
    2. Drop candidates whose polygon does not actually hold the point.
    3. Interpolate a height on each remaining area.
    4. If a hint is given, keep the height closest to it.

    Nothing here mutates the index or the mesh, so one instance can serve
    any number of concurrent readers.
    """

    def __init__(self, index: SpatialIndex, epsilon: float = DEFAULT_EPSILON):
        self.index = index
        self.epsilon = epsilon

    def containing_areas(self, x: float, y: float) -> List[Area]:
        return [
            area for area in self.index.candidates(x, y)
            if area.contains_point(x, y, self.epsilon)
        ]

    def heights_at(self, x: float, y: float) -> List[Tuple[Area, float]]:
        """(area, height) for every area containing (x, y), in file order."""
        return [
            (area, area.get_z_height(x, y, self.epsilon))
            for area in self.containing_areas(x, y)
        ]

    def best_area(self, x: float, y: float, z_hint: float) -> Optional[Tuple[Area, float]]:
        """The containing area whose height is closest to z_hint, with that height."""
        best = None
        best_rank = 0.0
        for area, z in self.heights_at(x, y):
            rank = _rank(z, z_hint)
            if best is None or rank < best_rank:
                best = (area, z)
                best_rank = rank
        return best

    def best_height(self, x: float, y: float, z_hint: float) -> Optional[float]:
        return select_closest((z for _, z in self.heights_at(x, y)), z_hint)
