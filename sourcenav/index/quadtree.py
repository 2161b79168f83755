"""
Quad-tree over area footprints.

Each area's 2D bounding box is inserted into every leaf whose region it
touches, so a point lookup only has to walk one root-to-leaf path (or a
few, on quadrant boundaries) instead of scanning the whole mesh.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

from ..config import IndexConfig, QueryConfig
from ..geometry.polygon import Bounds2D
from ..navmesh.area import Area
from ..navmesh.mesh import NavMesh
from .height import HeightQuery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuadNode:
    """A leaf holding areas, or an internal node with four children (SW, SE, NW, NE)."""
    region: Bounds2D
    depth: int
    areas: Tuple[Area, ...] = ()
    children: Tuple[QuadNode, ...] = ()

    @property
    def is_leaf(self) -> bool:
        return not self.children


class SpatialIndex:
    """
    Read-only quad-tree built once over all areas of a mesh.

    Construction splits a region into quadrants while it holds more than
    leaf_capacity areas and is shallower than max_depth. A split that
    would not separate anything is skipped, which keeps stacks of
    coincident areas from multiplying down to max_depth.
    """

    def __init__(self, mesh: NavMesh, config: Optional[IndexConfig] = None,
                 query_config: Optional[QueryConfig] = None):
        self.mesh = mesh
        self.config = config or IndexConfig()
        self.query_config = query_config or QueryConfig()

        if self.config.leaf_capacity < 1:
            raise ValueError(f"leaf_capacity must be positive, got {self.config.leaf_capacity}")
        if self.config.max_depth < 0:
            raise ValueError(f"max_depth must not be negative, got {self.config.max_depth}")

        self._areas: List[Area] = list(mesh)
        self._order: Dict[int, int] = {area.id: i for i, area in enumerate(self._areas)}

        if mesh.bounds is None:
            self.root = QuadNode(region=Bounds2D(0.0, 0.0, 0.0, 0.0), depth=0)
        else:
            # (N, 4) array of min_x, min_y, max_x, max_y per area
            self._boxes = np.array([a.bounds.to_array() for a in self._areas], dtype=np.float64)
            region = mesh.bounds.padded(self.config.bounds_padding)
            self.root = self._build(np.arange(len(self._areas)), region, 0)
            del self._boxes

        self.heights = HeightQuery(self, epsilon=self.query_config.epsilon)
        logger.debug(f"Built quad-tree: {self.leaf_count()} leaves, depth {self.depth()}")

    def _build(self, indices: np.ndarray, region: Bounds2D, depth: int) -> QuadNode:
        if (len(indices) <= self.config.leaf_capacity or
                depth >= self.config.max_depth or
                region.width <= 0.0 or region.height <= 0.0):
            return self._leaf(indices, region, depth)

        boxes = self._boxes[indices]
        quadrants = region.quadrants()
        parts = []
        for quad in quadrants:
            mask = (
                (boxes[:, 0] <= quad.max_x) &
                (boxes[:, 2] >= quad.min_x) &
                (boxes[:, 1] <= quad.max_y) &
                (boxes[:, 3] >= quad.min_y)
            )
            parts.append(indices[mask])

        if all(len(part) == len(indices) for part in parts):
            return self._leaf(indices, region, depth)

        children = tuple(
            self._build(part, quad, depth + 1)
            for part, quad in zip(parts, quadrants)
        )
        return QuadNode(region=region, depth=depth, children=children)

    def _leaf(self, indices: np.ndarray, region: Bounds2D, depth: int) -> QuadNode:
        return QuadNode(
            region=region,
            depth=depth,
            areas=tuple(self._areas[i] for i in indices),
        )

    # ------------------------
    # Structure
    # ------------------------
    def leaves(self) -> Iterator[QuadNode]:
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node.is_leaf:
                yield node
            else:
                stack.extend(reversed(node.children))

    def leaf_count(self) -> int:
        return sum(1 for _ in self.leaves())

    def depth(self) -> int:
        return max(leaf.depth for leaf in self.leaves())

    # ------------------------
    # Point queries
    # ------------------------
    def candidates(self, x: float, y: float) -> List[Area]:
        """
        Areas whose bounding box may hold (x, y), deduplicated, in file order.

        Walks every child whose closed region contains the point, so points
        on a quadrant boundary see the leaves on both sides.
        """
        if not self.root.region.contains_point(x, y):
            return []
        found: Dict[int, Area] = {}
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node.is_leaf:
                for area in node.areas:
                    found.setdefault(area.id, area)
                continue
            for child in node.children:
                if child.region.contains_point(x, y):
                    stack.append(child)
        return sorted(found.values(), key=lambda a: self._order[a.id])

    def query(self, x: float, y: float) -> List[Area]:
        """Areas whose polygon contains (x, y), in file order."""
        return self.heights.containing_areas(x, y)

    def find_z_heights(self, x: float, y: float) -> List[float]:
        """Heights of every surface at (x, y); several when areas overlap."""
        return [h for _, h in self.heights.heights_at(x, y)]

    def find_best_height(self, x: float, y: float, z_hint: float) -> Optional[float]:
        """
        Ground height at (x, y) closest to z_hint, or None when no area
        contains the point.
        """
        return self.heights.best_height(x, y, z_hint)

    def __repr__(self) -> str:
        return f"SpatialIndex({len(self._areas)} areas, region={self.root.region})"


def build_spatial_index(mesh: NavMesh, config: Optional[IndexConfig] = None,
                        query_config: Optional[QueryConfig] = None) -> SpatialIndex:
    return SpatialIndex(mesh, config, query_config)
