"""2D footprint geometry: bounds, containment and height interpolation.

All functions work on the (x, y) projection of an area; z is carried
separately as per-corner heights.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np
from scipy.spatial import Delaunay, QhullError

DEFAULT_EPSILON = 1e-4  # boundary tolerance in world units


@dataclass(frozen=True)
class Bounds2D:
    """Axis-aligned 2D box. All tests are closed (edges count as inside)."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_points(cls, xy: np.ndarray) -> Bounds2D:
        """Bounds of an (N, 2) array of points."""
        mins = xy.min(axis=0)
        maxs = xy.max(axis=0)
        return cls(float(mins[0]), float(mins[1]), float(maxs[0]), float(maxs[1]))

    @classmethod
    def union_all(cls, boxes: Iterable[Bounds2D]) -> Optional[Bounds2D]:
        """Smallest box covering every box, or None when there are none."""
        result = None
        for box in boxes:
            result = box if result is None else result.union(box)
        return result

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)

    def contains_point(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def intersects(self, other: Bounds2D) -> bool:
        return not (
            other.max_x < self.min_x or
            self.max_x < other.min_x or
            other.max_y < self.min_y or
            self.max_y < other.min_y
        )

    def union(self, other: Bounds2D) -> Bounds2D:
        return Bounds2D(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )

    def padded(self, margin: float) -> Bounds2D:
        return Bounds2D(
            self.min_x - margin,
            self.min_y - margin,
            self.max_x + margin,
            self.max_y + margin,
        )

    def quadrants(self) -> Tuple[Bounds2D, Bounds2D, Bounds2D, Bounds2D]:
        """Split into (SW, SE, NW, NE) quadrants sharing the mid lines."""
        mid_x, mid_y = self.center
        return (
            Bounds2D(self.min_x, self.min_y, mid_x, mid_y),  # SW
            Bounds2D(mid_x, self.min_y, self.max_x, mid_y),  # SE
            Bounds2D(self.min_x, mid_y, mid_x, self.max_y),  # NW
            Bounds2D(mid_x, mid_y, self.max_x, self.max_y),  # NE
        )

    def to_array(self) -> np.ndarray:
        return np.array([self.min_x, self.min_y, self.max_x, self.max_y], dtype=np.float64)


def _cross2d(ax: float, ay: float, bx: float, by: float) -> float:
    return ax * by - ay * bx


def point_in_polygon(xy: np.ndarray, x: float, y: float,
                     epsilon: float = DEFAULT_EPSILON) -> bool:
    """
    Test whether (x, y) lies inside the polygon given by an (N, 2) array.

    Points on an edge or vertex (within epsilon) count as inside. The
    interior test is the even-odd crossing rule, so concave outlines give
    the expected answer as well.
    """
    start = xy
    end = np.roll(xy, -1, axis=0)
    edge = end - start
    to_point = np.array([x, y]) - start

    # On-boundary check: collinear with an edge and within its extent
    cross = edge[:, 0] * to_point[:, 1] - edge[:, 1] * to_point[:, 0]
    length = np.hypot(edge[:, 0], edge[:, 1])
    dist = np.abs(cross) / np.where(length > 0, length, 1.0)
    dot = np.einsum('ij,ij->i', edge, to_point)
    on_segment = (dist <= epsilon) & (dot >= -epsilon * length) & (dot <= length * length + epsilon * length)
    if np.any(on_segment):
        return True

    # Crossing number on a ray cast towards +x
    straddles = (start[:, 1] > y) != (end[:, 1] > y)
    if not np.any(straddles):
        return False
    s = start[straddles]
    e = end[straddles]
    x_at_y = s[:, 0] + (y - s[:, 1]) * (e[:, 0] - s[:, 0]) / (e[:, 1] - s[:, 1])
    return int(np.count_nonzero(x < x_at_y)) % 2 == 1


def inverse_bilinear(xy: np.ndarray, x: float, y: float,
                     epsilon: float = DEFAULT_EPSILON) -> Optional[Tuple[float, float]]:
    """
    Map (x, y) to local (u, v) coordinates of a quad a, b, c, d.

    The quad is parameterised as p = a + u*(b-a) + v*(d-a) + u*v*(a-b+c-d),
    so a is (0, 0), b is (1, 0), c is (1, 1) and d is (0, 1). Returns None
    when the quad is degenerate or the point has no preimage.
    """
    ax, ay = xy[0]
    bx, by = xy[1]
    cx, cy = xy[2]
    dx, dy = xy[3]

    ex, ey = bx - ax, by - ay
    fx, fy = dx - ax, dy - ay
    gx, gy = ax - bx + cx - dx, ay - by + cy - dy
    hx, hy = x - ax, y - ay

    k2 = _cross2d(gx, gy, fx, fy)
    k1 = _cross2d(ex, ey, fx, fy) + _cross2d(hx, hy, gx, gy)
    k0 = _cross2d(hx, hy, ex, ey)

    # k2 and k1 are products of two edge lengths; tolerances scale with them
    scale = max(abs(ex), abs(ey), abs(fx), abs(fy))
    if scale == 0.0:
        return None
    tolerance = epsilon * scale * scale

    if abs(k2) < tolerance:
        # Opposite edges parallel: the equation for v is linear
        if abs(k1) < tolerance:
            return None
        v = -k0 / k1
        u = _solve_u(hx, hy, ex, ey, fx, fy, gx, gy, v)
        return None if u is None else (u, v)

    disc = k1 * k1 - 4.0 * k0 * k2
    if disc < 0.0:
        return None
    root = math.sqrt(disc)
    ik2 = 0.5 / k2

    best = None
    for v in ((-k1 - root) * ik2, (-k1 + root) * ik2):
        u = _solve_u(hx, hy, ex, ey, fx, fy, gx, gy, v)
        if u is None:
            continue
        if -epsilon <= u <= 1.0 + epsilon and -epsilon <= v <= 1.0 + epsilon:
            return (u, v)
        if best is None:
            best = (u, v)
    return best


def _solve_u(hx: float, hy: float, ex: float, ey: float, fx: float, fy: float,
             gx: float, gy: float, v: float) -> Optional[float]:
    # Use whichever axis has the better conditioned denominator
    den_x = ex + gx * v
    den_y = ey + gy * v
    if abs(den_x) >= abs(den_y):
        if den_x == 0.0:
            return None
        return (hx - fx * v) / den_x
    return (hy - fy * v) / den_y


def bilinear_height(z: np.ndarray, u: float, v: float) -> float:
    """Blend corner heights z[a, b, c, d] at local coordinates (u, v)."""
    za, zb, zc, zd = (float(h) for h in z)
    return za + u * (zb - za) + v * (zd - za) + u * v * (za - zb + zc - zd)


class TriangleInterpolator:
    """
    Piecewise-planar height over a polygon, one plane per triangle.

    The footprint is decomposed with a Delaunay triangulation of its
    corners, which for a convex polygon covers exactly the polygon.
    """

    def __init__(self, xy: np.ndarray, z: np.ndarray):
        self.z = np.asarray(z, dtype=np.float64)
        try:
            self._tri = Delaunay(np.asarray(xy, dtype=np.float64))
        except (QhullError, ValueError):
            # Collinear or repeated corners: nothing to interpolate over
            self._tri = None

    @property
    def is_degenerate(self) -> bool:
        return self._tri is None

    def height_at(self, x: float, y: float,
                  epsilon: float = DEFAULT_EPSILON) -> Optional[float]:
        """Plane height at (x, y), or None when outside every triangle."""
        if self._tri is None:
            return None
        point = np.array([x, y], dtype=np.float64)
        simplex = int(self._tri.find_simplex(point, tol=epsilon))
        if simplex < 0:
            return None
        transform = self._tri.transform[simplex]
        b = transform[:2].dot(point - transform[2])
        weights = np.array([b[0], b[1], 1.0 - b[0] - b[1]])
        corners = self._tri.simplices[simplex]
        return float(weights.dot(self.z[corners]))
