"""Navigation areas and the metadata records stored with them."""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterable, Iterator, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..errors import InvalidGeometry
from ..geometry.polygon import (
    DEFAULT_EPSILON,
    Bounds2D,
    TriangleInterpolator,
    bilinear_height,
    inverse_bilinear,
    point_in_polygon,
)
from ..geometry.vector import Vector3


class NavDirection(IntEnum):
    NORTH = 0
    EAST = 1
    SOUTH = 2
    WEST = 3


class LadderDirection(IntEnum):
    UP = 0
    DOWN = 1


@dataclass(frozen=True)
class HidingSpot:
    """A spot where a player can hide, stored as found in the file."""
    id: int
    position: Vector3
    flags: int


@dataclass(frozen=True)
class ApproachArea:
    here: int
    prev: int
    prev_to_here_how: int
    next: int
    here_to_next_how: int


@dataclass(frozen=True)
class EncounterSpot:
    spot_id: int  # hiding spot id
    distance: int  # raw byte, 255 == end of the path

    @property
    def parametric_distance(self) -> float:
        return self.distance / 255.0


@dataclass(frozen=True)
class EncounterPath:
    from_area_id: int
    from_direction: int
    to_area_id: int
    to_direction: int
    spots: Tuple[EncounterSpot, ...] = ()


@dataclass(frozen=True)
class VisibleArea:
    area_id: int
    attributes: int


@dataclass(frozen=True)
class LightIntensity:
    north_west: float = 1.0
    north_east: float = 1.0
    south_east: float = 1.0
    south_west: float = 1.0


def _freeze_links(links: Optional[Mapping[int, Iterable[int]]],
                  directions: Iterable[IntEnum]) -> Dict[IntEnum, Tuple[int, ...]]:
    links = links or {}
    return {d: tuple(int(i) for i in links.get(d, ())) for d in directions}


class Area:
    """
    One convex walkable polygon of the mesh.

    Corners are ordered around the outline. Height varies across the
    footprint: bilinearly for four corners, per triangle otherwise. The
    2D bounding box and the numpy corner arrays are computed once here and
    never change afterwards.
    """

    __slots__ = (
        'id', 'flags', 'corners', 'connections', 'ladder_connections',
        'hiding_spots', 'approach_areas', 'encounter_paths', 'place',
        'light_intensity', 'earliest_occupy', 'visible_areas',
        'inherit_visibility_from', 'custom_data',
        'bounds', '_xy', '_z', '_triangles',
    )

    def __init__(
        self,
        area_id: int,
        corners: Sequence[Vector3],
        flags: int = 0,
        connections: Optional[Mapping[NavDirection, Iterable[int]]] = None,
        ladder_connections: Optional[Mapping[LadderDirection, Iterable[int]]] = None,
        hiding_spots: Iterable[HidingSpot] = (),
        approach_areas: Iterable[ApproachArea] = (),
        encounter_paths: Iterable[EncounterPath] = (),
        place: int = 0,
        light_intensity: Optional[LightIntensity] = None,
        earliest_occupy: Tuple[float, float] = (0.0, 0.0),
        visible_areas: Iterable[VisibleArea] = (),
        inherit_visibility_from: int = 0,
        custom_data: bytes = b'',
    ):
        corners = tuple(corners)
        if len(corners) < 3:
            raise InvalidGeometry(f"needs at least 3 corners, got {len(corners)}", area_id)

        xy = np.array([(c.x, c.y) for c in corners], dtype=np.float64)
        if not np.all(np.isfinite(xy)):
            raise InvalidGeometry("corner coordinates must be finite", area_id)

        set_ = object.__setattr__
        set_(self, 'id', int(area_id))
        set_(self, 'flags', int(flags))
        set_(self, 'corners', corners)
        set_(self, 'connections', _freeze_links(connections, NavDirection))
        set_(self, 'ladder_connections', _freeze_links(ladder_connections, LadderDirection))
        set_(self, 'hiding_spots', tuple(hiding_spots))
        set_(self, 'approach_areas', tuple(approach_areas))
        set_(self, 'encounter_paths', tuple(encounter_paths))
        set_(self, 'place', int(place))
        set_(self, 'light_intensity', light_intensity or LightIntensity())
        set_(self, 'earliest_occupy', tuple(earliest_occupy))
        set_(self, 'visible_areas', tuple(visible_areas))
        set_(self, 'inherit_visibility_from', int(inherit_visibility_from))
        set_(self, 'custom_data', bytes(custom_data))
        set_(self, 'bounds', Bounds2D.from_points(xy))
        xy.setflags(write=False)
        z = np.array([c.z for c in corners], dtype=np.float64)
        z.setflags(write=False)
        set_(self, '_xy', xy)
        set_(self, '_z', z)
        set_(self, '_triangles', None if len(corners) == 4 else TriangleInterpolator(xy, z))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"Area is immutable, cannot set {name!r}")

    @classmethod
    def from_extent(
        cls,
        area_id: int,
        north_west: Vector3,
        south_east: Vector3,
        north_east_z: float,
        south_west_z: float,
        **kwargs,
    ) -> Area:
        """
        Build the axis-aligned quad used by the nav file layout.

        The file stores two opposite corners plus the heights of the other
        two; corners come out ordered NW, NE, SE, SW.
        """
        corners = (
            north_west,
            Vector3(south_east.x, north_west.y, north_east_z),
            south_east,
            Vector3(north_west.x, south_east.y, south_west_z),
        )
        return cls(area_id, corners, **kwargs)

    @property
    def footprint(self) -> np.ndarray:
        """Read-only (N, 2) array of corner x/y."""
        return self._xy

    @property
    def corner_heights(self) -> np.ndarray:
        return self._z

    @property
    def north_west(self) -> Vector3:
        return self.corners[0]

    @property
    def south_east(self) -> Vector3:
        return self.corners[len(self.corners) // 2]

    @property
    def width(self) -> float:
        return self.bounds.width

    @property
    def height(self) -> float:
        return self.bounds.height

    @property
    def center(self) -> Vector3:
        return Vector3(
            float(self._xy[:, 0].mean()),
            float(self._xy[:, 1].mean()),
            float(self._z.mean()),
        )

    def connected_area_ids(self) -> Iterator[int]:
        """All outgoing connection targets, in direction order."""
        for direction in NavDirection:
            yield from self.connections[direction]

    def contains_point(self, x: float, y: float, epsilon: float = DEFAULT_EPSILON) -> bool:
        """True point-in-polygon test of (x, y) against the footprint."""
        if not self.bounds.padded(epsilon).contains_point(x, y):
            return False
        return point_in_polygon(self._xy, x, y, epsilon)

    def get_z_height(self, x: float, y: float,
                     epsilon: float = DEFAULT_EPSILON) -> float:
        """
        Interpolated ground height at (x, y).

        Quads use bilinear interpolation in the quad's own (u, v) axes;
        other outlines use the plane of the triangle holding the point.
        When the outline is too degenerate to map the point onto, the
        height of the nearest corner is returned. Points outside the
        footprint get an edge or corner height, so callers test
        contains_point first.
        """
        if self._triangles is not None:
            z = self._triangles.height_at(x, y, epsilon)
        else:
            uv = inverse_bilinear(self._xy, x, y, epsilon)
            if uv is None:
                z = None
            else:
                u = min(max(uv[0], 0.0), 1.0)
                v = min(max(uv[1], 0.0), 1.0)
                z = bilinear_height(self._z, u, v)
        if z is None:
            return self._nearest_corner_height(x, y)
        return z

    def _nearest_corner_height(self, x: float, y: float) -> float:
        d2 = (self._xy[:, 0] - x) ** 2 + (self._xy[:, 1] - y) ** 2
        return float(self._z[int(np.argmin(d2))])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Area):
            return NotImplemented
        return self.id == other.id and self.corners == other.corners

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"Area({self.id}, {len(self.corners)} corners, bounds={self.bounds})"
