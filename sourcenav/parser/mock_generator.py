"""Synthetic nav file generator for development and testing.

Produces byte buffers in the same layout the decoder reads, for any
supported version. This is a fixture builder, not a general-purpose nav
writer: it encodes exactly what it is given, including deliberately
broken references.
"""

from __future__ import annotations
import struct
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .decoder import NAV_MAGIC, VersionLayout

Point3 = Tuple[float, float, float]


@dataclass
class MockArea:
    """Field values for one encoded area record."""
    id: int
    north_west: Point3
    south_east: Point3
    north_east_z: Optional[float] = None  # defaults to north_west z
    south_west_z: Optional[float] = None  # defaults to south_east z
    flags: int = 0
    connections: Dict[int, List[int]] = field(default_factory=dict)
    hiding_spots: List[Tuple[int, Point3, int]] = field(default_factory=list)
    approach_areas: List[Tuple[int, int, int, int, int]] = field(default_factory=list)
    encounter_paths: List[Tuple[int, int, int, int, List[Tuple[int, int]]]] = field(default_factory=list)
    place: int = 0
    ladder_connections: Dict[int, List[int]] = field(default_factory=dict)
    earliest_occupy: Tuple[float, float] = (0.0, 0.0)
    light_intensity: Tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    visible_areas: List[Tuple[int, int]] = field(default_factory=list)
    inherit_visibility_from: int = 0
    custom_data: bytes = b'\x00\x00\x00\x00'

    @property
    def ne_z(self) -> float:
        return self.north_west[2] if self.north_east_z is None else self.north_east_z

    @property
    def sw_z(self) -> float:
        return self.south_east[2] if self.south_west_z is None else self.south_west_z


@dataclass
class MockLadder:
    """Field values for one encoded ladder record."""
    id: int
    top: Point3 = (0.0, 0.0, 100.0)
    bottom: Point3 = (0.0, 0.0, 0.0)
    width: float = 32.0
    length: float = 100.0
    direction: int = 0
    # top forward, top left, top right, top behind, bottom
    area_ids: Tuple[int, int, int, int, int] = (0, 0, 0, 0, 0)
    is_dangling: bool = False


class MockNavGenerator:
    """Generate nav file bytes for testing."""

    def __init__(self, version: int = 16, sub_version: int = 0, seed: Optional[int] = None):
        """
        Initialize generator.

        Args:
            version: Nav format version to encode
            sub_version: Sub-version written for versions that carry one
            seed: Random seed for reproducible generated meshes
        """
        self.layout = VersionLayout.for_version(version)
        self.version = version
        self.sub_version = sub_version
        self.rng = np.random.default_rng(seed)

    # ------------------------
    # Mesh shapes
    # ------------------------
    @staticmethod
    def flat_area(area_id: int, x0: float, y0: float, x1: float, y1: float,
                  z: float = 0.0, **kwargs) -> MockArea:
        """Axis-aligned flat area spanning (x0, y0) to (x1, y1)."""
        return MockArea(area_id, (x0, y0, z), (x1, y1, z), z, z, **kwargs)

    def generate_grid(
        self,
        nx: int,
        ny: int,
        cell_size: float = 100.0,
        origin: Tuple[float, float] = (0.0, 0.0),
        max_height: float = 0.0,
        first_id: int = 1,
    ) -> List[MockArea]:
        """
        Generate an nx by ny grid of connected areas.

        Corner heights come from a shared random height field, so
        neighbouring areas agree along their common edges. With
        max_height == 0 the grid is flat at z = 0.

        Args:
            nx: Number of areas along x
            ny: Number of areas along y
            cell_size: Edge length of each area
            origin: World position of the grid's minimum corner
            max_height: Upper bound for corner heights
            first_id: Id of the first area; ids increase row by row
        """
        heights = self.rng.uniform(0.0, max_height, size=(nx + 1, ny + 1)) if max_height > 0 \
            else np.zeros((nx + 1, ny + 1))

        def area_id(ix: int, iy: int) -> int:
            return first_id + iy * nx + ix

        areas = []
        for iy in range(ny):
            for ix in range(nx):
                x0 = origin[0] + ix * cell_size
                y0 = origin[1] + iy * cell_size
                connections: Dict[int, List[int]] = {}
                # North is -y, matching the NW/SE corner convention
                if iy > 0:
                    connections[0] = [area_id(ix, iy - 1)]
                if ix < nx - 1:
                    connections[1] = [area_id(ix + 1, iy)]
                if iy < ny - 1:
                    connections[2] = [area_id(ix, iy + 1)]
                if ix > 0:
                    connections[3] = [area_id(ix - 1, iy)]
                areas.append(MockArea(
                    id=area_id(ix, iy),
                    north_west=(x0, y0, float(heights[ix, iy])),
                    south_east=(x0 + cell_size, y0 + cell_size, float(heights[ix + 1, iy + 1])),
                    north_east_z=float(heights[ix + 1, iy]),
                    south_west_z=float(heights[ix, iy + 1]),
                    connections=connections,
                ))
        return areas

    # ------------------------
    # Encoding
    # ------------------------
    def encode(
        self,
        areas: Sequence[MockArea],
        ladders: Sequence[MockLadder] = (),
        places: Sequence[str] = (),
        bsp_size: int = 0,
        is_analyzed: bool = False,
        has_unnamed_areas: bool = False,
        magic: int = NAV_MAGIC,
        version: Optional[int] = None,
    ) -> bytes:
        """
        Encode a complete nav file.

        version overrides only the number written to the header, which
        lets tests produce files that claim an unsupported version.
        """
        layout = self.layout
        out = bytearray()
        out += struct.pack('<II', magic, self.version if version is None else version)
        if layout.has_sub_version:
            out += struct.pack('<I', self.sub_version)
        out += struct.pack('<I', bsp_size)
        if layout.has_analyzed_flag:
            out += struct.pack('<B', int(is_analyzed))

        out += struct.pack('<H', len(places))
        for name in places:
            raw = name.encode('utf-8') + b'\x00'
            out += struct.pack('<H', len(raw)) + raw

        if layout.has_unnamed_areas_flag:
            out += struct.pack('<B', int(has_unnamed_areas))

        out += struct.pack('<I', len(areas))
        for area in areas:
            out += self._encode_area(area)

        out += struct.pack('<I', len(ladders))
        for ladder in ladders:
            out += self._encode_ladder(ladder)
        return bytes(out)

    def _encode_area(self, area: MockArea) -> bytes:
        layout = self.layout
        out = bytearray()
        out += struct.pack('<I', area.id)
        out += struct.pack({1: '<B', 2: '<H', 4: '<I'}[layout.flags_size], area.flags)
        out += struct.pack('<3f', *area.north_west)
        out += struct.pack('<3f', *area.south_east)
        out += struct.pack('<2f', area.ne_z, area.sw_z)

        for direction in range(4):
            ids = area.connections.get(direction, [])
            out += struct.pack(f'<I{len(ids)}I', len(ids), *ids)

        out += struct.pack('<B', len(area.hiding_spots))
        for spot_id, position, flags in area.hiding_spots:
            out += struct.pack('<I3fB', spot_id, *position, flags)

        if layout.has_approach_areas:
            out += struct.pack('<B', len(area.approach_areas))
            for here, prev, prev_how, nxt, next_how in area.approach_areas:
                out += struct.pack('<IIBIB', here, prev, prev_how, nxt, next_how)

        out += struct.pack('<I', len(area.encounter_paths))
        for from_id, from_dir, to_id, to_dir, spots in area.encounter_paths:
            out += struct.pack('<IBIBB', from_id, from_dir, to_id, to_dir, len(spots))
            for spot_id, distance in spots:
                out += struct.pack('<IB', spot_id, distance)

        out += struct.pack('<H', area.place)

        for direction in range(2):
            ids = area.ladder_connections.get(direction, [])
            out += struct.pack(f'<I{len(ids)}I', len(ids), *ids)

        if layout.has_occupy_times:
            out += struct.pack('<2f', *area.earliest_occupy)
        if layout.has_light_intensity:
            out += struct.pack('<4f', *area.light_intensity)
        if layout.has_visibility:
            out += struct.pack('<I', len(area.visible_areas))
            for visible_id, attributes in area.visible_areas:
                out += struct.pack('<IB', visible_id, attributes)
            out += struct.pack('<I', area.inherit_visibility_from)

        out += area.custom_data
        return bytes(out)

    def _encode_ladder(self, ladder: MockLadder) -> bytes:
        out = bytearray()
        out += struct.pack('<If', ladder.id, ladder.width)
        out += struct.pack('<3f', *ladder.top)
        out += struct.pack('<3f', *ladder.bottom)
        out += struct.pack('<fI', ladder.length, ladder.direction)
        if self.layout.has_ladder_dangling_flag:
            out += struct.pack('<B', int(ladder.is_dangling))
        out += struct.pack('<5I', *ladder.area_ids)
        return bytes(out)
