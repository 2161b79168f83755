"""
Decoder for binary nav mesh files.

Layout overview (little-endian throughout):
- u32 magic (0xFEEDFACE), u32 version, u32 sub-version (v >= 10)
- u32 BSP size, u8 analyzed flag (v >= 14)
- u16 place count + length-prefixed place names
- u8 has-unnamed-areas flag (v >= 12)
- u32 area count + area records
- u32 ladder count + ladder records

Which optional fields an area record carries depends on the version. All
of that gating lives in VersionLayout so each version can be checked in
isolation.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..config import DecoderConfig
from ..errors import (
    DanglingReference,
    DuplicateAreaId,
    InvalidGeometry,
    InvalidMagic,
    UnsupportedVersion,
)
from ..navmesh.area import (
    ApproachArea,
    Area,
    EncounterPath,
    EncounterSpot,
    HidingSpot,
    LadderDirection,
    LightIntensity,
    NavDirection,
    VisibleArea,
)
from ..navmesh.mesh import Ladder, NavMesh
from .cursor import ByteCursor, BytesLike

logger = logging.getLogger(__name__)

NAV_MAGIC = 0xFEEDFACE
MIN_VERSION = 6
MAX_VERSION = 16

# Fixed record sizes in bytes, used to bound counts against the buffer
CONNECTION_SIZE = 4
HIDING_SPOT_SIZE = 4 + 12 + 1
APPROACH_AREA_SIZE = 4 + 4 + 1 + 4 + 1
ENCOUNTER_PATH_MIN_SIZE = 4 + 1 + 4 + 1 + 1
ENCOUNTER_SPOT_SIZE = 4 + 1
VISIBLE_AREA_SIZE = 4 + 1
PLACE_MIN_SIZE = 2


@dataclass(frozen=True)
class VersionLayout:
    """Which optional fields a given file version carries."""
    version: int
    has_sub_version: bool
    has_analyzed_flag: bool
    has_unnamed_areas_flag: bool
    flags_size: int
    has_approach_areas: bool
    has_occupy_times: bool
    has_light_intensity: bool
    has_visibility: bool
    has_ladder_dangling_flag: bool

    @classmethod
    def for_version(cls, version: int) -> VersionLayout:
        """Layout for a supported version; anything else is rejected."""
        if not MIN_VERSION <= version <= MAX_VERSION:
            raise UnsupportedVersion(version, offset=4)
        if version <= 8:
            flags_size = 1
        elif version <= 12:
            flags_size = 2
        else:
            flags_size = 4
        return cls(
            version=version,
            has_sub_version=version >= 10,
            has_analyzed_flag=version >= 14,
            has_unnamed_areas_flag=version >= 12,
            flags_size=flags_size,
            has_approach_areas=version < 15,
            has_occupy_times=version >= 8,
            has_light_intensity=version >= 11,
            has_visibility=version >= 16,
            has_ladder_dangling_flag=version == 6,
        )

    def min_area_size(self, custom_data_size: int) -> int:
        """Smallest possible area record: every list empty."""
        size = 4 + self.flags_size + 12 + 12 + 4 + 4
        size += 4 * 4  # connection counts
        size += 1  # hiding spot count
        if self.has_approach_areas:
            size += 1
        size += 4  # encounter path count
        size += 2  # place
        size += 2 * 4  # ladder connection counts
        if self.has_occupy_times:
            size += 8
        if self.has_light_intensity:
            size += 16
        if self.has_visibility:
            size += 4 + 4
        return size + custom_data_size

    @property
    def ladder_size(self) -> int:
        size = 4 + 4 + 12 + 12 + 4 + 4 + 5 * 4
        if self.has_ladder_dangling_flag:
            size += 1
        return size


class MeshDecoder:
    """
    Turns a nav file byte buffer into a NavMesh.

    A decoder instance is single-use: decode() reads the whole buffer,
    validates every cross reference and only then builds the mesh, so a
    failure never leaves a partially populated result behind.
    """

    def __init__(self, data: BytesLike, config: Optional[DecoderConfig] = None):
        self.cursor = ByteCursor(data)
        self.config = config or DecoderConfig()
        self.layout: Optional[VersionLayout] = None
        # area id -> byte offset of its record, for error reporting
        self._area_offsets: Dict[int, int] = {}
        self._ladder_offsets: Dict[int, int] = {}

    def decode(self) -> NavMesh:
        cur = self.cursor
        cfg = self.config

        magic = cur.read_u32()
        if magic != NAV_MAGIC:
            raise InvalidMagic(magic, offset=0)

        version = cur.read_u32()
        layout = VersionLayout.for_version(version)
        self.layout = layout

        sub_version = cur.read_u32() if layout.has_sub_version else 0
        bsp_size = cur.read_u32()
        is_analyzed = cur.read_bool() if layout.has_analyzed_flag else False

        places = self._read_places()

        has_unnamed_areas = cur.read_bool() if layout.has_unnamed_areas_flag else False

        count_offset = cur.offset
        area_count = cur.read_u32()
        cur.ensure_count(area_count, layout.min_area_size(cfg.area_custom_data_size),
                         cfg.max_areas, "area", count_offset)

        areas: List[Area] = []
        for _ in range(area_count):
            areas.append(self._read_area())

        ladders = self._read_ladders()

        if not cur.at_end:
            logger.debug(f"Ignoring {cur.remaining} trailing bytes after ladder table")

        self._validate(areas, ladders, places)

        logger.debug(
            f"Decoded nav v{version}.{sub_version}: {len(areas)} areas, "
            f"{len(ladders)} ladders, {len(places)} places"
        )
        return NavMesh(
            areas,
            version=version,
            sub_version=sub_version,
            bsp_size=bsp_size,
            is_analyzed=is_analyzed,
            has_unnamed_areas=has_unnamed_areas,
            places=places,
            ladders=ladders,
        )

    # ------------------------
    # Header tables
    # ------------------------
    def _read_places(self) -> Tuple[str, ...]:
        cur = self.cursor
        count_offset = cur.offset
        count = cur.read_u16()
        cur.ensure_count(count, PLACE_MIN_SIZE, self.config.max_places, "place", count_offset)
        return tuple(cur.read_string() for _ in range(count))

    # ------------------------
    # Area records
    # ------------------------
    def _read_area(self) -> Area:
        cur = self.cursor
        layout = self.layout
        cfg = self.config

        record_offset = cur.offset
        area_id = cur.read_u32()
        if area_id in self._area_offsets:
            raise DuplicateAreaId(area_id, record_offset)
        self._area_offsets[area_id] = record_offset

        if layout.flags_size == 1:
            flags = cur.read_u8()
        elif layout.flags_size == 2:
            flags = cur.read_u16()
        else:
            flags = cur.read_u32()

        north_west = cur.read_vector3()
        south_east = cur.read_vector3()
        north_east_z = cur.read_f32()
        south_west_z = cur.read_f32()

        connections = {
            direction: self._read_id_list(cfg.max_connections, "connection")
            for direction in NavDirection
        }

        hiding_spots = self._read_hiding_spots()
        approach_areas = self._read_approach_areas() if layout.has_approach_areas else ()
        encounter_paths = self._read_encounter_paths()

        place = cur.read_u16()

        ladder_connections = {
            direction: self._read_id_list(cfg.max_ladder_connections, "ladder connection")
            for direction in LadderDirection
        }

        if layout.has_occupy_times:
            earliest_occupy = (cur.read_f32(), cur.read_f32())
        else:
            earliest_occupy = (0.0, 0.0)

        if layout.has_light_intensity:
            light_intensity = LightIntensity(
                north_west=cur.read_f32(),
                north_east=cur.read_f32(),
                south_east=cur.read_f32(),
                south_west=cur.read_f32(),
            )
        else:
            light_intensity = LightIntensity()

        if layout.has_visibility:
            visible_areas = self._read_visible_areas()
            inherit_visibility_from = cur.read_u32()
        else:
            visible_areas = ()
            inherit_visibility_from = 0

        custom_data = cur.read_bytes(cfg.area_custom_data_size)

        try:
            return Area.from_extent(
                area_id,
                north_west,
                south_east,
                north_east_z,
                south_west_z,
                flags=flags,
                connections=connections,
                ladder_connections=ladder_connections,
                hiding_spots=hiding_spots,
                approach_areas=approach_areas,
                encounter_paths=encounter_paths,
                place=place,
                light_intensity=light_intensity,
                earliest_occupy=earliest_occupy,
                visible_areas=visible_areas,
                inherit_visibility_from=inherit_visibility_from,
                custom_data=custom_data,
            )
        except InvalidGeometry as e:
            raise InvalidGeometry(e.reason, area_id, record_offset) from e

    def _read_id_list(self, limit: int, what: str) -> Tuple[int, ...]:
        cur = self.cursor
        count_offset = cur.offset
        count = cur.read_u32()
        cur.ensure_count(count, CONNECTION_SIZE, limit, what, count_offset)
        return tuple(int(i) for i in cur.read_u32_array(count))

    def _read_hiding_spots(self) -> Tuple[HidingSpot, ...]:
        cur = self.cursor
        count = cur.read_u8()
        cur.ensure_count(count, HIDING_SPOT_SIZE, 255, "hiding spot")
        spots = []
        for _ in range(count):
            spot_id = cur.read_u32()
            position = cur.read_vector3()
            flags = cur.read_u8()
            spots.append(HidingSpot(spot_id, position, flags))
        return tuple(spots)

    def _read_approach_areas(self) -> Tuple[ApproachArea, ...]:
        cur = self.cursor
        count = cur.read_u8()
        cur.ensure_count(count, APPROACH_AREA_SIZE, 255, "approach area")
        approaches = []
        for _ in range(count):
            approaches.append(ApproachArea(
                here=cur.read_u32(),
                prev=cur.read_u32(),
                prev_to_here_how=cur.read_u8(),
                next=cur.read_u32(),
                here_to_next_how=cur.read_u8(),
            ))
        return tuple(approaches)

    def _read_encounter_paths(self) -> Tuple[EncounterPath, ...]:
        cur = self.cursor
        count_offset = cur.offset
        count = cur.read_u32()
        cur.ensure_count(count, ENCOUNTER_PATH_MIN_SIZE, self.config.max_encounter_paths,
                         "encounter path", count_offset)
        paths = []
        for _ in range(count):
            from_area_id = cur.read_u32()
            from_direction = cur.read_u8()
            to_area_id = cur.read_u32()
            to_direction = cur.read_u8()
            spot_count = cur.read_u8()
            cur.ensure_count(spot_count, ENCOUNTER_SPOT_SIZE, 255, "encounter spot")
            spots = tuple(
                EncounterSpot(spot_id=cur.read_u32(), distance=cur.read_u8())
                for _ in range(spot_count)
            )
            paths.append(EncounterPath(from_area_id, from_direction,
                                       to_area_id, to_direction, spots))
        return tuple(paths)

    def _read_visible_areas(self) -> Tuple[VisibleArea, ...]:
        cur = self.cursor
        count_offset = cur.offset
        count = cur.read_u32()
        cur.ensure_count(count, VISIBLE_AREA_SIZE, self.config.max_visible_areas,
                         "visible area", count_offset)
        return tuple(
            VisibleArea(area_id=cur.read_u32(), attributes=cur.read_u8())
            for _ in range(count)
        )

    # ------------------------
    # Ladders
    # ------------------------
    def _read_ladders(self) -> List[Ladder]:
        cur = self.cursor
        layout = self.layout
        count_offset = cur.offset
        count = cur.read_u32()
        cur.ensure_count(count, layout.ladder_size, self.config.max_ladders,
                         "ladder", count_offset)

        ladders: List[Ladder] = []
        seen: Dict[int, int] = {}
        for _ in range(count):
            record_offset = cur.offset
            ladder_id = cur.read_u32()
            if ladder_id in seen:
                raise DuplicateAreaId(ladder_id, record_offset, kind="ladder")
            seen[ladder_id] = record_offset
            width = cur.read_f32()
            top = cur.read_vector3()
            bottom = cur.read_vector3()
            length = cur.read_f32()
            direction = cur.read_u32()
            is_dangling = cur.read_bool() if layout.has_ladder_dangling_flag else False
            ladders.append(Ladder(
                id=ladder_id,
                width=width,
                top=top,
                bottom=bottom,
                length=length,
                direction=direction,
                top_forward_area_id=cur.read_u32(),
                top_left_area_id=cur.read_u32(),
                top_right_area_id=cur.read_u32(),
                top_behind_area_id=cur.read_u32(),
                bottom_area_id=cur.read_u32(),
                is_dangling=is_dangling,
            ))
        self._ladder_offsets = seen
        return ladders

    # ------------------------
    # Cross-reference checks
    # ------------------------
    def _validate(self, areas: List[Area], ladders: List[Ladder],
                  places: Tuple[str, ...]) -> None:
        known = self._area_offsets
        ladder_ids = {ladder.id for ladder in ladders}
        strict = self.config.strict_metadata_references

        def check(kind: str, source_id: int, target_id: int, offset: int,
                  allow_zero: bool = True) -> None:
            if allow_zero and target_id == 0:
                return
            if target_id not in known:
                raise DanglingReference(kind, source_id, target_id, offset)

        for area in areas:
            offset = known[area.id]
            for target in area.connected_area_ids():
                check("connection", area.id, target, offset, allow_zero=False)

            for direction in LadderDirection:
                for ladder_id in area.ladder_connections[direction]:
                    if ladder_id not in ladder_ids:
                        raise DanglingReference("ladder connection", area.id, ladder_id, offset)

            if area.place > len(places):
                raise DanglingReference("place", area.id, area.place, offset)

            if not strict:
                continue

            for approach in area.approach_areas:
                check("approach area", area.id, approach.here, offset)
                check("approach area", area.id, approach.prev, offset)
                check("approach area", area.id, approach.next, offset)
            for path in area.encounter_paths:
                check("encounter path", area.id, path.from_area_id, offset)
                check("encounter path", area.id, path.to_area_id, offset)
            for visible in area.visible_areas:
                check("visible area", area.id, visible.area_id, offset)
            check("visibility inheritance", area.id, area.inherit_visibility_from, offset)

        if strict:
            for ladder in ladders:
                offset = self._ladder_offsets[ladder.id]
                for target in ladder.connected_area_ids():
                    check("ladder", ladder.id, target, offset)


def decode(data: BytesLike, config: Optional[DecoderConfig] = None) -> NavMesh:
    """Decode a complete nav file held in memory."""
    return MeshDecoder(data, config).decode()
