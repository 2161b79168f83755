"""Tests for decoding nav files produced by the mock generator."""

import math
import struct

import pytest

from sourcenav.config import DecoderConfig
from sourcenav.errors import (
    CorruptCount,
    DanglingReference,
    DuplicateAreaId,
    InvalidGeometry,
    InvalidMagic,
    UnexpectedEof,
    UnsupportedVersion,
)
from sourcenav.geometry.vector import Vector3
from sourcenav.navmesh.area import LadderDirection, NavDirection
from sourcenav.parser.decoder import MAX_VERSION, MIN_VERSION, VersionLayout, decode
from sourcenav.parser.mock_generator import MockArea, MockLadder, MockNavGenerator

ALL_VERSIONS = list(range(MIN_VERSION, MAX_VERSION + 1))


def rich_area() -> MockArea:
    """An area using every optional block the layout allows."""
    return MockArea(
        id=10,
        north_west=(0.0, 0.0, 8.0),
        south_east=(64.0, 32.0, 16.0),
        north_east_z=12.0,
        south_west_z=4.0,
        flags=0x42,
        connections={1: [11]},
        hiding_spots=[(3, (16.0, 8.0, 9.5), 2)],
        approach_areas=[(11, 0, 1, 11, 2)],
        encounter_paths=[(11, 1, 11, 3, [(3, 128), (4, 255)])],
        place=1,
        ladder_connections={0: [500]},
        earliest_occupy=(5.5, 7.25),
        light_intensity=(0.5, 0.25, 1.0, 0.75),
        visible_areas=[(11, 1)],
        inherit_visibility_from=11,
        custom_data=b'\x01\x02\x03\x04',
    )


def rich_file(version: int) -> bytes:
    gen = MockNavGenerator(version=version, sub_version=2)
    areas = [
        rich_area(),
        MockNavGenerator.flat_area(11, 64.0, 0.0, 128.0, 32.0, z=16.0, connections={3: [10]}),
    ]
    ladders = [MockLadder(id=500, area_ids=(10, 0, 0, 0, 11), is_dangling=True)]
    return gen.encode(areas, ladders=ladders, places=["Spawn", "BombsiteA"],
                      bsp_size=123456, is_analyzed=True, has_unnamed_areas=True)


def test_grid_round_trip():
    gen = MockNavGenerator(version=16, seed=1)
    source = gen.generate_grid(4, 3, cell_size=50.0, max_height=100.0)
    mesh = decode(gen.encode(source))

    assert len(mesh) == 12
    assert [a.id for a in mesh] == [a.id for a in source]
    for expected in source:
        area = mesh.area(expected.id)
        nw = Vector3(*(float(struct.unpack('<f', struct.pack('<f', v))[0])
                       for v in expected.north_west))
        assert area.north_west == nw
        assert area.corners[2].x == expected.south_east[0]
        assert area.corners[2].y == expected.south_east[1]
        assert area.corners[1].z == pytest.approx(expected.ne_z, rel=1e-6)
        assert area.corners[3].z == pytest.approx(expected.sw_z, rel=1e-6)
        for direction, ids in expected.connections.items():
            assert area.connections[NavDirection(direction)] == tuple(ids)


@pytest.mark.parametrize("version", ALL_VERSIONS)
def test_version_gated_fields(version):
    mesh = decode(rich_file(version))
    layout = VersionLayout.for_version(version)
    area = mesh.area(10)

    assert mesh.version == version
    assert mesh.sub_version == (2 if layout.has_sub_version else 0)
    assert mesh.bsp_size == 123456
    assert mesh.is_analyzed is layout.has_analyzed_flag
    assert mesh.has_unnamed_areas is layout.has_unnamed_areas_flag
    assert mesh.places == ("Spawn", "BombsiteA")
    assert mesh.place_name(area) == "Spawn"

    assert area.flags == 0x42
    assert [c.to_tuple() for c in area.corners] == [
        (0.0, 0.0, 8.0), (64.0, 0.0, 12.0), (64.0, 32.0, 16.0), (0.0, 32.0, 4.0),
    ]
    assert area.connections[NavDirection.EAST] == (11,)
    assert area.connections[NavDirection.NORTH] == ()
    assert area.ladder_connections[LadderDirection.UP] == (500,)
    assert area.hiding_spots[0].position == Vector3(16.0, 8.0, 9.5)
    assert area.hiding_spots[0].flags == 2
    path = area.encounter_paths[0]
    assert (path.from_area_id, path.to_area_id, path.to_direction) == (11, 11, 3)
    assert [s.spot_id for s in path.spots] == [3, 4]
    assert path.spots[1].parametric_distance == 1.0
    assert area.custom_data == b'\x01\x02\x03\x04'

    if layout.has_approach_areas:
        assert len(area.approach_areas) == 1
        assert area.approach_areas[0].here == 11
    else:
        assert area.approach_areas == ()

    if layout.has_occupy_times:
        assert area.earliest_occupy == (5.5, 7.25)
    else:
        assert area.earliest_occupy == (0.0, 0.0)

    if layout.has_light_intensity:
        assert area.light_intensity.north_west == 0.5
        assert area.light_intensity.south_west == 0.75
    else:
        assert area.light_intensity.north_west == 1.0

    if layout.has_visibility:
        assert area.visible_areas[0].area_id == 11
        assert area.inherit_visibility_from == 11
    else:
        assert area.visible_areas == ()
        assert area.inherit_visibility_from == 0

    ladder = mesh.ladder(500)
    assert ladder.bottom_area_id == 11
    assert ladder.connected_area_ids() == (10, 11)
    assert ladder.is_dangling is layout.has_ladder_dangling_flag


@pytest.mark.parametrize("version,flags_size", [(6, 1), (8, 1), (9, 2), (12, 2), (13, 4), (16, 4)])
def test_flag_width_by_version(version, flags_size):
    assert VersionLayout.for_version(version).flags_size == flags_size


def test_invalid_magic():
    data = MockNavGenerator().encode([], magic=0xDEADBEEF)
    with pytest.raises(InvalidMagic) as exc:
        decode(data)
    assert exc.value.magic == 0xDEADBEEF
    assert exc.value.offset == 0


@pytest.mark.parametrize("version", [0, 5, 17, 0xFFFFFFFF])
def test_unsupported_version(version):
    data = MockNavGenerator(version=16).encode([], version=version)
    with pytest.raises(UnsupportedVersion) as exc:
        decode(data)
    assert exc.value.version == version


def test_empty_buffer():
    with pytest.raises(UnexpectedEof):
        decode(b'')


@pytest.mark.parametrize("version", [6, 11, 16])
def test_truncation_at_every_offset(version):
    data = rich_file(version)
    for cut in range(len(data)):
        with pytest.raises(UnexpectedEof):
            decode(data[:cut])


def test_trailing_bytes_are_tolerated():
    mesh = decode(rich_file(16) + b'\x00' * 7)
    assert len(mesh) == 2


def test_dangling_connection():
    gen = MockNavGenerator()
    areas = [
        gen.flat_area(1, 0, 0, 10, 10, connections={0: [2]}),
        gen.flat_area(2, 10, 0, 20, 10, connections={2: [99]}),
    ]
    with pytest.raises(DanglingReference) as exc:
        decode(gen.encode(areas))
    assert exc.value.kind == "connection"
    assert exc.value.source_id == 2
    assert exc.value.target_id == 99
    assert exc.value.offset is not None


def test_dangling_ladder_connection():
    gen = MockNavGenerator()
    areas = [gen.flat_area(1, 0, 0, 10, 10, ladder_connections={1: [7]})]
    with pytest.raises(DanglingReference) as exc:
        decode(gen.encode(areas))
    assert exc.value.kind == "ladder connection"


def test_dangling_place_index():
    gen = MockNavGenerator()
    areas = [gen.flat_area(1, 0, 0, 10, 10, place=3)]
    with pytest.raises(DanglingReference):
        decode(gen.encode(areas, places=["Only"]))


def test_metadata_references_strict_and_lenient():
    gen = MockNavGenerator()
    areas = [gen.flat_area(1, 0, 0, 10, 10, encounter_paths=[(1, 0, 42, 2, [])])]
    data = gen.encode(areas)

    with pytest.raises(DanglingReference) as exc:
        decode(data)
    assert exc.value.kind == "encounter path"

    mesh = decode(data, DecoderConfig(strict_metadata_references=False))
    assert mesh.area(1).encounter_paths[0].to_area_id == 42


def test_ladder_area_reference_checked():
    gen = MockNavGenerator()
    areas = [gen.flat_area(1, 0, 0, 10, 10)]
    ladders = [MockLadder(id=5, area_ids=(1, 0, 0, 0, 77))]
    with pytest.raises(DanglingReference):
        decode(gen.encode(areas, ladders=ladders))


def test_duplicate_area_id():
    gen = MockNavGenerator()
    areas = [gen.flat_area(1, 0, 0, 10, 10), gen.flat_area(1, 10, 0, 20, 10)]
    with pytest.raises(DuplicateAreaId) as exc:
        decode(gen.encode(areas))
    assert exc.value.area_id == 1


def test_duplicate_ladder_id():
    gen = MockNavGenerator()
    ladders = [MockLadder(id=5), MockLadder(id=5)]
    with pytest.raises(DuplicateAreaId) as exc:
        decode(gen.encode([], ladders=ladders))
    assert exc.value.kind == "ladder"


def test_corrupt_area_count():
    gen = MockNavGenerator()
    data = bytearray(gen.encode([gen.flat_area(1, 0, 0, 10, 10)]))
    # v16 header: magic, version, sub-version, bsp size, analyzed, place count, unnamed flag
    count_offset = 4 + 4 + 4 + 4 + 1 + 2 + 1
    struct.pack_into('<I', data, count_offset, 0xFFFFFFFF)
    with pytest.raises(CorruptCount) as exc:
        decode(bytes(data))
    assert exc.value.what == "area"
    assert exc.value.offset == count_offset


def test_connection_count_over_limit():
    gen = MockNavGenerator()
    areas = [
        gen.flat_area(1, 0, 0, 10, 10, connections={0: [2] * 5}),
        gen.flat_area(2, 10, 0, 20, 10),
    ]
    with pytest.raises(CorruptCount):
        decode(gen.encode(areas), DecoderConfig(max_connections=4))


def test_non_finite_corner_rejected():
    gen = MockNavGenerator()
    area = MockArea(1, (math.nan, 0.0, 0.0), (10.0, 10.0, 0.0))
    with pytest.raises(InvalidGeometry) as exc:
        decode(gen.encode([area]))
    assert exc.value.area_id == 1
    assert exc.value.offset is not None


def test_custom_data_size_is_configurable():
    gen = MockNavGenerator()
    areas = [gen.flat_area(1, 0, 0, 10, 10, custom_data=b'')]
    mesh = decode(gen.encode(areas), DecoderConfig(area_custom_data_size=0))
    assert mesh.area(1).custom_data == b''


def test_empty_mesh():
    mesh = decode(MockNavGenerator().encode([]))
    assert len(mesh) == 0
    assert mesh.bounds is None
