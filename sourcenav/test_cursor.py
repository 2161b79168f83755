"""Tests for the bounds-checked byte reader."""

import struct

import numpy as np
import pytest

from sourcenav.errors import CorruptCount, UnexpectedEof
from sourcenav.geometry.vector import Vector3
from sourcenav.parser.cursor import ByteCursor


def test_reads_fixed_width_values_in_order():
    data = struct.pack('<BHIQbhiqfd', 0xAB, 0xBEEF, 0xFEEDFACE, 2 ** 40,
                       -5, -300, -70000, -(2 ** 40), 1.5, -2.25)
    cur = ByteCursor(data)

    assert cur.read_u8() == 0xAB
    assert cur.read_u16() == 0xBEEF
    assert cur.read_u32() == 0xFEEDFACE
    assert cur.read_u64() == 2 ** 40
    assert cur.read_i8() == -5
    assert cur.read_i16() == -300
    assert cur.read_i32() == -70000
    assert cur.read_i64() == -(2 ** 40)
    assert cur.read_f32() == 1.5
    assert cur.read_f64() == -2.25
    assert cur.at_end
    assert cur.remaining == 0


def test_offset_advances_by_exact_width():
    cur = ByteCursor(bytes(16))
    cur.read_u8()
    assert cur.offset == 1
    cur.read_u16()
    assert cur.offset == 3
    cur.read_u32()
    assert cur.offset == 7
    cur.read_f64()
    assert cur.offset == 15
    assert cur.remaining == 1


def test_short_read_raises_and_keeps_offset():
    cur = ByteCursor(b'\x01\x02\x03')
    cur.read_u8()
    with pytest.raises(UnexpectedEof) as exc:
        cur.read_u32()
    assert exc.value.offset == 1
    assert exc.value.needed == 4
    assert exc.value.available == 2
    assert cur.offset == 1
    # The remaining bytes are still readable
    assert cur.read_u16() == 0x0302


def test_read_vector3():
    cur = ByteCursor(struct.pack('<3f', 1.0, -2.5, 300.0))
    assert cur.read_vector3() == Vector3(1.0, -2.5, 300.0)


def test_read_string_strips_terminator():
    raw = b'BombsiteA\x00'
    cur = ByteCursor(struct.pack('<H', len(raw)) + raw + b'\xff')
    assert cur.read_string() == 'BombsiteA'
    assert cur.remaining == 1


def test_truncated_string_restores_offset():
    cur = ByteCursor(struct.pack('<H', 10) + b'abc')
    with pytest.raises(UnexpectedEof):
        cur.read_string()
    assert cur.offset == 0


def test_read_bytes_returns_copy():
    source = bytearray(b'\x01\x02\x03\x04')
    cur = ByteCursor(source)
    chunk = cur.read_bytes(2)
    source[0] = 0xFF
    assert chunk == b'\x01\x02'
    assert isinstance(chunk, bytes)


def test_read_u32_array():
    cur = ByteCursor(struct.pack('<3I', 7, 8, 9))
    values = cur.read_u32_array(3)
    assert values.dtype == np.dtype('<u4')
    assert values.tolist() == [7, 8, 9]
    assert cur.at_end


def test_ensure_count_rejects_counts_over_limit():
    cur = ByteCursor(bytes(100))
    with pytest.raises(CorruptCount) as exc:
        cur.ensure_count(50, 1, 10, "connection")
    assert exc.value.count == 50
    assert exc.value.limit == 10


def test_ensure_count_rejects_counts_larger_than_buffer():
    cur = ByteCursor(bytes(8))
    with pytest.raises(UnexpectedEof):
        cur.ensure_count(3, 4, 1000, "connection")
    assert cur.ensure_count(2, 4, 1000, "connection") == 2


def test_skip_and_bounds():
    cur = ByteCursor(bytes(4))
    cur.skip(3)
    with pytest.raises(UnexpectedEof):
        cur.skip(2)
    with pytest.raises(ValueError):
        ByteCursor(bytes(4), offset=5)
