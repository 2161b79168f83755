"""Bounds-checked little-endian reader over an in-memory nav file."""

from __future__ import annotations
import struct
from typing import Optional, Union

import numpy as np

from ..errors import CorruptCount, UnexpectedEof
from ..geometry.vector import Vector3

BytesLike = Union[bytes, bytearray, memoryview]

_U8 = struct.Struct('<B')
_U16 = struct.Struct('<H')
_U32 = struct.Struct('<I')
_U64 = struct.Struct('<Q')
_I8 = struct.Struct('<b')
_I16 = struct.Struct('<h')
_I32 = struct.Struct('<i')
_I64 = struct.Struct('<q')
_F32 = struct.Struct('<f')
_F64 = struct.Struct('<d')
_VEC3 = struct.Struct('<3f')


class ByteCursor:
    """
    Sequential reader over an immutable byte buffer.

    Every read either consumes exactly the width of the field or raises
    UnexpectedEof and leaves the offset where it was. The buffer itself is
    never copied or modified.
    """

    __slots__ = ('_data', '_offset')

    def __init__(self, data: BytesLike, offset: int = 0):
        self._data = memoryview(data).cast('B')
        if not 0 <= offset <= len(self._data):
            raise ValueError(f"offset {offset} outside buffer of {len(self._data)} bytes")
        self._offset = offset

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    @property
    def at_end(self) -> bool:
        return self._offset >= len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def _require(self, size: int) -> int:
        """Check that size bytes are available; return the current offset."""
        start = self._offset
        if size > len(self._data) - start:
            raise UnexpectedEof(start, size, len(self._data) - start)
        return start

    def _unpack(self, fmt: struct.Struct):
        start = self._require(fmt.size)
        value = fmt.unpack_from(self._data, start)[0]
        self._offset = start + fmt.size
        return value

    def read_u8(self) -> int:
        return self._unpack(_U8)

    def read_u16(self) -> int:
        return self._unpack(_U16)

    def read_u32(self) -> int:
        return self._unpack(_U32)

    def read_u64(self) -> int:
        return self._unpack(_U64)

    def read_i8(self) -> int:
        return self._unpack(_I8)

    def read_i16(self) -> int:
        return self._unpack(_I16)

    def read_i32(self) -> int:
        return self._unpack(_I32)

    def read_i64(self) -> int:
        return self._unpack(_I64)

    def read_f32(self) -> float:
        return self._unpack(_F32)

    def read_f64(self) -> float:
        return self._unpack(_F64)

    def read_bool(self) -> bool:
        return self.read_u8() != 0

    def read_vector3(self) -> Vector3:
        """Read three consecutive f32 values as a Vector3."""
        start = self._require(_VEC3.size)
        x, y, z = _VEC3.unpack_from(self._data, start)
        self._offset = start + _VEC3.size
        return Vector3(x, y, z)

    def read_bytes(self, size: int) -> bytes:
        """Read size raw bytes as an owned copy."""
        if size < 0:
            raise ValueError(f"cannot read a negative number of bytes ({size})")
        start = self._require(size)
        self._offset = start + size
        return bytes(self._data[start:start + size])

    def skip(self, size: int) -> None:
        start = self._require(size)
        self._offset = start + size

    def read_string(self) -> str:
        """
        Read a string prefixed by its u16 byte length.

        Nav files store the C terminator inside the counted bytes, so
        trailing NULs are stripped from the decoded text.
        """
        start = self._offset
        length = self.read_u16()
        try:
            raw = self.read_bytes(length)
        except UnexpectedEof:
            self._offset = start
            raise
        return raw.rstrip(b'\x00').decode('utf-8', errors='replace')

    def read_u32_array(self, count: int) -> np.ndarray:
        """Read count u32 values into an owned numpy array."""
        if count == 0:
            return np.empty(0, dtype='<u4')
        size = count * _U32.size
        start = self._require(size)
        values = np.frombuffer(self._data, dtype='<u4', count=count, offset=start).copy()
        self._offset = start + size
        return values

    def ensure_count(self, count: int, item_size: int, limit: int, what: str,
                     offset: Optional[int] = None) -> int:
        """
        Validate a count prefix before anything is allocated for it.

        Raises CorruptCount when count exceeds limit, and UnexpectedEof
        when the remaining bytes cannot possibly hold count items of at
        least item_size bytes each.
        """
        where = self._offset if offset is None else offset
        if count > limit:
            raise CorruptCount(what, count, limit, where)
        needed = count * item_size
        if needed > self.remaining:
            raise UnexpectedEof(self._offset, needed, self.remaining)
        return count

    def __repr__(self) -> str:
        return f"ByteCursor(offset={self._offset}, remaining={self.remaining})"
