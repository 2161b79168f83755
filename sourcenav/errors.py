"""Exceptions raised while decoding or querying a nav mesh."""

from __future__ import annotations
from typing import Optional


class NavError(Exception):
    """Base class for every error raised by sourcenav."""


class DecodeError(NavError):
    """The byte buffer is not a valid nav file. The decode is abandoned."""

    def __init__(self, message: str, offset: Optional[int] = None):
        self.offset = offset
        if offset is not None:
            message = f"{message} (at byte offset {offset})"
        super().__init__(message)


class InvalidMagic(DecodeError):
    def __init__(self, magic: int, offset: Optional[int] = 0):
        self.magic = magic
        super().__init__(
            f"Invalid magic number ({magic:#010X}), not a nav file or corrupted",
            offset,
        )


class UnsupportedVersion(DecodeError):
    def __init__(self, version: int, offset: Optional[int] = None):
        self.version = version
        super().__init__(f"The nav version ({version}) is not supported", offset)


class UnexpectedEof(DecodeError):
    """Fewer bytes remain than the next field needs."""

    def __init__(self, offset: int, needed: int, available: int):
        self.needed = needed
        self.available = available
        super().__init__(
            f"Unexpected end of data: needed {needed} bytes, {available} available",
            offset,
        )


class CorruptCount(DecodeError):
    """A length prefix exceeds its sanity limit or the bytes left to read."""

    def __init__(self, what: str, count: int, limit: int, offset: Optional[int] = None):
        self.what = what
        self.count = count
        self.limit = limit
        super().__init__(f"Corrupt {what} count {count} (limit {limit})", offset)


class DanglingReference(DecodeError):
    """A connection or metadata record names an id that does not exist."""

    def __init__(self, kind: str, source_id: int, target_id: int,
                 offset: Optional[int] = None):
        self.kind = kind
        self.source_id = source_id
        self.target_id = target_id
        super().__init__(
            f"{kind} from {source_id} references unknown id {target_id}",
            offset,
        )


class DuplicateAreaId(DecodeError):
    def __init__(self, area_id: int, offset: Optional[int] = None, kind: str = "area"):
        self.area_id = area_id
        self.kind = kind
        super().__init__(f"Duplicate {kind} id {area_id}", offset)


class InvalidGeometry(DecodeError):
    """An area outline cannot form a polygon (e.g. fewer than 3 corners)."""

    def __init__(self, message: str, area_id: Optional[int] = None,
                 offset: Optional[int] = None):
        self.reason = message
        self.area_id = area_id
        if area_id is not None:
            message = f"Area {area_id}: {message}"
        super().__init__(message, offset)


class NavLookupError(NavError, LookupError):
    """Post-decode lookup of an id that is not in the mesh."""


class AreaNotFound(NavLookupError):
    def __init__(self, area_id: int):
        self.area_id = area_id
        super().__init__(f"No area with id {area_id}")


class LadderNotFound(NavLookupError):
    def __init__(self, ladder_id: int):
        self.ladder_id = ladder_id
        super().__init__(f"No ladder with id {ladder_id}")
