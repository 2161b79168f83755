"""Immutable Vector3 value type for nav mesh positions."""

from __future__ import annotations
from typing import Iterator, Tuple


class Vector3:
    """3D position (x, y, z) as stored in a nav file, z pointing up."""

    __slots__ = ('x', 'y', 'z')

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        object.__setattr__(self, 'x', float(x))
        object.__setattr__(self, 'y', float(y))
        object.__setattr__(self, 'z', float(z))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"Vector3 is immutable, cannot set {name!r}")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"Vector3 is immutable, cannot delete {name!r}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector3):
            return NotImplemented
        # Positions come from f32 fields; compare exactly
        return self.to_tuple() == other.to_tuple()

    def __hash__(self) -> int:
        return hash(self.to_tuple())

    def __iter__(self) -> Iterator[float]:
        return iter(self.to_tuple())

    def __repr__(self) -> str:
        return f"Vector3(x={self.x}, y={self.y}, z={self.z})"

    def to_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)
