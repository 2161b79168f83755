"""The decoded navigation mesh: areas, ladders and place names."""

from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Sequence, Tuple

from ..errors import AreaNotFound, LadderNotFound
from ..geometry.polygon import Bounds2D
from ..geometry.vector import Vector3
from .area import Area


@dataclass(frozen=True)
class Ladder:
    """A ladder and the areas at either end of it (0 means no area)."""
    id: int
    width: float
    top: Vector3
    bottom: Vector3
    length: float
    direction: int
    top_forward_area_id: int = 0
    top_left_area_id: int = 0
    top_right_area_id: int = 0
    top_behind_area_id: int = 0
    bottom_area_id: int = 0
    is_dangling: bool = False

    def connected_area_ids(self) -> Tuple[int, ...]:
        """Non-zero area ids linked to this ladder."""
        ids = (
            self.top_forward_area_id,
            self.top_left_area_id,
            self.top_right_area_id,
            self.top_behind_area_id,
            self.bottom_area_id,
        )
        return tuple(i for i in ids if i != 0)


class NavMesh:
    """
    Immutable collection of areas indexed by id.

    Iteration follows file order; lookups go through the id mapping.
    """

    def __init__(
        self,
        areas: Iterable[Area],
        version: int,
        sub_version: int = 0,
        bsp_size: int = 0,
        is_analyzed: bool = False,
        has_unnamed_areas: bool = False,
        places: Sequence[str] = (),
        ladders: Iterable[Ladder] = (),
    ):
        self.version = version
        self.sub_version = sub_version
        self.bsp_size = bsp_size
        self.is_analyzed = is_analyzed
        self.has_unnamed_areas = has_unnamed_areas
        self.places: Tuple[str, ...] = tuple(places)

        area_map: Dict[int, Area] = {}
        for area in areas:
            if area.id in area_map:
                raise ValueError(f"duplicate area id {area.id}")
            area_map[area.id] = area
        self._areas = MappingProxyType(area_map)

        ladder_map: Dict[int, Ladder] = {}
        for ladder in ladders:
            if ladder.id in ladder_map:
                raise ValueError(f"duplicate ladder id {ladder.id}")
            ladder_map[ladder.id] = ladder
        self._ladders = MappingProxyType(ladder_map)

        self._bounds = Bounds2D.union_all(a.bounds for a in area_map.values())

    @property
    def areas(self) -> Mapping[int, Area]:
        """Read-only mapping of area id to Area, in file order."""
        return self._areas

    @property
    def ladders(self) -> Mapping[int, Ladder]:
        return self._ladders

    @property
    def bounds(self) -> Optional[Bounds2D]:
        """Union of all area footprints; None for an empty mesh."""
        return self._bounds

    def area(self, area_id: int) -> Area:
        try:
            return self._areas[area_id]
        except KeyError:
            raise AreaNotFound(area_id) from None

    def get_area(self, area_id: int, default: Optional[Area] = None) -> Optional[Area]:
        return self._areas.get(area_id, default)

    def ladder(self, ladder_id: int) -> Ladder:
        try:
            return self._ladders[ladder_id]
        except KeyError:
            raise LadderNotFound(ladder_id) from None

    def place_name(self, area: Area) -> Optional[str]:
        """Name of the place an area belongs to, or None if unnamed."""
        if area.place == 0 or area.place > len(self.places):
            return None
        return self.places[area.place - 1]

    def neighbours(self, area_id: int) -> Iterator[Area]:
        """Areas directly connected from the given area."""
        for target in self.area(area_id).connected_area_ids():
            yield self.area(target)

    def __contains__(self, area_id: object) -> bool:
        return area_id in self._areas

    def __len__(self) -> int:
        return len(self._areas)

    def __iter__(self) -> Iterator[Area]:
        return iter(self._areas.values())

    def __repr__(self) -> str:
        return (f"NavMesh(version={self.version}.{self.sub_version}, "
                f"{len(self._areas)} areas, {len(self._ladders)} ladders)")
