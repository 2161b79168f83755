"""Decode navigation mesh files and look up ground heights on them."""

from .config import NavConfig, DecoderConfig, IndexConfig, QueryConfig, PRESETS
from .errors import (
    NavError,
    DecodeError,
    InvalidMagic,
    UnsupportedVersion,
    UnexpectedEof,
    CorruptCount,
    DanglingReference,
    DuplicateAreaId,
    InvalidGeometry,
    NavLookupError,
    AreaNotFound,
    LadderNotFound,
)
from .geometry import Vector3, Bounds2D
from .navmesh import (
    Area,
    NavMesh,
    Ladder,
    NavDirection,
    LadderDirection,
    HidingSpot,
    ApproachArea,
    EncounterPath,
    EncounterSpot,
    VisibleArea,
    LightIntensity,
)
from .parser import ByteCursor, MeshDecoder, decode
from .index import SpatialIndex, HeightQuery, build_spatial_index
from .loader import NavLoader, load

__version__ = "0.1.0"
