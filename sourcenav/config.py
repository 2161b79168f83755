"""
Configuration for nav mesh decoding and height queries.

Centralized limits and tuning knobs that can be swapped per use case.
"""

from dataclasses import dataclass, field

from .geometry.polygon import DEFAULT_EPSILON


@dataclass
class DecoderConfig:
    """Decoder sanity limits and layout options.

    Every count prefix in the file is checked against these limits before
    anything is allocated, so a corrupt or hostile file fails fast with
    CorruptCount instead of exhausting memory.
    """
    max_areas: int = 1_000_000
    max_places: int = 65_535
    max_connections: int = 4_096  # per direction
    max_ladder_connections: int = 1_024  # per direction
    max_encounter_paths: int = 65_536
    max_visible_areas: int = 1_000_000
    max_ladders: int = 100_000
    # TF2 appends 4 bytes of game attributes to every area
    area_custom_data_size: int = 4
    # Validate non-zero area ids in approach areas, encounter paths,
    # visibility lists and ladders, not only in connections
    strict_metadata_references: bool = True


@dataclass
class IndexConfig:
    """Quad-tree construction parameters."""
    leaf_capacity: int = 8  # areas per leaf before splitting
    max_depth: int = 12  # stop splitting here regardless of capacity
    bounds_padding: float = 1.0  # margin around the mesh bounds


@dataclass
class QueryConfig:
    """Height query tolerances."""
    epsilon: float = DEFAULT_EPSILON  # boundary tolerance in world units


@dataclass
class NavConfig:
    """Complete configuration."""
    decoder: DecoderConfig = field(default_factory=DecoderConfig)
    index: IndexConfig = field(default_factory=IndexConfig)
    query: QueryConfig = field(default_factory=QueryConfig)


# Preset configurations
PRESETS = {
    "default": NavConfig(),
    "strict": NavConfig(
        decoder=DecoderConfig(
            max_areas=200_000,
            max_connections=256,
            max_encounter_paths=4_096,
        ),
    ),
    "lenient": NavConfig(
        decoder=DecoderConfig(strict_metadata_references=False),
    ),
    "fine": NavConfig(
        index=IndexConfig(leaf_capacity=4, max_depth=16),
    ),
}
