"""Entry points that turn nav file bytes into a query-ready mesh."""

from __future__ import annotations
import logging
import os
from typing import Optional, Tuple, Union

from .config import NavConfig
from .index.quadtree import SpatialIndex, build_spatial_index
from .navmesh.mesh import NavMesh
from .parser.cursor import BytesLike
from .parser.decoder import decode

logger = logging.getLogger(__name__)


def load(data: BytesLike, config: Optional[NavConfig] = None) -> Tuple[NavMesh, SpatialIndex]:
    """
    Decode a nav file and build its spatial index.

    Returns both the raw mesh, for callers that need areas and
    connections, and the index used for height queries.
    """
    config = config or NavConfig()
    mesh = decode(data, config.decoder)
    index = build_spatial_index(mesh, config.index, config.query)
    logger.info(f"Loaded nav v{mesh.version}: {len(mesh)} areas, "
                f"{index.leaf_count()} index leaves")
    return mesh, index


class NavLoader:
    """Load nav files from disk."""

    @staticmethod
    def read_file(filepath: Union[str, os.PathLike]) -> bytes:
        with open(filepath, 'rb') as f:
            return f.read()

    @staticmethod
    def load_file(
        filepath: Union[str, os.PathLike],
        config: Optional[NavConfig] = None
    ) -> Tuple[NavMesh, SpatialIndex]:
        """
        Read a nav file and return (mesh, index).

        Args:
            filepath: Path to the .nav file
            config: Decoder, index and query settings

        Returns:
            Tuple of (NavMesh, SpatialIndex)
        """
        data = NavLoader.read_file(filepath)
        logger.info(f"Read {len(data)} bytes from {filepath}")
        return load(data, config)

    @staticmethod
    def decode_file(
        filepath: Union[str, os.PathLike],
        config: Optional[NavConfig] = None
    ) -> NavMesh:
        """Read and decode a nav file without building the index."""
        config = config or NavConfig()
        return decode(NavLoader.read_file(filepath), config.decoder)
