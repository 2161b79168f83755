#!/usr/bin/env python3
"""
Command line access to nav files.

Usage:
    python -m sourcenav.main info path/to/map.nav
    python -m sourcenav.main height path/to/map.nav 1600 -1300 --hint 400
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import PRESETS, NavConfig
from .errors import NavError
from .loader import NavLoader

logger = logging.getLogger(__name__)


def print_header(text: str) -> None:
    """Print a section header."""
    print()
    print("=" * 60)
    print(f"  {text}")
    print("=" * 60)


def cmd_info(args: argparse.Namespace, config: NavConfig) -> int:
    mesh, index = NavLoader.load_file(args.path, config)

    print_header(f"Nav file: {args.path}")
    print(f"  Version:      {mesh.version}.{mesh.sub_version}")
    print(f"  BSP size:     {mesh.bsp_size}")
    print(f"  Analyzed:     {mesh.is_analyzed}")
    print(f"  Areas:        {len(mesh)}")
    print(f"  Ladders:      {len(mesh.ladders)}")
    print(f"  Places:       {len(mesh.places)}")
    if mesh.bounds is not None:
        b = mesh.bounds
        print(f"  Bounds:       ({b.min_x:.1f}, {b.min_y:.1f}) to ({b.max_x:.1f}, {b.max_y:.1f})")
    print(f"  Index leaves: {index.leaf_count()} (depth {index.depth()})")

    if args.places and mesh.places:
        print_header("Places")
        for i, name in enumerate(mesh.places, start=1):
            print(f"  {i:4d}  {name}")
    return 0


def cmd_height(args: argparse.Namespace, config: NavConfig) -> int:
    _, index = NavLoader.load_file(args.path, config)

    if args.all:
        heights = index.find_z_heights(args.x, args.y)
        if not heights:
            print("no match")
            return 1
        for z in heights:
            print(f"{z:.4f}")
        return 0

    z = index.find_best_height(args.x, args.y, args.hint)
    if z is None:
        print("no match")
        return 1
    print(f"{z:.4f}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Inspect nav mesh files and query ground heights"
    )
    parser.add_argument(
        "--preset",
        choices=list(PRESETS.keys()),
        default="default",
        help="Configuration preset (default: default)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    info = sub.add_parser("info", help="Print a summary of a nav file")
    info.add_argument("path", help="Path to the .nav file")
    info.add_argument("--places", action="store_true", help="List place names")
    info.set_defaults(func=cmd_info)

    height = sub.add_parser("height", help="Ground height at an x/y position")
    height.add_argument("path", help="Path to the .nav file")
    height.add_argument("x", type=float)
    height.add_argument("y", type=float)
    height.add_argument(
        "--hint",
        type=float,
        default=0.0,
        help="Approximate z used to choose between stacked surfaces (default: 0)"
    )
    height.add_argument("--all", action="store_true", help="Print every surface height")
    height.set_defaults(func=cmd_height)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s"
    )

    config = PRESETS[args.preset]
    try:
        return args.func(args, config)
    except NavError as e:
        logger.error(f"Failed to read {args.path}: {e}")
        return 2
    except OSError as e:
        logger.error(f"Cannot open {args.path}: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
