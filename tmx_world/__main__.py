#!/usr/bin/env python3

"""
TMX World - load an island map and inspect its collision

Usage:
    python -m tmx_world <map.tmx> [--ascii] [--ticks N] [--verbose]
"""

import argparse
import logging
import sys
from pathlib import Path

from tmx_reader import TmxError, summarize_tilesets

from . import config
from .world import World


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tmx_world",
        description="Load an island map and inspect its collision"
    )
    parser.add_argument(
        "map",
        help="TMX map file"
    )
    parser.add_argument(
        "--ascii",
        action="store_true",
        help="Print the collision index, one character per tile ('#' blocked, '.' open)"
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=0,
        metavar="N",
        help="Spawn the default population and simulate N ticks"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show debug logging"
    )
    return parser


def main(argv=None):
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(message)s'
    )

    source_path = args.map
    if not Path(source_path).exists():
        print(f"Error: File '{source_path}' not found")
        return 1

    try:
        world = World.from_file(source_path)
    except (TmxError, OSError) as e:
        print(f"Error: {e}")
        return 1

    document = world.document
    print(f"\n=== {source_path} ===")
    print(f"Size: {document.width}x{document.height} tiles "
          f"({document.pixel_width}x{document.pixel_height} px)")
    print("Tilesets:")
    for line in summarize_tilesets(document.tilesets):
        print(f"  {line}")
    print("Layers: " + ", ".join(layer.name for layer in document.layers))

    stats = world.collision.get_stats()
    print(f"Blocked: {stats['solid_tiles']}/{stats['total_tiles']} "
          f"({stats['solid_percent']:.1f}%)")

    if args.ascii:
        print(world.collision.to_ascii())

    if args.ticks > 0:
        world.spawn_default_population()
        for _ in range(args.ticks):
            world.step(config.TICK_SECONDS)
        for character in world.entities.characters:
            print(f"  {character.name}: ({character.x:.1f}, {character.y:.1f}) "
                  f"facing {character.facing.name.lower()}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
