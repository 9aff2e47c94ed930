"""
Movement resolution against the collision index

=============================================================================
WALL SLIDING
=============================================================================

Each tick an entity proposes a new centre position. The resolver checks the
entity's footprint at that position; if it overlaps a blocked tile the axes
are tried SEPARATELY, horizontal first:

    proposed (x', y')         free?  → (x', y')
    proposed x, previous y    free?  → (x', y)     slide horizontally
    previous x, proposed y    free?  → (x,  y')    slide vertically
    otherwise                        → (x,  y)     stay put

Moving diagonally into a vertical wall therefore keeps the vertical part of
the motion, and moving into a corner stops the entity. Trying X before Y
gives the same outcome every time along diagonal edges.

=============================================================================
DISCRETE TEST
=============================================================================

Only the DESTINATION rectangle is tested, never the path to it. At very
high speeds or low tick rates a thin wall could be skipped over.

=============================================================================
"""

import math
from dataclasses import dataclass
from typing import Tuple

from ..map.collision import CollisionIndex

Position = Tuple[float, float]


@dataclass(frozen=True)
class Footprint:
    """Half extents, in pixels, of an entity's collision rectangle."""
    half_width: float
    half_height: float

    def bounds(self, center: Position) -> Tuple[float, float, float, float]:
        """(left, top, right, bottom) of the rectangle around center."""
        cx, cy = center
        return (cx - self.half_width, cy - self.half_height,
                cx + self.half_width, cy + self.half_height)


class MovementResolver:
    """
    Corrects proposed positions so entities never enter blocked tiles.

    Holds only read-only state (the frozen index and the tile size), so one
    resolver can be shared by every entity.
    """

    def __init__(self, index: CollisionIndex, tile_width: int, tile_height: int):
        self.index = index
        # A zero tile size would divide by zero on every query
        self.tile_width = max(1, tile_width)
        self.tile_height = max(1, tile_height)

    def tile_range(self, center: Position, footprint: Footprint) -> Tuple[int, int, int, int]:
        """
        Inclusive tile range (x0, y0, x1, y1) covered by the footprint.

        Each edge is floor-divided by the tile size, so negative pixel
        coordinates map to negative tiles (-1 // 16 == -1).
        """
        left, top, right, bottom = footprint.bounds(center)
        return (math.floor(left / self.tile_width),
                math.floor(top / self.tile_height),
                math.floor(right / self.tile_width),
                math.floor(bottom / self.tile_height))

    def is_blocked(self, center: Position, footprint: Footprint) -> bool:
        """
        True if the footprint at center overlaps any blocked tile.

        A rectangle with a non-finite edge (inf, nan) covers no tile and is
        never blocked.
        """
        if not all(math.isfinite(edge) for edge in footprint.bounds(center)):
            return False
        return self.index.any_blocked(*self.tile_range(center, footprint))

    def resolve(self, previous: Position, proposed: Position,
                footprint: Footprint) -> Position:
        """
        Corrected position for a move from previous to proposed.

        Pure: no state changes, same inputs always give the same output.
        """
        if not self.is_blocked(proposed, footprint):
            return proposed

        px, py = previous
        nx, ny = proposed

        if not self.is_blocked((nx, py), footprint):
            return nx, py
        if not self.is_blocked((px, ny), footprint):
            return px, ny
        return previous


def resolve_movement(index: CollisionIndex, tile_width: int, tile_height: int,
                     previous: Position, proposed: Position,
                     footprint: Footprint) -> Position:
    """Function form of MovementResolver.resolve()."""
    return MovementResolver(index, tile_width, tile_height).resolve(
        previous, proposed, footprint)


def clamp_to_bounds(position: Position, footprint: Footprint,
                    width: float, height: float) -> Position:
    """
    Keep the footprint inside the world rectangle [0, width] x [0, height].

    Separate from collision: the index treats off-map tiles as open.
    A world smaller than the footprint pins the entity to the centre.
    """
    x, y = position
    min_x, max_x = footprint.half_width, width - footprint.half_width
    min_y, max_y = footprint.half_height, height - footprint.half_height

    x = width / 2 if min_x > max_x else min(max(x, min_x), max_x)
    y = height / 2 if min_y > max_y else min(max(y, min_y), max_y)
    return x, y
