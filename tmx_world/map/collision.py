"""
Tile collision index built from layer roles

=============================================================================
COLLISION DETECTION OVERVIEW
=============================================================================

Collision is decided per TILE, not per object. After the map is parsed we
compute, once, the set of tile coordinates that block movement. Every frame
the movement resolver only asks "is (x, y) in the set?".

=============================================================================
DECLARATIVE PRECEDENCE
=============================================================================

The island map does not mark tiles as solid one by one. Instead, each layer
plays a ROLE given by its name, and three passes run in a fixed order
(later passes override earlier ones at the same coordinate):

    Pass 1  "water"            any tile      → BLOCK   (default terrain)
    Pass 2  "sand", "pavement" any tile      → CLEAR   (walkable ground wins)
    Pass 3  "buildings-base"   solid tileset → BLOCK   (buildings always win)

Example, one coordinate present on several layers:

    water only                       → blocked
    water + sand                     → open
    water + sand + building (solid)  → blocked
    nothing                          → open

=============================================================================
STORAGE
=============================================================================

The index is a set of (x, y) pairs, stored as a flat numpy bool array keyed
by y * width + x. No string keys, no allocation per query. Once built the
array is flagged read-only.

Out-of-bounds coordinates are NEVER blocked. Keeping entities inside the
world is the job of clamp_to_bounds() in the movement module.

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set, Tuple

import numpy as np

from tmx_reader import Layer, MapDocument, Tileset, resolve_gid

from .. import config

logger = logging.getLogger(__name__)


def _is_truthy(value) -> bool:
    """Interpret a coerced property value as a flag."""
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in ('true', 'yes', 'on')


@dataclass(frozen=True)
class CollisionRules:
    """
    Which layers play which collision role, and which tilesets are solid.

    Layer names are compared case-insensitively. Several layers may share a
    role; they are processed in document order within their pass.
    """
    blocking_layers: Tuple[str, ...] = config.BLOCKING_LAYERS
    walkable_layers: Tuple[str, ...] = config.WALKABLE_LAYERS
    building_layers: Tuple[str, ...] = config.BUILDING_LAYERS
    solid_tilesets: Tuple[str, ...] = config.SOLID_TILESETS
    solid_property: str = config.SOLID_PROPERTY

    def layers_with_role(self, document: MapDocument, names: Tuple[str, ...]) -> List[Layer]:
        wanted = {name.lower() for name in names}
        return [layer for layer in document.layers if layer.name.lower() in wanted]

    def is_solid_tileset(self, tileset: Tileset) -> bool:
        """Allow-listed by name, or flagged with the solid property."""
        if tileset.name in self.solid_tilesets:
            return True
        value = tileset.properties.get(self.solid_property)
        return value is not None and _is_truthy(value)


class CollisionIndex:
    """
    Set of impassable tile coordinates.

    ==========================================================================
    USAGE EXAMPLE
    ==========================================================================

    ```python
    index = build_collision_index(document)

    if index.is_blocked(10, 20):
        ...

    (10, 20) in index          # same query, set syntax
    len(index)                 # number of blocked tiles
    ```

    ==========================================================================
    """

    def __init__(self, width: int, height: int):
        self.width = max(0, width)
        self.height = max(0, height)

        # Flat array-backed set, all open by default
        self._cells = np.zeros(self.width * self.height, dtype=bool)

    # =========================================================================
    # MEMBERSHIP
    # =========================================================================

    def key(self, x: int, y: int) -> int:
        """Combined key of an in-bounds coordinate."""
        return y * self.width + x

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_blocked(self, x: int, y: int) -> bool:
        """True if tile (x, y) is impassable. Out of bounds is open."""
        if self.in_bounds(x, y):
            return bool(self._cells[self.key(x, y)])
        return False

    def any_blocked(self, x0: int, y0: int, x1: int, y1: int) -> bool:
        """
        True if any tile in the inclusive range [x0..x1] x [y0..y1] is blocked.

        The range is clipped to the map; the part outside it is open.
        """
        x0 = max(x0, 0)
        y0 = max(y0, 0)
        x1 = min(x1, self.width - 1)
        y1 = min(y1, self.height - 1)
        if x0 > x1 or y0 > y1:
            return False
        return bool(self.grid()[y0:y1 + 1, x0:x1 + 1].any())

    def __contains__(self, coord) -> bool:
        x, y = coord
        return self.is_blocked(x, y)

    def __len__(self) -> int:
        return int(np.count_nonzero(self._cells))

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        for key in np.flatnonzero(self._cells):
            yield int(key % self.width), int(key // self.width)

    def __eq__(self, other) -> bool:
        if not isinstance(other, CollisionIndex):
            return NotImplemented
        return ((self.width, self.height) == (other.width, other.height)
                and np.array_equal(self._cells, other._cells))

    def __repr__(self) -> str:
        return f"CollisionIndex({self.width}x{self.height}, blocked={len(self)})"

    def blocked_tiles(self) -> Set[Tuple[int, int]]:
        return set(self)

    # =========================================================================
    # BUILD-TIME ACCESS
    # =========================================================================

    def grid(self) -> np.ndarray:
        """2D [y, x] view over the cells (writable only until frozen)."""
        return self._cells.reshape(self.height, self.width)

    def freeze(self):
        """Make the index read-only. Called once building is complete."""
        self._cells.flags.writeable = False

    @property
    def frozen(self) -> bool:
        return not self._cells.flags.writeable

    # =========================================================================
    # STATISTICS AND DEBUGGING
    # =========================================================================

    def get_stats(self) -> dict:
        """
        Blocked/open counts.

        Typical island maps are mostly water, so 40-70% blocked is normal.
        0% usually means no layer matched a collision role.
        """
        total = self.width * self.height
        solid = len(self)
        return {
            'total_tiles': total,
            'solid_tiles': solid,
            'empty_tiles': total - solid,
            'solid_percent': (solid / total * 100) if total > 0 else 0,
        }

    def to_ascii(self, blocked: str = '#', open_tile: str = '.') -> str:
        """One text row per tile row, for terminal inspection."""
        rows = []
        for row in self.grid():
            rows.append(''.join(blocked if cell else open_tile for cell in row))
        return '\n'.join(rows)


# =============================================================================
# BUILDER
# =============================================================================

def _layer_grid(layer: Layer, width: int, height: int) -> np.ndarray:
    """
    Layer GIDs as a [y, x] array, cropped to the map's extents.

    A layer whose data does not fill its own grid contributes nothing.
    """
    if layer.width <= 0 or layer.height <= 0 or len(layer.data) != layer.width * layer.height:
        logger.warning("Ignoring layer '%s': %d tiles for a %dx%d grid",
                       layer.name, len(layer.data), layer.width, layer.height)
        return np.zeros((0, 0), dtype=np.int64)
    cells = np.asarray(layer.data, dtype=np.int64).reshape(layer.height, layer.width)
    return cells[:height, :width]


def build_collision_index(document: MapDocument,
                          rules: Optional[CollisionRules] = None) -> CollisionIndex:
    """
    Build the collision index of a parsed map.

    Parameters:
    -----------
    document : MapDocument
        Parsed map (not modified)
    rules : CollisionRules, optional
        Layer roles and solid tilesets (defaults from config)

    Returns:
    --------
    CollisionIndex : Frozen set of blocked tiles

    =======================================================================
    THREE PASSES
    =======================================================================

    Each pass is one O(width x height) sweep per matching layer:

    1. BLOCK every non-empty cell of the default-blocking layers
    2. CLEAR every non-empty cell of the walkable layers
    3. BLOCK every non-empty cell of the building layers whose GID
       resolves to a solid tileset

    Pass 3 resolves each distinct GID once and reuses the answer
    (a GID -> is_solid lookup, shared by all building layers).

    Building is deterministic: the same document always yields the same
    set.

    =======================================================================
    """
    rules = rules or CollisionRules()
    index = CollisionIndex(document.width, document.height)
    grid = index.grid()

    logger.info("=== Building Collision Index ===")

    # -----------------------------------------------------------------
    # PASS 1: DEFAULT-BLOCKING TERRAIN
    # -----------------------------------------------------------------
    for layer in rules.layers_with_role(document, rules.blocking_layers):
        cells = _layer_grid(layer, index.width, index.height)
        region = grid[:cells.shape[0], :cells.shape[1]]
        region[cells != 0] = True
        logger.debug("Blocked by '%s': %d", layer.name, np.count_nonzero(cells))

    # -----------------------------------------------------------------
    # PASS 2: WALKABLE SURFACES
    # -----------------------------------------------------------------
    for layer in rules.layers_with_role(document, rules.walkable_layers):
        cells = _layer_grid(layer, index.width, index.height)
        region = grid[:cells.shape[0], :cells.shape[1]]
        region[cells != 0] = False
        logger.debug("Cleared by '%s': %d", layer.name, np.count_nonzero(cells))

    # -----------------------------------------------------------------
    # PASS 3: SOLID BUILDING FOOTPRINTS
    # -----------------------------------------------------------------
    solid_lookup: Dict[int, bool] = {}

    for layer in rules.layers_with_role(document, rules.building_layers):
        cells = _layer_grid(layer, index.width, index.height)
        region = grid[:cells.shape[0], :cells.shape[1]]

        solid_gids = []
        for gid in np.unique(cells[cells != 0]):
            gid = int(gid)
            if gid not in solid_lookup:
                resolved = resolve_gid(document.tilesets, gid)
                solid_lookup[gid] = (resolved is not None
                                     and rules.is_solid_tileset(resolved[0]))
            if solid_lookup[gid]:
                solid_gids.append(gid)

        if solid_gids:
            region[np.isin(cells, solid_gids)] = True

    logger.info("Building GIDs checked: %d, solid: %d",
                len(solid_lookup), sum(1 for v in solid_lookup.values() if v))

    index.freeze()

    stats = index.get_stats()
    logger.info("Solid tiles: %d (%.1f%%)", stats['solid_tiles'], stats['solid_percent'])
    logger.info("Empty tiles: %d", stats['empty_tiles'])
    return index
