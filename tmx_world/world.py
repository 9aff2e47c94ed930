"""
World session - the loaded map, its collision index and the entities

=============================================================================
LIFECYCLE
=============================================================================

    text ──parse_map──> MapDocument ──build_collision_index──> CollisionIndex
                                                                    │
                                  MovementResolver <────────────────┘

All three are bundled in one immutable LoadedMap. The collision index is
built once, synchronously, before the first tick.

Reloading builds a complete new LoadedMap first and then replaces the old
one with a single assignment. A tick sees either the old map or the new one,
never a half-built index.

=============================================================================
"""

import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from tmx_reader import MapDocument, parse_map

from .entities.character import create_kite, create_lizard, create_npc, create_player
from .entities.manager import EntityManager
from .entities.movement import MovementResolver
from .map.collision import CollisionIndex, CollisionRules, build_collision_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedMap:
    document: MapDocument
    collision: CollisionIndex
    movement: MovementResolver

    @classmethod
    def build(cls, document: MapDocument, rules: Optional[CollisionRules] = None) -> 'LoadedMap':
        collision = build_collision_index(document, rules)
        movement = MovementResolver(collision, document.tile_width, document.tile_height)
        return cls(document, collision, movement)


class World:
    """
    One play session on one map.

    ```python
    world = World.from_file("map-v3.tmx")
    world.spawn_default_population()
    while running:
        world.step(dt)
    ```
    """

    def __init__(self, document: MapDocument, rules: Optional[CollisionRules] = None,
                 rng=None):
        self.rules = rules
        self._map = LoadedMap.build(document, rules)
        self.rng = rng or random.Random()
        self.entities = EntityManager(self.rng)

    @classmethod
    def from_text(cls, text: str, rules: Optional[CollisionRules] = None, rng=None) -> 'World':
        return cls(parse_map(text), rules, rng)

    @classmethod
    def from_file(cls, filepath: Union[str, Path], rules: Optional[CollisionRules] = None,
                  rng=None) -> 'World':
        return cls(MapDocument.load(filepath), rules, rng)

    # =========================================================================
    # MAP ACCESS
    # =========================================================================

    @property
    def loaded(self) -> LoadedMap:
        return self._map

    @property
    def document(self) -> MapDocument:
        return self._map.document

    @property
    def collision(self) -> CollisionIndex:
        return self._map.collision

    @property
    def movement(self) -> MovementResolver:
        return self._map.movement

    @property
    def pixel_size(self) -> Tuple[int, int]:
        return self._map.document.pixel_width, self._map.document.pixel_height

    def reload(self, text: str):
        """
        Replace the map with a newly parsed one.

        Raises MalformedMapError before anything is replaced if the new
        text is unusable; the current map stays in place.
        """
        new_map = LoadedMap.build(parse_map(text), self.rules)
        self._map = new_map
        logger.info("Map reloaded: %dx%d", new_map.document.width, new_map.document.height)

    # =========================================================================
    # SIMULATION
    # =========================================================================

    def step(self, dt: float):
        """Advance every entity by dt seconds against the current map."""
        loaded = self._map
        size = (loaded.document.pixel_width, loaded.document.pixel_height)
        self.entities.update(dt, loaded.movement, size)

    def spawn_default_population(self):
        """
        Player at the map centre, three NPCs, three kites and two lizards
        at fixed offsets from it.
        """
        width, height = self.pixel_size
        cx, cy = width / 2, height / 2

        self.entities.add(create_player(cx, cy), is_player=True)

        for i, (dx, dy) in enumerate([(100, 50), (-150, -100), (200, -150)]):
            self.entities.add(create_npc(cx + dx, cy + dy, name=f"npc-{i}", rng=self.rng))

        for i in range(3):
            x = self._between(200, width - 200, width)
            y = self._between(200, height - 200, height)
            self.entities.add(create_kite(x, y, width, height, name=f"kite-{i}", rng=self.rng))

        for i, (dx, dy) in enumerate([(300, 0), (-200, 200)]):
            self.entities.add(create_lizard(cx + dx, cy + dy, name=f"lizard-{i}", rng=self.rng))

        logger.info("Spawned %d characters (%d NPCs)",
                    self.entities.character_count, self.entities.npc_count)

    def _between(self, low: float, high: float, extent: float) -> float:
        if high <= low:
            return extent / 2
        return self.rng.uniform(low, high)
