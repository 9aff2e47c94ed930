"""
Entity Manager - registry and per-tick update of all characters

=============================================================================
TICK ORDER
=============================================================================

For every character, once per tick:

    1. behaviour timers set velocity         (character.update_character)
    2. ONE MovementResolver call if it moves  (colliding characters only)
    3. world-bounds clamp                     (colliding characters only)

Order between characters does not matter: each resolution depends only on
the static collision index and that character's own previous position,
never on another character.

=============================================================================
"""

import random
from typing import List, Optional, Tuple

from .character import Character, update_character
from .movement import MovementResolver, clamp_to_bounds


class EntityManager:
    """
    Owns every character in the world.

    The resolver is passed to update() rather than stored, so the world can
    swap maps between ticks without the manager holding a stale index.
    """

    def __init__(self, rng=None):
        self.characters: List[Character] = []
        self.player: Optional[Character] = None
        self.rng = rng or random.Random()

    def add(self, character: Character, is_player: bool = False) -> Character:
        self.characters.append(character)
        if is_player:
            self.player = character
        return character

    def remove(self, character: Character):
        self.characters.remove(character)
        if self.player is character:
            self.player = None

    def clear(self):
        self.characters.clear()
        self.player = None

    # =========================================================================
    # GAME LOOP INTEGRATION
    # =========================================================================

    def update(self, dt: float, resolver: Optional[MovementResolver],
               world_size: Tuple[float, float]):
        """
        Update all characters.

        Parameters:
        -----------
        dt : float
            Delta time in seconds since last update
        resolver : MovementResolver or None
            Collision resolver of the current map (None = no collision)
        world_size : (width, height)
            World size in pixels, for bounds clamping and kite targets
        """
        width, height = world_size
        for character in self.characters:
            update_character(character, dt, resolver, world_size, self.rng)
            if character.collides:
                character.x, character.y = clamp_to_bounds(
                    character.position, character.footprint, width, height)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_characters_at(self, x: float, y: float, radius: float = 32.0) -> List[Character]:
        """All characters whose centre is within radius pixels of (x, y)."""
        result = []
        for char in self.characters:
            dx = char.x - x
            dy = char.y - y
            if dx*dx + dy*dy <= radius*radius:
                result.append(char)
        return result

    @property
    def npc_count(self) -> int:
        return sum(1 for c in self.characters if c.is_npc)

    @property
    def character_count(self) -> int:
        return len(self.characters)
