"""
TMX World - island map collision and movement

Requirements:
    pip install numpy pillow
"""

from .world import World, LoadedMap
from .map.collision import CollisionIndex, CollisionRules, build_collision_index
from .map.tileset_images import TextureNameTable, TileAtlas, tile_source_rect
from .entities import (
    Character, Direction, AnimationState, Behavior,
    EntityManager, Footprint, MovementResolver, resolve_movement, clamp_to_bounds
)

__version__ = "1.0.0"
__all__ = [
    "World",
    "LoadedMap",
    "CollisionIndex",
    "CollisionRules",
    "build_collision_index",
    "TextureNameTable",
    "TileAtlas",
    "tile_source_rect",
    "Character",
    "Direction",
    "AnimationState",
    "Behavior",
    "EntityManager",
    "Footprint",
    "MovementResolver",
    "resolve_movement",
    "clamp_to_bounds",
]
