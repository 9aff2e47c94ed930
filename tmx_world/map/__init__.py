"""Collision index and tileset image support"""

from .collision import CollisionIndex, CollisionRules, build_collision_index
from .tileset_images import TextureNameTable, TileAtlas, tile_source_rect

__all__ = [
    "CollisionIndex", "CollisionRules", "build_collision_index",
    "TextureNameTable", "TileAtlas", "tile_source_rect",
]
