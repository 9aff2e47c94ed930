"""Characters, movement resolution and entity management"""

from .movement import Footprint, MovementResolver, resolve_movement, clamp_to_bounds
from .character import Character, Direction, AnimationState, Behavior
from .manager import EntityManager

__all__ = [
    "Footprint",
    "MovementResolver",
    "resolve_movement",
    "clamp_to_bounds",
    "Character",
    "Direction",
    "AnimationState",
    "Behavior",
    "EntityManager",
]
