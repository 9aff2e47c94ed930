"""
Characters as plain data - player, wandering NPCs and wildlife

=============================================================================
CHARACTER OVERVIEW
=============================================================================

A Character is only state: position, velocity, facing, animation state,
footprint and behaviour timers. Free functions advance that state once per
tick; whatever draws sprites just mirrors it.

    Player          velocity from input, collides
    NPC             wanders: up / down / left / right / idle / idle
    Monitor lizard  wanders: left / right / idle / idle / idle (rests a lot)
    Brahminy kite   flies toward random targets, ignores collision

=============================================================================
COORDINATES
=============================================================================

- x, y: CENTRE of the footprint, in pixels (y grows downward)
- velocity_x/y: pixels per second
- Position is advanced by: proposed = pos + velocity * dt, then corrected
  by the MovementResolver for colliding characters

=============================================================================
"""

import math
import random
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Tuple

from .. import config
from .movement import Footprint, MovementResolver, Position


class Direction(IntEnum):
    """
    Facing direction.

    Values match the character spritesheet row order:
    - Row 0 = Down
    - Row 1 = Up
    - Row 2 = Right
    - Row 3 = Left
    """
    DOWN = 0
    UP = 1
    RIGHT = 2
    LEFT = 3


class AnimationState(IntEnum):
    IDLE = 0
    WALKING = 1


class Behavior(Enum):
    PLAYER = "player"   # Driven by input
    WANDER = "wander"   # Timer-driven random cardinal moves
    FLY = "fly"         # Target seeking, no collision


# Wander choices; duplicated 'idle' entries weight the draw toward resting
NPC_CHOICES = ('up', 'down', 'left', 'right', 'idle', 'idle')
LIZARD_CHOICES = ('left', 'right', 'idle', 'idle', 'idle')

_STEPS = {
    'up': (0, -1),
    'down': (0, 1),
    'left': (-1, 0),
    'right': (1, 0),
    'idle': (0, 0),
}


@dataclass
class WanderState:
    """Current wander choice and seconds until the next re-pick."""
    choices: Tuple[str, ...]
    repick_delay: Tuple[float, float]
    current: str = 'idle'
    remaining: float = 0.0


@dataclass
class FlightState:
    """Kite target and seconds until it is replaced regardless of arrival."""
    target_x: float
    target_y: float
    retarget_every: float
    remaining: float


@dataclass
class Character:
    """
    One entity in the world.

    Only colliding characters are passed through the MovementResolver;
    kites fly over water and roofs.
    """
    name: str
    x: float
    y: float
    footprint: Footprint
    speed: float
    behavior: Behavior = Behavior.PLAYER
    velocity_x: float = 0.0
    velocity_y: float = 0.0
    facing: Direction = Direction.DOWN
    animation: AnimationState = AnimationState.IDLE
    collides: bool = True
    wander: Optional[WanderState] = None
    flight: Optional[FlightState] = None

    @property
    def position(self) -> Position:
        return self.x, self.y

    @property
    def is_npc(self) -> bool:
        return self.behavior != Behavior.PLAYER

    @property
    def is_moving(self) -> bool:
        return self.velocity_x != 0 or self.velocity_y != 0


# =============================================================================
# FACTORIES
# =============================================================================

def create_player(x: float, y: float, name: str = "player") -> Character:
    return Character(name=name, x=x, y=y,
                     footprint=Footprint(*config.PLAYER_FOOTPRINT),
                     speed=config.PLAYER_SPEED)


def create_npc(x: float, y: float, name: str = "npc",
               speed: float = config.NPC_SPEED, rng=random) -> Character:
    npc = Character(name=name, x=x, y=y,
                    footprint=Footprint(*config.NPC_FOOTPRINT),
                    speed=speed, behavior=Behavior.WANDER,
                    wander=WanderState(NPC_CHOICES, config.NPC_REPICK_DELAY))
    pick_wander_direction(npc, rng)
    return npc


def create_lizard(x: float, y: float, name: str = "lizard", rng=random) -> Character:
    lizard = Character(name=name, x=x, y=y,
                       footprint=Footprint(*config.LIZARD_FOOTPRINT),
                       speed=config.LIZARD_SPEED, behavior=Behavior.WANDER,
                       wander=WanderState(LIZARD_CHOICES, config.LIZARD_REPICK_DELAY))
    pick_wander_direction(lizard, rng)
    return lizard


def create_kite(x: float, y: float, world_width: float, world_height: float,
                name: str = "kite", rng=random) -> Character:
    """
    A kite picks a fresh target on arrival and also every 3-8 seconds
    (one interval drawn at creation, then repeated).
    """
    every = rng.uniform(*config.KITE_RETARGET_DELAY)
    kite = Character(name=name, x=x, y=y,
                     footprint=Footprint(0.0, 0.0),
                     speed=config.KITE_SPEED, behavior=Behavior.FLY,
                     collides=False,
                     flight=FlightState(x, y, every, every))
    pick_kite_target(kite, world_width, world_height, rng)
    return kite


# =============================================================================
# INPUT
# =============================================================================

def apply_input(character: Character, left: bool, right: bool,
                up: bool, down: bool):
    """
    Set velocity from directional input.

    Left wins over right and up over down when both are held. Diagonals
    are scaled by 0.707 so they are not faster than cardinal moves.
    """
    vx = vy = 0.0
    if left:
        vx = -character.speed
    elif right:
        vx = character.speed

    if up:
        vy = -character.speed
    elif down:
        vy = character.speed

    if vx != 0 and vy != 0:
        vx *= config.DIAGONAL_FACTOR
        vy *= config.DIAGONAL_FACTOR

    character.velocity_x = vx
    character.velocity_y = vy


def update_facing(character: Character):
    """
    Face the dominant axis of motion.

    Horizontal only when strictly larger than vertical, so an exact
    diagonal faces up/down. Standing still keeps the last facing.
    """
    vx, vy = character.velocity_x, character.velocity_y
    if vx == 0 and vy == 0:
        return
    if abs(vx) > abs(vy):
        character.facing = Direction.RIGHT if vx > 0 else Direction.LEFT
    else:
        character.facing = Direction.DOWN if vy > 0 else Direction.UP


# =============================================================================
# BEHAVIOURS
# =============================================================================

def pick_wander_direction(character: Character, rng=random):
    """Draw the next wander choice and re-arm the timer."""
    state = character.wander
    state.current = rng.choice(state.choices)
    state.remaining = rng.uniform(*state.repick_delay)

    dx, dy = _STEPS[state.current]
    character.velocity_x = dx * character.speed
    character.velocity_y = dy * character.speed


def advance_wander(character: Character, dt: float, rng=random):
    state = character.wander
    state.remaining -= dt
    if state.remaining <= 0:
        pick_wander_direction(character, rng)


def pick_kite_target(character: Character, world_width: float,
                     world_height: float, rng=random):
    """Random target at least KITE_PADDING pixels away from the world edge."""
    padding = config.KITE_PADDING
    flight = character.flight

    # Small worlds have no padded area; aim for the centre
    if world_width <= 2 * padding:
        flight.target_x = world_width / 2
    else:
        flight.target_x = rng.uniform(padding, world_width - padding)
    if world_height <= 2 * padding:
        flight.target_y = world_height / 2
    else:
        flight.target_y = rng.uniform(padding, world_height - padding)


def advance_kite(character: Character, dt: float, world_width: float,
                 world_height: float, rng=random):
    """Steer toward the target; re-target on arrival or when the timer fires."""
    flight = character.flight

    flight.remaining -= dt
    if flight.remaining <= 0:
        pick_kite_target(character, world_width, world_height, rng)
        flight.remaining += flight.retarget_every

    dx = flight.target_x - character.x
    dy = flight.target_y - character.y
    dist = math.sqrt(dx * dx + dy * dy)

    if dist > config.KITE_ARRIVAL_DISTANCE:
        character.velocity_x = dx / dist * character.speed
        character.velocity_y = dy / dist * character.speed
    else:
        character.velocity_x = 0.0
        character.velocity_y = 0.0
        pick_kite_target(character, world_width, world_height, rng)


# =============================================================================
# TICK
# =============================================================================

def update_character(character: Character, dt: float,
                     resolver: Optional[MovementResolver] = None,
                     world_size: Tuple[float, float] = (0.0, 0.0),
                     rng=random):
    """
    Advance one character by dt seconds.

    1. Behaviour (wander / flight timers) sets velocity
    2. Movement: one resolver call for colliding characters that move
    3. Facing and animation follow the velocity
    """
    if character.behavior == Behavior.WANDER:
        advance_wander(character, dt, rng)
    elif character.behavior == Behavior.FLY:
        advance_kite(character, dt, world_size[0], world_size[1], rng)

    if character.is_moving:
        previous = character.position
        proposed = (character.x + character.velocity_x * dt,
                    character.y + character.velocity_y * dt)

        if character.collides and resolver is not None:
            character.x, character.y = resolver.resolve(
                previous, proposed, character.footprint)
        else:
            character.x, character.y = proposed

    update_facing(character)
    character.animation = (AnimationState.WALKING if character.is_moving
                           else AnimationState.IDLE)
