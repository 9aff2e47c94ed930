"""
Game-wide settings for the island world.

Plain module constants; callers that need different values pass them
explicitly (CollisionRules, Character constructors, EntityManager).
"""

# Collision layer roles (matched case-insensitively against layer names)
BLOCKING_LAYERS = ("water",)
WALKABLE_LAYERS = ("sand", "pavement")
BUILDING_LAYERS = ("buildings-base",)

# Building tilesets whose footprint is always solid
SOLID_TILESETS = (
    "blue-and-white",
    "co-working-closed",
    "hotel-closed",
    "gym",
    "kk-mart-closed",
    "lab",
)
# Tileset property that also marks a tileset as solid
SOLID_PROPERTY = "solid"

# Tileset name -> texture key, for tilesets whose name differs from the
# key their image is registered under
TEXTURE_NAME_REMAP = {
    "island-layer-0": "island-0",
    "island-layer-1": "island-1",
    "island-layer-2": "island-2",
    "island-layer-4": "island-4",
    "island-layer-5": "island-5",
}

# Entities: speeds in pixels/second, footprints as (half_width, half_height)
PLAYER_SPEED = 150.0
PLAYER_FOOTPRINT = (10.5, 14.0)
NPC_SPEED = 30.0
NPC_FOOTPRINT = (10.5, 14.0)
LIZARD_SPEED = 25.0
LIZARD_FOOTPRINT = (15.0, 11.25)
KITE_SPEED = 60.0
KITE_PADDING = 200.0
KITE_ARRIVAL_DISTANCE = 10.0

# Diagonal input is scaled so it is no faster than cardinal movement
DIAGONAL_FACTOR = 0.707

# Wander timers, in seconds
NPC_REPICK_DELAY = (1.5, 4.0)
LIZARD_REPICK_DELAY = (2.0, 6.0)
KITE_RETARGET_DELAY = (3.0, 8.0)

# Headless simulation
TICK_SECONDS = 1.0 / 60.0
