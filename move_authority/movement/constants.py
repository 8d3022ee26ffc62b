from __future__ import annotations

# Units: metres, seconds, metres/second. Y is up.

GRAVITY = -9.81

JUMP_IMPULSE = 5.0
JUMP_IMPULSE_TOLERANCE = 3.0
# Allowed error between reported and predicted height while a jump continues.
JUMP_POSITION_TOLERANCE = 0.5

MAX_IDLE_SPEED = 2.0
MAX_WALK_SPEED = 6.0
MAX_RUN_SPEED = 12.0
MAX_AIRBORNE_HORIZONTAL_SPEED = 8.0
TERMINAL_VELOCITY = 25.0

# Grounded states may sit slightly above y=0 for terrain.
MAX_GROUND_HEIGHT = 0.5

LANDING_MAX_HEIGHT = 0.2
LANDING_MAX_VERTICAL_SPEED = 1.0

# Walking off an edge only counts once the player has actually left the ground.
FALL_MIN_HEIGHT = 0.1

TRAVEL_TIME_TOLERANCE = 0.1

MICROSECONDS_PER_SECOND = 1_000_000
MAX_FUTURE_OFFSET_US = 1_000_000
MAX_PAST_OFFSET_US = 5_000_000
