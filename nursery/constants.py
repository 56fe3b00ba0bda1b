#!/usr/bin/env python3
"""
Shared constants for Stellar Nursery (simulation units, not SI).

Keeping constants in one place helps ensure values are consistent across the
codebase and makes tuning easier. `config.UniverseConfig` takes its defaults
from here.
"""

# Gravity
G = 0.5
SOFTENING = 2.0  # added to r^2; prevents force blow-up at near-zero separation
MIN_SEPARATION = 1e-6  # below this a pair has no defined direction and merges

# Interaction zones (multiples of the combined radius)
MERGE_FACTOR = 0.4
CAPTURE_FACTOR = 6.0
FEEDING_FACTOR = 8.0

# Orbital damping, per unit of scaled time
SEPARATING_DAMPING = 0.1
APPROACHING_DAMPING = 0.005

# Accretion
FEED_RATE = 0.1
SPIRAL_DRAG = 0.05
MIN_PREY_MASS = 0.1
MASS_EPSILON = 1e-6

# Ageing
AGE_RATE = 10.0  # age units per unit of scaled time

# Lifecycle (wall-clock seconds)
COLLAPSE_DURATION = 2.5
SPAWN_WARMUP = 5.0
SPAWN_PERIOD = 8
SPAWN_CHANCE = 0.01
MAX_CLOUDS = 30
INITIAL_CLOUDS = 15
INITIAL_ROGUE_PLANETS = 3
INIT_CLOUD_RANGE = 250.0
SPAWN_CLOUD_RANGE = 350.0
ROGUE_PLANET_RANGE = 300.0

# Time control
TIME_SCALES = (-8, -2, 0, 1, 4, 8)
FIXED_DT = 1 / 60.0  # wall seconds per fixed physics tick
MAX_FRAME_DELTA = 0.1  # clamp for long frames (window drag, debugger)
MAX_SUBSTEPS = 8

# Log
LOG_CAPACITY = 200
NARRATIVE_FALLBACK = "A new star was born from the cosmic ashes. Its mysteries await exploration."

# Palette (RGB)
RED = (255, 68, 68)
YELLOW = (255, 221, 68)
BLUE = (68, 136, 255)
WHITE = (255, 255, 255)
PURPLE = (170, 68, 255)
ORANGE = (255, 136, 34)
BROWN = (139, 69, 19)
BLACK = (0, 0, 0)
ROCKY_GREY = (136, 136, 136)
ROGUE_GREY = (85, 102, 119)
CLOUD_COLOR = (120, 160, 255)

# Rendering (viewport)
VIEW_WIDTH = 1100
VIEW_HEIGHT = 800
BACKGROUND_COLOR = (4, 5, 12)
FOCUS_COLOR = (255, 255, 0)
STREAM_COLOR = (255, 150, 60)
DISK_COLOR = (255, 190, 120)

# Camera zoom bounds (world units per pixel)
DEFAULT_UNITS_PER_PIXEL = 0.4
MIN_UNITS_PER_PIXEL = 0.01
MAX_UNITS_PER_PIXEL = 5.0

# Safety: avoid drawing outside reasonable integer pixel ranges
SAFE_COORD_LIMIT = 30000
