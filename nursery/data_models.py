#!/usr/bin/env python3
"""
Data models for Stellar Nursery.

This module defines the bodies shared between the simulation core, the log and
the viewer, plus the events and read-only snapshots the core publishes.

Units and usage
- position and velocity are 3-tuples in simulation units; the galactic plane is x/z.
- mass is on the cloud scale (0..100 nominal); stars may grow past it by merging.
- Star and Cloud instances are owned by the BodyRegistry and mutated only while
  the Universe lock is held. Consumers receive StarSnapshot/CloudSnapshot copies.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from .vector_utils import Vec3, ZERO

Color = Tuple[int, int, int]


class Archetype(Enum):
    """Discrete classification of a stellar body."""
    BROWN_DWARF = "Brown Dwarf"
    RED_DWARF = "Red Dwarf"
    YELLOW_DWARF = "Yellow Dwarf (Sun-like)"
    BINARY_STAR = "Binary System"
    BLUE_GIANT = "Blue Giant"
    NEUTRON_STAR = "Neutron Star (Pulsar)"
    BLACK_HOLE = "Black Hole"
    SUPERMASSIVE_BLACK_HOLE = "Supermassive Black Hole"
    QUASAR = "Quasar"
    ROGUE_PLANET = "Rogue Planet"

    @property
    def label(self) -> str:
        return self.value

    @property
    def is_compact(self) -> bool:
        """True for objects that act as predators (feed on neighbours)."""
        return self in _COMPACT


_COMPACT = frozenset({Archetype.BLACK_HOLE, Archetype.SUPERMASSIVE_BLACK_HOLE, Archetype.QUASAR})


class PlanetKind(Enum):
    ROCKY = "rocky"
    GAS = "gas"
    ICE = "ice"


@dataclass
class Planet:
    """A member of a star's retinue. Purely kinematic: it never pulls on anything."""
    id: str
    distance: float
    size: float
    speed: float
    angle: float
    color: Color
    kind: PlanetKind
    mass: float

    def advance(self, dt: float) -> None:
        self.angle += self.speed * dt


@dataclass
class Cloud:
    """
    A pre-stellar hydrogen cloud. Gravitationally inert.

    Fields:
    - id: Identifier; the star it collapses into keeps it
    - position: (x, y, z)
    - mass: 0..100, selects the archetype on collapse
    - size: Visual radius
    - is_collapsing: Set once a collapse has been triggered
    - collapse_progress: 0..1, wall-clock driven
    - rotation_speed: Visual spin; the resulting star spins 10x faster
    """
    id: int
    position: Vec3
    mass: float
    size: float
    rotation_speed: float
    is_collapsing: bool = False
    collapse_progress: float = 0.0


@dataclass
class Star:
    """
    Represents a celestial body taking part in the N-body simulation.

    Stars, compact objects and rogue planets all use this type; the archetype
    tells them apart.
    """
    id: int
    archetype: Archetype
    mass: float
    radius: float
    position: Vec3
    velocity: Vec3 = ZERO
    color: Color = (255, 255, 255)
    secondary_color: Optional[Color] = None
    luminosity: float = 1.0
    rotation_speed: float = 1.0
    accretion_disk: bool = False
    planets: List[Planet] = field(default_factory=list)
    age: float = 0.0
    consumed_by: Optional[int] = None
    is_shredding: bool = False

    @property
    def is_compact(self) -> bool:
        return self.archetype.is_compact


# ----------------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class MergerEvent:
    winner_id: int
    loser_id: int
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class MassTransferEvent:
    source_id: int
    target_id: int
    amount: float
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class BirthEvent:
    star_id: int
    archetype: Archetype
    timestamp: datetime = field(default_factory=datetime.now)


# ----------------------------------------------------------------------------
# Snapshots (read-only views for the viewer)
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class PlanetSnapshot:
    id: str
    distance: float
    size: float
    angle: float
    color: Color
    kind: PlanetKind


@dataclass(frozen=True)
class StarSnapshot:
    id: int
    archetype: Archetype
    mass: float
    position: Vec3
    velocity: Vec3
    radius: float
    color: Color
    secondary_color: Optional[Color]
    luminosity: float
    rotation_speed: float
    accretion_disk: bool
    age: float
    is_shredding: bool
    consumed_by: Optional[int]
    predator_position: Optional[Vec3]
    planets: Tuple[PlanetSnapshot, ...]


@dataclass(frozen=True)
class CloudSnapshot:
    id: int
    position: Vec3
    mass: float
    size: float
    rotation_speed: float
    is_collapsing: bool
    collapse_progress: float


@dataclass(frozen=True)
class UniverseSnapshot:
    stars: Tuple[StarSnapshot, ...]
    clouds: Tuple[CloudSnapshot, ...]
    time_scale: float
    elapsed: float
    focused_id: Optional[int]

    def find(self, body_id: int):
        """Return the star or cloud snapshot with this id, or None."""
        for s in self.stars:
            if s.id == body_id:
                return s
        for c in self.clouds:
            if c.id == body_id:
                return c
        return None
