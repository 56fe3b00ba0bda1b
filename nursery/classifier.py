#!/usr/bin/env python3
"""
Stellar classification for collapsing clouds.

A cloud's mass (0..100) and one uniform draw select an archetype; the archetype
fixes the visual/physical profile (radius, color, luminosity, accretion disk)
and a random planetary retinue is generated around it.

Mass bands
- <15 Brown Dwarf, <30 Red Dwarf
- <60 Yellow Dwarf, or Binary System when the draw is above 0.8
- <80 Blue Giant, <90 Neutron Star, <98 Black Hole, otherwise Quasar

Rogue planets are only created when a universe is populated, and supermassive
black holes are never produced here: archetypes are fixed at creation.

Everything random goes through an injected `random.Random`, so classification is
reproducible in tests.
"""
import math
import random
from dataclasses import dataclass
from typing import Dict, List, Optional

from . import constants as C
from .data_models import Archetype, Color, Planet, PlanetKind

BINARY_DRAW_THRESHOLD = 0.8
GAS_GIANT_DRAW_THRESHOLD = 0.6
MIN_PLANETS = 2
MAX_PLANETS = 7


@dataclass(frozen=True)
class StellarProfile:
    radius: float
    color: Color
    luminosity: float
    accretion_disk: bool
    secondary_color: Optional[Color] = None


PROFILES: Dict[Archetype, StellarProfile] = {
    Archetype.BROWN_DWARF: StellarProfile(0.6, C.BROWN, 0.5, False),
    Archetype.RED_DWARF: StellarProfile(0.8, C.RED, 2.0, True),
    Archetype.YELLOW_DWARF: StellarProfile(1.5, C.YELLOW, 5.0, True),
    Archetype.BINARY_STAR: StellarProfile(1.2, C.YELLOW, 4.0, True, secondary_color=C.RED),
    Archetype.BLUE_GIANT: StellarProfile(2.5, C.BLUE, 8.0, True),
    Archetype.NEUTRON_STAR: StellarProfile(0.5, C.WHITE, 15.0, True),
    Archetype.BLACK_HOLE: StellarProfile(1.0, C.BLACK, 0.0, True),
    Archetype.SUPERMASSIVE_BLACK_HOLE: StellarProfile(4.0, C.BLACK, 0.0, True),
    Archetype.QUASAR: StellarProfile(3.0, C.PURPLE, 20.0, True),
    Archetype.ROGUE_PLANET: StellarProfile(0.3, C.ROGUE_GREY, 0.0, False),
}


@dataclass(frozen=True)
class Classification:
    archetype: Archetype
    profile: StellarProfile
    planets: List[Planet]


def archetype_for(mass: float, draw: float) -> Archetype:
    """Map a cloud mass and a uniform draw in [0, 1) to an archetype."""
    if mass < 15:
        return Archetype.BROWN_DWARF
    if mass < 30:
        return Archetype.RED_DWARF
    if mass < 60:
        return Archetype.BINARY_STAR if draw > BINARY_DRAW_THRESHOLD else Archetype.YELLOW_DWARF
    if mass < 80:
        return Archetype.BLUE_GIANT
    if mass < 90:
        return Archetype.NEUTRON_STAR
    if mass < 98:
        return Archetype.BLACK_HOLE
    return Archetype.QUASAR


def generate_planets(radius: float, rng: random.Random, prefix: str = "planet") -> List[Planet]:
    """
    Generate 2-7 planets around a star of the given radius.

    Orbits widen with the index while angular speed falls off as
    (0.8 + rand) / sqrt(index + 1). About 40% of planets are gas giants.
    """
    count = MIN_PLANETS + int(rng.random() * (MAX_PLANETS - MIN_PLANETS + 1))
    planets: List[Planet] = []
    for i in range(count):
        kind = PlanetKind.GAS if rng.random() > GAS_GIANT_DRAW_THRESHOLD else PlanetKind.ROCKY
        gas = kind is PlanetKind.GAS
        planets.append(Planet(
            id=f"{prefix}.{i}",
            distance=radius * 4 + i * 2 + rng.random() * 2,
            size=radius * (0.3 if gas else 0.12) + rng.random() * 0.05,
            speed=(0.8 + rng.random()) / math.sqrt(i + 1),
            angle=rng.random() * math.pi * 2,
            color=C.ORANGE if gas else C.ROCKY_GREY,
            kind=kind,
            mass=0.01 if gas else 0.002,
        ))
    return planets


def classify(mass: float, draw: float, rng: Optional[random.Random] = None,
             planet_prefix: str = "planet") -> Classification:
    """
    Classify a cloud of `mass` using `draw` for the archetype choice and `rng`
    for the planetary retinue.
    """
    rng = rng or random.Random()
    archetype = archetype_for(mass, draw)
    profile = PROFILES[archetype]
    planets = generate_planets(profile.radius, rng, planet_prefix)
    return Classification(archetype=archetype, profile=profile, planets=planets)
