#!/usr/bin/env python3
"""
Lifecycle driver: clouds in, stars out.

Cloud states: Dormant -> Collapsing -> (removed, Star created).

A trigger flips a dormant cloud to collapsing at once, but the star only
materializes after `collapse_duration` seconds of wall time. The timer ignores
the time scale, so a collapse started while paused still completes.

The spawner occasionally drops a new dormant cloud into the universe, never
beyond the cloud cap. `populate` builds the initial universe.
"""
import logging
import math
import random
from typing import List, Tuple

from .classifier import PROFILES, classify
from .config import UniverseConfig
from .data_models import Archetype, BirthEvent, Cloud, Star
from .registry import BodyRegistry
from .vector_utils import Vec3

logger = logging.getLogger(__name__)

COLLAPSE_TOLERANCE = 1e-9  # progress is a sum of float steps


def random_position(rng: random.Random, extent: float) -> Vec3:
    """Uniform point in a flattened box: the y (vertical) extent is a quarter of x/z."""
    return (
        (rng.random() - 0.5) * extent,
        (rng.random() - 0.5) * extent / 4,
        (rng.random() - 0.5) * extent,
    )


class LifecycleDriver:
    def __init__(self, registry: BodyRegistry, config: UniverseConfig, rng: random.Random):
        self.registry = registry
        self.config = config
        self.rng = rng

    # -----------------------
    # Clouds
    # -----------------------

    def make_cloud(self, extent: float, max_rotation: float) -> Cloud:
        rng = self.rng
        return Cloud(
            id=self.registry.next_id(),
            position=random_position(rng, extent),
            mass=rng.random() * 100,
            size=4 + rng.random() * 6,
            rotation_speed=0.1 + rng.random() * max_rotation,
        )

    def spawn_cloud(self):
        """Add one dormant cloud at a random position, unless the cap is reached."""
        if self.registry.cloud_count >= self.config.max_clouds:
            return None
        cloud = self.registry.add_cloud(self.make_cloud(self.config.spawn_cloud_range, 0.3))
        logger.info("Cloud %s drifted in (mass %.1f)", cloud.id, cloud.mass)
        return cloud

    def maybe_spawn(self, elapsed: float):
        """Coarse stochastic spawner: a small chance per frame during every Nth second."""
        cfg = self.config
        if elapsed <= cfg.spawn_warmup or cfg.spawn_period <= 0:
            return None
        if int(math.floor(elapsed)) % cfg.spawn_period != 0:
            return None
        if self.rng.random() >= cfg.spawn_chance:
            return None
        return self.spawn_cloud()

    def make_rogue_planet(self) -> Star:
        rng = self.rng
        profile = PROFILES[Archetype.ROGUE_PLANET]
        return Star(
            id=self.registry.next_id(),
            archetype=Archetype.ROGUE_PLANET,
            mass=0.5,
            radius=profile.radius,
            position=random_position(rng, self.config.rogue_planet_range),
            velocity=(
                (rng.random() - 0.5) * 0.4,
                (rng.random() - 0.5) * 0.05,
                (rng.random() - 0.5) * 0.4,
            ),
            color=profile.color,
            luminosity=profile.luminosity,
            rotation_speed=1.0,
            accretion_disk=profile.accretion_disk,
            age=10000.0,
        )

    def populate(self) -> None:
        for _ in range(self.config.initial_clouds):
            self.registry.add_cloud(self.make_cloud(self.config.init_cloud_range, 0.4))
        for _ in range(self.config.initial_rogue_planets):
            self.registry.add_star(self.make_rogue_planet())

    # -----------------------
    # Collapse
    # -----------------------

    def trigger_collapse(self, cloud_id: int) -> bool:
        cloud = self.registry.get_cloud(cloud_id)
        if cloud is None or cloud.is_collapsing:
            return False
        cloud.is_collapsing = True
        cloud.collapse_progress = 0.0
        logger.info("Cloud %s began collapsing", cloud_id)
        return True

    def materialize(self, cloud: Cloud) -> Star:
        """Classify a fully collapsed cloud and swap it for its star."""
        rng = self.rng
        result = classify(cloud.mass, rng.random(), rng, planet_prefix=str(cloud.id))
        profile = result.profile
        star = Star(
            id=cloud.id,
            archetype=result.archetype,
            mass=cloud.mass,
            radius=profile.radius,
            position=cloud.position,
            velocity=(
                (rng.random() - 0.5) * 0.2,
                (rng.random() - 0.5) * 0.02,
                (rng.random() - 0.5) * 0.2,
            ),
            color=profile.color,
            secondary_color=profile.secondary_color,
            luminosity=profile.luminosity,
            rotation_speed=cloud.rotation_speed * 10,
            accretion_disk=profile.accretion_disk,
            planets=result.planets,
            age=0.0,
        )
        return self.registry.replace_cloud_with_star(cloud.id, star)

    def update(self, frame_delta: float, elapsed: float) -> List[Tuple[BirthEvent, Star]]:
        """
        Advance collapse timers by `frame_delta` wall seconds and run the spawner.

        Returns a (BirthEvent, Star) pair for every star that materialized.
        """
        births: List[Tuple[BirthEvent, Star]] = []
        duration = self.config.collapse_duration
        step = frame_delta / duration if duration > 0 else 1.0
        done = []
        for cloud in self.registry.clouds.values():
            if not cloud.is_collapsing:
                continue
            cloud.collapse_progress = min(1.0, cloud.collapse_progress + step)
            if cloud.collapse_progress >= 1.0 - COLLAPSE_TOLERANCE:
                done.append(cloud)

        for cloud in done:
            star = self.materialize(cloud)
            logger.info("Star %s born: %s (mass %.1f)", star.id, star.archetype.label, star.mass)
            births.append((BirthEvent(star_id=star.id, archetype=star.archetype), star))

        if frame_delta > 0:
            self.maybe_spawn(elapsed)
        return births
