#!/usr/bin/env python3
"""
Close-range interactions for Stellar Nursery.

For every pair of stars the resolver applies gravity and then looks at three
zones scaled by the combined radius:
- Merge:   dist < 0.4 * combined. Perfectly inelastic merge conserving mass and
           momentum; radii combine volumetrically (r^3 adds).
- Capture: dist < 6 * combined. Asymmetric orbital damping of the relative
           velocity: strong while the pair separates, weak while it approaches.
- Feed:    dist < 8 * combined, only when a compact object (black hole, quasar)
           is involved. The prey continuously loses mass to the predator and
           spirals in under extra drag.

Merge excludes the other two. Feed and capture overlap (the feed zone encloses
the capture zone) and both apply inside it.

At most one merge is resolved per tick: the pass stops at the first merge found
and the remaining pairs wait for the next tick.
"""
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

from . import constants as C
from .data_models import MassTransferEvent, MergerEvent, Star
from .physics import GravityEngine
from .vector_utils import vec_add, vec_dot, vec_len, vec_scale, vec_sub

logger = logging.getLogger(__name__)


class InteractionSettings:
    """Container for interaction-related settings."""
    def __init__(self,
                 merge_factor: float = C.MERGE_FACTOR,
                 capture_factor: float = C.CAPTURE_FACTOR,
                 feeding_factor: float = C.FEEDING_FACTOR,
                 separating_damping: float = C.SEPARATING_DAMPING,
                 approaching_damping: float = C.APPROACHING_DAMPING,
                 feed_rate: float = C.FEED_RATE,
                 spiral_drag: float = C.SPIRAL_DRAG,
                 min_prey_mass: float = C.MIN_PREY_MASS,
                 mass_epsilon: float = C.MASS_EPSILON,
                 min_separation: float = C.MIN_SEPARATION):
        self.merge_factor = float(merge_factor)
        self.capture_factor = float(capture_factor)
        self.feeding_factor = float(feeding_factor)
        self.separating_damping = float(separating_damping)
        self.approaching_damping = float(approaching_damping)
        self.feed_rate = float(feed_rate)
        self.spiral_drag = float(spiral_drag)
        self.min_prey_mass = float(min_prey_mass)
        self.mass_epsilon = float(mass_epsilon)
        self.min_separation = max(0.0, float(min_separation))

    @classmethod
    def from_config(cls, config) -> "InteractionSettings":
        return cls(
            merge_factor=config.merge_factor,
            capture_factor=config.capture_factor,
            feeding_factor=config.feeding_factor,
            separating_damping=config.separating_damping,
            approaching_damping=config.approaching_damping,
            feed_rate=config.feed_rate,
            spiral_drag=config.spiral_drag,
            min_prey_mass=config.min_prey_mass,
            mass_epsilon=config.mass_epsilon,
            min_separation=config.min_separation,
        )


class Zone(Enum):
    NONE = 0
    CAPTURE = 1
    FEED = 2
    MERGE = 3


class ZoneRadii(NamedTuple):
    merge: float
    capture: float
    feeding: float


@dataclass
class InteractionOutcome:
    """What one resolver pass produced; the registry applies it."""
    merger: Optional[MergerEvent] = None
    transfers: List[MassTransferEvent] = field(default_factory=list)


def zone_radii(a: Star, b: Star, settings: InteractionSettings) -> ZoneRadii:
    combined = a.radius + b.radius
    feeding = combined * settings.feeding_factor if (a.is_compact or b.is_compact) else 0.0
    return ZoneRadii(
        merge=combined * settings.merge_factor,
        capture=combined * settings.capture_factor,
        feeding=feeding,
    )


def select_predator(a: Star, b: Star) -> Tuple[Star, Star]:
    """
    Return (predator, prey).

    A lone compact object always wins regardless of mass; otherwise the heavier
    body wins and ties go to `a`, the first-indexed body.
    """
    if a.is_compact != b.is_compact:
        return (a, b) if a.is_compact else (b, a)
    if b.mass > a.mass:
        return b, a
    return a, b


def classify_zone(a: Star, b: Star, settings: InteractionSettings) -> Zone:
    """Dominant zone of a pair, by priority MERGE > FEED > CAPTURE > NONE."""
    dist = vec_len(vec_sub(b.position, a.position))
    radii = zone_radii(a, b, settings)
    if dist < radii.merge or dist < settings.min_separation:
        return Zone.MERGE
    if dist < radii.feeding:
        return Zone.FEED
    if dist < radii.capture:
        return Zone.CAPTURE
    return Zone.NONE


def merge_bodies(winner: Star, loser: Star) -> MergerEvent:
    """
    Fold `loser` into `winner` in place.

    Mass adds, velocity becomes the momentum-weighted mean and radius follows
    the equal-density sphere rule r'^3 = rW^3 + rL^3. The winner keeps its
    position and archetype. Removing the loser is up to the registry.
    """
    m_total = winner.mass + loser.mass
    if m_total > 0:
        winner.velocity = (
            (winner.velocity[0] * winner.mass + loser.velocity[0] * loser.mass) / m_total,
            (winner.velocity[1] * winner.mass + loser.velocity[1] * loser.mass) / m_total,
            (winner.velocity[2] * winner.mass + loser.velocity[2] * loser.mass) / m_total,
        )
    winner.mass = m_total
    winner.radius = (winner.radius ** 3 + loser.radius ** 3) ** (1.0 / 3.0)
    return MergerEvent(winner_id=winner.id, loser_id=loser.id)


def _apply_capture_damping(a: Star, b: Star, d, dist: float, dt: float,
                           settings: InteractionSettings) -> None:
    rel = vec_sub(b.velocity, a.velocity)
    radial = vec_dot(rel, d) / dist

    # Separating pairs are pulled back hard; converging ones are barely touched.
    if radial > 0:
        damping = settings.separating_damping * dt
    else:
        damping = settings.approaching_damping * dt

    m_total = a.mass + b.mass
    if m_total <= 0:
        return
    share_a = damping * b.mass / m_total
    share_b = damping * a.mass / m_total
    a.velocity = vec_add(a.velocity, vec_scale(rel, share_a))
    b.velocity = vec_sub(b.velocity, vec_scale(rel, share_b))


def _feed(predator: Star, prey: Star, dt: float,
          settings: InteractionSettings) -> Optional[MassTransferEvent]:
    # Rewinding does not give mass back.
    if dt <= 0 or prey.mass <= settings.min_prey_mass:
        return None
    amount = min(settings.feed_rate * dt, prey.mass - settings.mass_epsilon)
    if amount <= 0:
        return None

    prey.mass -= amount
    prey.consumed_by = predator.id
    prey.is_shredding = True

    drag = settings.spiral_drag * dt
    prey.velocity = vec_sub(prey.velocity, vec_scale(vec_sub(prey.velocity, predator.velocity), drag))
    return MassTransferEvent(source_id=prey.id, target_id=predator.id, amount=amount)


def resolve_interactions(stars: List[Star], engine: GravityEngine,
                         settings: InteractionSettings, dt: float) -> InteractionOutcome:
    """
    Run the pairwise gravity + interaction pass over `stars` for one tick.

    Velocities and prey masses are updated in place. Predator mass credits and
    the merge loser's removal are returned for the registry to apply, so the
    arena keeps its indices stable for the whole pass.
    """
    outcome = InteractionOutcome()
    n = len(stars)
    for i in range(n):
        a = stars[i]
        for j in range(i + 1, n):
            b = stars[j]

            d = vec_sub(b.position, a.position)
            dist_sq = vec_dot(d, d)
            dist = math.sqrt(dist_sq)

            predator, prey = select_predator(a, b)

            # Coincident bodies: no direction to push along, merge straight away.
            if dist < settings.min_separation:
                outcome.merger = merge_bodies(predator, prey)
                return outcome

            engine.apply_pair(a, b, d, dist_sq, dist, dt)

            radii = zone_radii(a, b, settings)
            if dist < radii.merge:
                outcome.merger = merge_bodies(predator, prey)
                return outcome

            if dist < radii.capture:
                _apply_capture_damping(a, b, d, dist, dt, settings)

            if dist < radii.feeding and predator.is_compact:
                transfer = _feed(predator, prey, dt, settings)
                if transfer is not None:
                    logger.debug("Star %s feeding on %s (%.4f)", predator.id, prey.id, transfer.amount)
                    outcome.transfers.append(transfer)

    return outcome
