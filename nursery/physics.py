#!/usr/bin/env python3
"""
Core Physics Engine for Stellar Nursery

Responsibilities
- Compute pairwise softened gravity between stars and apply it to their velocities.
- Advance positions with a semi-implicit (symplectic) Euler step.
- Accumulate stellar age and advance the kinematic planet retinues.

Units and conventions
- Simulation units throughout; G and the softening term are tuned for a universe of
  tens of bodies spread over a few hundred units.
- `dt` is the scaled time step: frame delta multiplied by the time scale. It may be
  negative (rewind); zero means paused and the caller skips physics entirely.

Numerical notes
- Softening: the force law is F = G * mA * mB / (r^2 + S). S is added to r^2 only in the
  magnitude; the direction still uses the true separation, so callers must guard
  near-zero distances (the interaction resolver merges such pairs instead).
- Complexity: O(N^2) per tick by direct pair iteration. Fine for tens of bodies.
- Ordering: every velocity update of a tick (gravity, damping, drag) completes before
  `integrate_positions` moves anything. Positions then advance with the new velocities.

Threading
- Pure compute; callers hold the Universe lock.
"""

from typing import Iterable, List

from . import constants as C
from .data_models import Star
from .vector_utils import ZERO, Vec3, vec_add, vec_dot, vec_len, vec_scale, vec_sub


class GravityEngine:
    """
    Softened Newtonian gravity with semi-implicit Euler integration.

    The force on A due to B is
        F = G * mA * mB / (r^2 + S) * d_hat,  d = posB - posA
    and B receives exactly -F.
    """

    def __init__(self, gravity: float = C.G, softening: float = C.SOFTENING,
                 age_rate: float = C.AGE_RATE):
        self.gravity = float(gravity)
        self.softening = max(0.0, float(softening))
        self.age_rate = float(age_rate)

    def force_magnitude(self, mass_a: float, mass_b: float, dist_sq: float) -> float:
        # Mass product first so swapping the pair cannot change the rounding.
        return self.gravity * (mass_a * mass_b) / (dist_sq + self.softening)

    def force_between(self, a: Star, b: Star) -> Vec3:
        """
        Return the gravitational force vector acting on `a` due to `b`.

        Coincident bodies have no defined direction; the zero vector is returned.
        """
        d = vec_sub(b.position, a.position)
        dist = vec_len(d)
        if dist == 0:
            return ZERO
        force = self.force_magnitude(a.mass, b.mass, vec_dot(d, d))
        return vec_scale(d, force / dist)

    def apply_pair(self, a: Star, b: Star, d: Vec3, dist_sq: float, dist: float, dt: float) -> None:
        """
        Apply one pair's gravity to both velocities.

        Args:
            a, b: The pair; `d` is b.position - a.position.
            dist_sq, dist: |d|^2 and |d| (dist must be > 0).
            dt: Scaled time step.
        """
        force = self.force_magnitude(a.mass, b.mass, dist_sq)
        fx = force * d[0] / dist
        fy = force * d[1] / dist
        fz = force * d[2] / dist

        if a.mass > 0:
            k = dt / a.mass
            a.velocity = (a.velocity[0] + fx * k, a.velocity[1] + fy * k, a.velocity[2] + fz * k)
        if b.mass > 0:
            k = dt / b.mass
            b.velocity = (b.velocity[0] - fx * k, b.velocity[1] - fy * k, b.velocity[2] - fz * k)

    def advance_ages(self, stars: Iterable[Star], dt: float) -> None:
        """Age only moves forward: rewinding never makes a star younger."""
        if dt <= 0:
            return
        for star in stars:
            star.age += dt * self.age_rate

    def integrate_positions(self, stars: List[Star], dt: float) -> None:
        """Second half of the semi-implicit step: x += v * dt with the updated velocities."""
        for star in stars:
            star.position = vec_add(star.position, vec_scale(star.velocity, dt))
            for planet in star.planets:
                planet.advance(dt)
