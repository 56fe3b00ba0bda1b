#!/usr/bin/env python3
"""
Universe: the single owning simulation context.

Every entry point (tick, advance, collapse trigger, reset, focus, time scale)
goes through one Universe instance; there is no module-level state. The viewer
thread and the control UI both call in, so all access is guarded by a
re-entrant lock.

Tick order
(a) age update
(b) pairwise gravity + interaction pass; the registry then removes the merge
    loser and credits predators with the mass their prey lost
(c) position (and planet) integration
(d) lifecycle: collapse timers and the spawner, on wall time
Finished narrative descriptions are applied last, whatever the time scale.
"""
import logging
import random
import threading
from typing import Callable, List, Optional, Tuple

from .config import UniverseConfig
from .constants import TIME_SCALES
from .data_models import (
    CloudSnapshot,
    MassTransferEvent,
    MergerEvent,
    PlanetSnapshot,
    StarSnapshot,
    UniverseSnapshot,
)
from .interactions import InteractionSettings, resolve_interactions
from .lifecycle import LifecycleDriver
from .logbook import CosmicLog, LogEntry
from .narrative import Narrator, NarrativeQueue, NarrativeRequest
from .physics import GravityEngine
from .registry import BodyRegistry
from .vector_utils import clamp

logger = logging.getLogger(__name__)

EventListener = Callable[[object], None]


class Universe:
    """
    Owns the registry and every subsystem acting on it.

    Args:
        config: Tunables; defaults to UniverseConfig().
        seed: Seed for the universe's random source (ignored when `rng` is given).
        narrator: Callable (archetype, mass) -> str for birth descriptions.
        rng: Explicit random source, mainly for tests.
    """

    def __init__(self, config: Optional[UniverseConfig] = None, seed: Optional[int] = None,
                 narrator: Optional[Narrator] = None, rng: Optional[random.Random] = None):
        self.lock = threading.RLock()
        self.config = config or UniverseConfig()
        cfg = self.config
        self.rng = rng or random.Random(seed)
        self.registry = BodyRegistry(strict=cfg.strict)
        self.engine = GravityEngine(cfg.gravity, cfg.softening, cfg.age_rate)
        self.settings = InteractionSettings.from_config(cfg)
        self.lifecycle = LifecycleDriver(self.registry, cfg, self.rng)
        self.log = CosmicLog(cfg.log_capacity)
        self.narratives = NarrativeQueue(narrator, cfg.narrative_fallback)

        self.time_scale = 1.0
        self._resume_scale = 1.0
        self.focused_id: Optional[int] = None
        self.elapsed = 0.0
        self._accumulator = 0.0
        self._epoch = 0
        self._listeners: List[EventListener] = []

    # -----------------------
    # Control surface
    # -----------------------

    def set_time_scale(self, scale: float) -> None:
        if scale not in TIME_SCALES:
            raise ValueError(f"Time scale must be one of {TIME_SCALES}, got {scale!r}")
        with self.lock:
            self.time_scale = float(scale)

    def toggle_pause(self) -> float:
        """Pause, or resume at the scale that was active before pausing. Returns the new scale."""
        with self.lock:
            if self.time_scale == 0:
                self.time_scale = self._resume_scale
            else:
                self._resume_scale = self.time_scale
                self.time_scale = 0.0
            return self.time_scale

    def focus(self, body_id: Optional[int]) -> None:
        with self.lock:
            if body_id is not None and body_id not in self.registry:
                raise KeyError(body_id)
            self.focused_id = body_id

    def trigger_collapse(self, cloud_id: int) -> bool:
        with self.lock:
            return self.lifecycle.trigger_collapse(cloud_id)

    def reset(self) -> None:
        """Reinitialize to the configured number of dormant clouds and rogue planets."""
        with self.lock:
            self._epoch += 1
            self.registry.clear()
            self.log.clear()
            self.narratives.drain()
            self.lifecycle.populate()
            self.time_scale = 1.0
            self._resume_scale = 1.0
            self.focused_id = None
            self.elapsed = 0.0
            self._accumulator = 0.0
            self.log.add("Simulated Big Bang",
                         "Universe restarted. Hydrogen clouds are scattered; watch gravitational "
                         "formation and orbital capture unfold.")
            logger.info("Universe reset: %d clouds, %d stars",
                        self.registry.cloud_count, len(self.registry.stars))

    def subscribe(self, listener: EventListener) -> None:
        """Register a callback receiving every Merger/MassTransfer/Birth event."""
        with self.lock:
            self._listeners.append(listener)

    def start(self) -> None:
        self.narratives.start()

    def close(self) -> None:
        self.narratives.stop()

    # -----------------------
    # Stepping
    # -----------------------

    def advance(self, real_delta: float) -> int:
        """
        Advance by a real frame delta using fixed ticks.

        The delta is clamped, accumulated, and consumed in `fixed_dt` steps so the
        outcome does not depend on the frame rate. Returns the number of ticks run.
        """
        cfg = self.config
        with self.lock:
            self._accumulator += clamp(real_delta, 0.0, cfg.max_frame_delta)
            steps = 0
            while self._accumulator >= cfg.fixed_dt - 1e-12 and steps < cfg.max_substeps:
                self.tick(cfg.fixed_dt)
                self._accumulator -= cfg.fixed_dt
                steps += 1
            if steps == cfg.max_substeps:
                self._accumulator = min(self._accumulator, cfg.fixed_dt)
            return steps

    def tick(self, frame_delta: float) -> None:
        """Run one simulation step for `frame_delta` wall seconds."""
        with self.lock:
            dt = frame_delta * self.time_scale
            if dt != 0:
                self._step_physics(dt)

            self.elapsed += frame_delta
            for event, star in self.lifecycle.update(frame_delta, self.elapsed):
                self.log.record_birth(event, star.mass)
                self.focused_id = star.id
                self.narratives.submit(NarrativeRequest(star.id, star.archetype, star.mass, self._epoch))
                self._emit(event)

            self._apply_narratives()

    def _step_physics(self, dt: float) -> None:
        stars = self.registry.stars
        self.engine.advance_ages(stars, dt)

        outcome = resolve_interactions(stars, self.engine, self.settings, dt)
        for star in stars:
            self.registry.check_mass(star)
        if outcome.merger is not None:
            self._apply_merger(outcome.merger)
        feeding = set()
        for transfer in outcome.transfers:
            pair = self._apply_transfer(transfer, outcome.merger)
            if pair is not None:
                feeding.add(pair)
        if dt > 0:
            # Prey that slipped out of range gets a fresh entry if caught again
            self.log.retain_feeding(feeding)

        self.engine.integrate_positions(self.registry.stars, dt)

    def _apply_merger(self, event: MergerEvent) -> None:
        winner = self.registry.get_star(event.winner_id)
        loser = self.registry.get_star(event.loser_id)
        if winner is None or loser is None:
            return
        self.log.record_merger(event, winner, loser)
        self.registry.remove_star(event.loser_id, successor_id=event.winner_id)
        if self.focused_id == event.loser_id:
            self.focused_id = event.winner_id
        logger.info("Merger: %s #%s absorbed %s #%s (mass now %.2f)",
                    winner.archetype.label, winner.id, loser.archetype.label, loser.id, winner.mass)
        self._emit(event)

    def _apply_transfer(self, event: MassTransferEvent,
                        merger: Optional[MergerEvent]) -> Optional[Tuple[int, int]]:
        target_id = event.target_id
        if merger is not None and target_id == merger.loser_id:
            target_id = merger.winner_id
        if not self.registry.credit_mass(target_id, event.amount):
            return None
        source = self.registry.get_star(event.source_id)
        target = self.registry.get_star(target_id)
        if source is not None:
            self.log.record_transfer(event, source, target)
        self._emit(event)
        return (event.source_id, target_id)

    def _apply_narratives(self) -> None:
        for result in self.narratives.drain():
            if result.epoch != self._epoch:
                continue
            self.log.record_description(result.archetype, result.star_id, result.text)

    def _emit(self, event) -> None:
        for listener in list(self._listeners):
            listener(event)

    # -----------------------
    # Read side
    # -----------------------

    def log_entries(self) -> List[LogEntry]:
        """Copy of the cosmic log, newest first."""
        with self.lock:
            return self.log.entries

    def snapshot(self) -> UniverseSnapshot:
        """Immutable copy of the current state for renderers and UIs."""
        with self.lock:
            registry = self.registry
            stars = []
            for s in registry.stars:
                predator = registry.get_star(s.consumed_by) if s.consumed_by is not None else None
                stars.append(StarSnapshot(
                    id=s.id,
                    archetype=s.archetype,
                    mass=s.mass,
                    position=s.position,
                    velocity=s.velocity,
                    radius=s.radius,
                    color=s.color,
                    secondary_color=s.secondary_color,
                    luminosity=s.luminosity,
                    rotation_speed=s.rotation_speed,
                    accretion_disk=s.accretion_disk,
                    age=s.age,
                    is_shredding=s.is_shredding,
                    consumed_by=s.consumed_by,
                    predator_position=predator.position if predator is not None else None,
                    planets=tuple(
                        PlanetSnapshot(p.id, p.distance, p.size, p.angle, p.color, p.kind)
                        for p in s.planets
                    ),
                ))
            clouds = tuple(
                CloudSnapshot(c.id, c.position, c.mass, c.size, c.rotation_speed,
                              c.is_collapsing, c.collapse_progress)
                for c in registry.clouds.values()
            )
            return UniverseSnapshot(
                stars=tuple(stars),
                clouds=clouds,
                time_scale=self.time_scale,
                elapsed=self.elapsed,
                focused_id=self.focused_id,
            )
