"""
Tests for the nursery.simulation module.

End-to-end scenarios through the Universe context: merging, feeding, pausing,
rewinding, collapse timing, focus handling, reset and fixed-step advancing.
"""

import os
import random
import sys
import unittest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from nursery.config import UniverseConfig
from nursery.data_models import Archetype, Cloud, MassTransferEvent, MergerEvent, Star
from nursery.simulation import Universe

DT = 1 / 60.0


def quiet_config(**overrides):
    values = dict(initial_clouds=0, initial_rogue_planets=0, spawn_chance=0.0)
    values.update(overrides)
    return UniverseConfig(**values)


def make_star(star_id, mass, position, velocity=(0.0, 0.0, 0.0), radius=1.0,
              archetype=Archetype.YELLOW_DWARF):
    return Star(id=star_id, archetype=archetype, mass=mass, radius=radius,
                position=position, velocity=velocity)


class FailingNarrator:
    def __call__(self, archetype, mass):
        raise ConnectionError("narrator offline")


class TestUniverseScenarios(unittest.TestCase):

    def setUp(self):
        self.universe = Universe(quiet_config(), rng=random.Random(0))
        self.registry = self.universe.registry

    def test_two_star_merger(self):
        self.registry.add_star(make_star(1, 10.0, (0.0, 0.0, 0.0), radius=1.0))
        self.registry.add_star(make_star(2, 20.0, (0.3, 0.0, 0.0), radius=1.5))
        events = []
        self.universe.subscribe(events.append)

        self.universe.tick(DT)

        self.assertEqual(len(self.registry.stars), 1)
        self.assertIsNone(self.registry.get_star(1))
        survivor = self.registry.get_star(2)
        self.assertEqual(survivor.mass, 30.0)
        self.assertAlmostEqual(survivor.radius ** 3, 1.0 + 1.5 ** 3)
        self.assertIsInstance(events[0], MergerEvent)
        self.assertEqual(self.universe.log.latest().title, "Stellar Merger")

    def test_black_hole_feeding(self):
        self.registry.add_star(make_star(1, 90.0, (0.0, 0.0, 0.0), radius=1.0,
                                         archetype=Archetype.BLACK_HOLE))
        self.registry.add_star(make_star(2, 40.0, (10.0, 0.0, 0.0), radius=1.5))
        events = []
        self.universe.subscribe(events.append)

        self.universe.tick(0.05)

        bh = self.registry.get_star(1)
        dwarf = self.registry.get_star(2)
        self.assertAlmostEqual(dwarf.mass, 40.0 - 0.1 * 0.05)
        self.assertAlmostEqual(bh.mass, 90.0 + 0.1 * 0.05)
        self.assertTrue(dwarf.is_shredding)
        self.assertEqual(dwarf.consumed_by, 1)
        self.assertIsInstance(events[0], MassTransferEvent)
        self.assertEqual(self.universe.log.latest().title, "Tidal Disruption")

        snap = self.universe.snapshot()
        self.assertEqual(snap.find(2).predator_position, bh.position)

        # One log entry per feeding relation, not one per tick
        before = len(self.universe.log)
        self.universe.tick(0.05)
        self.assertEqual(len(self.universe.log), before)

    def test_total_mass_conserved_while_feeding(self):
        self.registry.add_star(make_star(1, 95.0, (0.0, 0.0, 0.0), archetype=Archetype.QUASAR, radius=3.0))
        self.registry.add_star(make_star(2, 20.0, (20.0, 0.0, 0.0), velocity=(0.0, 0.0, 1.0), radius=0.8))
        self.registry.add_star(make_star(3, 12.0, (-25.0, 0.0, 5.0), radius=0.8))
        for _ in range(120):
            self.universe.tick(DT)
        total = sum(s.mass for s in self.registry.stars)
        self.assertAlmostEqual(total, 127.0, places=9)

    def test_pause_freezes_everything(self):
        self.registry.add_star(make_star(1, 90.0, (0.0, 0.0, 0.0), archetype=Archetype.BLACK_HOLE))
        self.registry.add_star(make_star(2, 40.0, (8.0, 0.0, 0.0), velocity=(0.0, 0.0, 0.7), radius=1.5))
        self.registry.add_star(make_star(3, 15.0, (-30.0, 2.0, 4.0), velocity=(0.3, 0.0, 0.0)))
        self.universe.set_time_scale(0)
        before = [(s.position, s.velocity, s.mass, s.age) for s in self.registry.stars]
        for _ in range(100):
            self.universe.tick(DT)
        after = [(s.position, s.velocity, s.mass, s.age) for s in self.registry.stars]
        self.assertEqual(before, after)

    def test_rewind_moves_backwards_without_ageing(self):
        star = self.registry.add_star(make_star(1, 10.0, (0.0, 0.0, 0.0), velocity=(1.0, 0.0, 0.0)))
        self.universe.set_time_scale(-2)
        self.universe.tick(0.5)
        self.assertAlmostEqual(star.position[0], -1.0)
        self.assertEqual(star.age, 0.0)

    def test_time_scale_validation(self):
        for scale in (-8, -2, 0, 1, 4, 8):
            self.universe.set_time_scale(scale)
            self.assertEqual(self.universe.time_scale, scale)
        for bad in (3, 0.5, -1, 16):
            with self.assertRaises(ValueError):
                self.universe.set_time_scale(bad)

    def test_positions_advance_with_velocities_after_all_pairs(self):
        # Far enough apart that only gravity acts
        self.registry.add_star(make_star(1, 30.0, (0.0, 0.0, 0.0), velocity=(0.1, 0.0, 0.0)))
        self.registry.add_star(make_star(2, 25.0, (20.0, 0.0, 0.0), velocity=(0.0, 0.0, -0.2)))
        self.registry.add_star(make_star(3, 40.0, (0.0, 1.0, 25.0), velocity=(-0.1, 0.0, 0.1)))
        self.registry.add_star(make_star(4, 15.0, (-22.0, 0.0, -18.0)))
        before = {s.id: (s.position, s.velocity) for s in self.registry.stars}

        self.universe.tick(0.1)

        for star in self.registry.stars:
            p0, v0 = before[star.id]
            self.assertNotEqual(star.velocity, v0)
            for k in range(3):
                self.assertAlmostEqual(star.position[k], p0[k] + star.velocity[k] * 0.1, places=12)
            explicit = tuple(p0[k] + v0[k] * 0.1 for k in range(3))
            self.assertGreater(max(abs(star.position[k] - explicit[k]) for k in range(3)), 1e-6)

    def test_toggle_pause_restores_previous_scale(self):
        self.universe.set_time_scale(4)
        self.assertEqual(self.universe.toggle_pause(), 0)
        self.assertEqual(self.universe.time_scale, 0)
        self.assertEqual(self.universe.toggle_pause(), 4)
        self.universe.set_time_scale(-8)
        self.universe.toggle_pause()
        self.universe.toggle_pause()
        self.assertEqual(self.universe.time_scale, -8)

    def test_log_entries_is_a_copy(self):
        self.universe.log.add("first", "a")
        entries = self.universe.log_entries()
        self.universe.log.add("second", "b")
        self.assertEqual([e.title for e in entries], ["first"])
        self.assertEqual(self.universe.log_entries()[0].title, "second")

    def test_recaptured_prey_is_logged_again(self):
        self.registry.add_star(make_star(1, 90.0, (0.0, 0.0, 0.0), archetype=Archetype.BLACK_HOLE))
        dwarf = self.registry.add_star(make_star(2, 40.0, (10.0, 0.0, 0.0), radius=1.5))

        def disruptions():
            return sum(1 for e in self.universe.log.entries if e.title == "Tidal Disruption")

        self.universe.tick(DT)
        self.universe.tick(DT)
        self.assertEqual(disruptions(), 1)

        # Pausing does not end the feeding relation
        self.universe.set_time_scale(0)
        self.universe.tick(DT)
        self.universe.set_time_scale(1)
        dwarf.position = (10.0, 0.0, 0.0)
        self.universe.tick(DT)
        self.assertEqual(disruptions(), 1)

        dwarf.position = (500.0, 0.0, 0.0)
        dwarf.velocity = (0.0, 0.0, 0.0)
        self.universe.tick(DT)
        dwarf.position = (10.0, 0.0, 0.0)
        self.universe.tick(DT)
        self.assertEqual(disruptions(), 2)


class TestCollapseThroughUniverse(unittest.TestCase):

    def setUp(self):
        self.universe = Universe(quiet_config(), rng=random.Random(3))
        registry = self.universe.registry
        self.cloud = registry.add_cloud(Cloud(registry.next_id(), (0.0, 0.0, 0.0), 95.0, 5.0, 0.2))

    def test_collapse_completes_while_paused(self):
        self.universe.set_time_scale(0)
        self.assertTrue(self.universe.trigger_collapse(self.cloud.id))
        for _ in range(3):
            self.universe.tick(1.0)
        star = self.universe.registry.get_star(self.cloud.id)
        self.assertIsNotNone(star)
        self.assertEqual(star.archetype, Archetype.BLACK_HOLE)
        self.assertEqual(self.universe.focused_id, star.id)
        self.assertTrue(self.universe.log.latest().title.startswith("Birth"))

    def test_collapse_time_independent_of_scale(self):
        self.universe.set_time_scale(8)
        self.universe.trigger_collapse(self.cloud.id)
        self.universe.tick(2.0)
        self.assertIsNone(self.universe.registry.get_star(self.cloud.id))
        self.universe.tick(0.5)
        self.assertIsNotNone(self.universe.registry.get_star(self.cloud.id))

    def test_description_logged_after_birth(self):
        self.universe.trigger_collapse(self.cloud.id)
        self.universe.tick(2.5)
        self.assertEqual(self.universe.narratives.process_pending(), 1)
        self.universe.tick(0.0)
        entry = self.universe.log.latest()
        self.assertTrue(entry.title.startswith("Analysis"))
        self.assertIn("black hole", entry.content)

    def test_narrator_failure_uses_fallback(self):
        universe = Universe(quiet_config(), rng=random.Random(3), narrator=FailingNarrator())
        cloud = universe.registry.add_cloud(Cloud(universe.registry.next_id(), (0.0, 0.0, 0.0), 20.0, 5.0, 0.2))
        universe.trigger_collapse(cloud.id)
        universe.tick(2.5)
        with self.assertLogs("nursery.narrative", level="WARNING"):
            universe.narratives.process_pending()
        universe.tick(DT)
        self.assertEqual(universe.log.latest().content, universe.config.narrative_fallback)
        self.assertIsNotNone(universe.registry.get_star(cloud.id))


class TestFocusAndReset(unittest.TestCase):

    def setUp(self):
        self.universe = Universe(quiet_config(initial_clouds=15, initial_rogue_planets=3), seed=11)

    def test_reset_populates(self):
        self.universe.set_time_scale(8)
        self.universe.reset()
        self.assertEqual(self.universe.registry.cloud_count, 15)
        self.assertEqual(len(self.universe.registry.stars), 3)
        self.assertEqual(self.universe.time_scale, 1)
        self.assertIsNone(self.universe.focused_id)
        self.assertEqual(len(self.universe.log), 1)

    def test_reset_discards_stale_descriptions(self):
        self.universe.reset()
        cloud_id = next(iter(self.universe.registry.clouds))
        self.universe.trigger_collapse(cloud_id)
        self.universe.tick(2.5)
        self.universe.reset()
        self.universe.narratives.process_pending()
        self.universe.tick(0.0)
        self.assertEqual(len(self.universe.log), 1)

    def test_focus_unknown_body(self):
        self.universe.reset()
        with self.assertRaises(KeyError):
            self.universe.focus(10 ** 6)
        self.universe.focus(None)
        self.assertIsNone(self.universe.focused_id)

    def test_focus_moves_to_merge_winner(self):
        registry = self.universe.registry
        winner = registry.add_star(make_star(registry.next_id(), 30.0, (500.0, 0.0, 0.0)))
        loser = registry.add_star(make_star(registry.next_id(), 5.0, (500.2, 0.0, 0.0)))
        self.universe.focus(loser.id)
        self.universe.tick(DT)
        self.assertEqual(self.universe.focused_id, winner.id)

    def test_log_is_most_recent_first(self):
        log = self.universe.log
        log.add("first", "a")
        log.add("second", "b")
        self.assertEqual([e.title for e in log.entries[:2]], ["second", "first"])


class TestFixedStep(unittest.TestCase):

    def test_same_result_for_different_frame_rates(self):
        def run(frame_delta, frames):
            universe = Universe(quiet_config(), rng=random.Random(0))
            registry = universe.registry
            registry.add_star(make_star(1, 30.0, (0.0, 0.0, 0.0)))
            registry.add_star(make_star(2, 10.0, (12.0, 0.0, 0.0), velocity=(0.0, 0.0, 0.8)))
            for _ in range(frames):
                universe.advance(frame_delta)
            return [s.position for s in registry.stars]

        slow = run(1 / 30.0, 30)
        fast = run(1 / 60.0, 60)
        for a, b in zip(slow, fast):
            for k in range(3):
                self.assertAlmostEqual(a[k], b[k], places=9)

    def test_long_frames_are_clamped(self):
        universe = Universe(quiet_config(), rng=random.Random(0))
        steps = universe.advance(5.0)
        self.assertLessEqual(steps, universe.config.max_substeps)
        self.assertLessEqual(universe.elapsed, universe.config.max_frame_delta + 1e-9)


if __name__ == "__main__":
    unittest.main()
