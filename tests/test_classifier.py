"""
Tests for the nursery.classifier module.

Mass bands, the binary draw, stellar profiles and planet retinue generation.
"""

import math
import os
import random
import sys
import unittest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from nursery.classifier import PROFILES, archetype_for, classify, generate_planets
from nursery.data_models import Archetype, PlanetKind


class TestArchetypeBands(unittest.TestCase):
    """Tests for archetype_for."""

    def test_brown_dwarf_regardless_of_draw(self):
        for draw in (0.0, 0.5, 0.99):
            self.assertEqual(archetype_for(10, draw), Archetype.BROWN_DWARF)

    def test_band_edges(self):
        self.assertEqual(archetype_for(14.999, 0.0), Archetype.BROWN_DWARF)
        self.assertEqual(archetype_for(15, 0.0), Archetype.RED_DWARF)
        self.assertEqual(archetype_for(30, 0.0), Archetype.YELLOW_DWARF)
        self.assertEqual(archetype_for(60, 0.0), Archetype.BLUE_GIANT)
        self.assertEqual(archetype_for(80, 0.0), Archetype.NEUTRON_STAR)
        self.assertEqual(archetype_for(90, 0.0), Archetype.BLACK_HOLE)
        self.assertEqual(archetype_for(97.9, 0.0), Archetype.BLACK_HOLE)
        self.assertEqual(archetype_for(98, 0.0), Archetype.QUASAR)

    def test_binary_needs_draw_above_threshold(self):
        self.assertEqual(archetype_for(50, 0.81), Archetype.BINARY_STAR)
        self.assertEqual(archetype_for(50, 0.95), Archetype.BINARY_STAR)
        self.assertEqual(archetype_for(50, 0.8), Archetype.YELLOW_DWARF)
        self.assertEqual(archetype_for(50, 0.2), Archetype.YELLOW_DWARF)

    def test_quasar_at_top(self):
        self.assertEqual(archetype_for(99, 0.0), Archetype.QUASAR)
        self.assertEqual(archetype_for(99, 0.9), Archetype.QUASAR)

    def test_never_produces_rogue_or_supermassive(self):
        produced = {archetype_for(m, d) for m in range(0, 101) for d in (0.1, 0.9)}
        self.assertNotIn(Archetype.ROGUE_PLANET, produced)
        self.assertNotIn(Archetype.SUPERMASSIVE_BLACK_HOLE, produced)


class TestCompactCapability(unittest.TestCase):

    def test_compact_archetypes(self):
        compact = {a for a in Archetype if a.is_compact}
        self.assertEqual(compact, {Archetype.BLACK_HOLE, Archetype.SUPERMASSIVE_BLACK_HOLE, Archetype.QUASAR})

    def test_every_archetype_has_a_profile(self):
        for archetype in Archetype:
            self.assertIn(archetype, PROFILES)
            self.assertGreater(PROFILES[archetype].radius, 0)


class TestClassify(unittest.TestCase):

    def test_profile_values(self):
        result = classify(50, 0.9, random.Random(1))
        self.assertEqual(result.archetype, Archetype.BINARY_STAR)
        self.assertEqual(result.profile.radius, 1.2)
        self.assertIsNotNone(result.profile.secondary_color)

        brown = classify(5, 0.5, random.Random(1))
        self.assertFalse(brown.profile.accretion_disk)
        self.assertEqual(brown.profile.radius, 0.6)

    def test_deterministic_with_seeded_rng(self):
        a = classify(70, 0.3, random.Random(42), planet_prefix="7")
        b = classify(70, 0.3, random.Random(42), planet_prefix="7")
        self.assertEqual(a, b)


class TestPlanets(unittest.TestCase):

    def test_count_between_two_and_seven(self):
        rng = random.Random(3)
        counts = {len(generate_planets(1.0, rng)) for _ in range(300)}
        self.assertTrue(counts <= set(range(2, 8)))
        self.assertIn(2, counts)
        self.assertIn(7, counts)

    def test_speed_falls_with_index(self):
        rng = random.Random(5)
        for _ in range(50):
            for i, planet in enumerate(generate_planets(1.5, rng)):
                low = 0.8 / math.sqrt(i + 1)
                high = 1.8 / math.sqrt(i + 1)
                self.assertGreaterEqual(planet.speed, low)
                self.assertLessEqual(planet.speed, high)

    def test_kinds_and_ids(self):
        planets = generate_planets(1.0, random.Random(11), prefix="12")
        for i, planet in enumerate(planets):
            self.assertEqual(planet.id, f"12.{i}")
            self.assertIn(planet.kind, (PlanetKind.ROCKY, PlanetKind.GAS))
            self.assertEqual(planet.mass, 0.01 if planet.kind is PlanetKind.GAS else 0.002)
            self.assertGreaterEqual(planet.distance, 4.0 + 2 * i)

    def test_gas_share_roughly_forty_percent(self):
        rng = random.Random(9)
        kinds = [p.kind for _ in range(400) for p in generate_planets(1.0, rng)]
        share = kinds.count(PlanetKind.GAS) / len(kinds)
        self.assertGreater(share, 0.3)
        self.assertLess(share, 0.5)


if __name__ == "__main__":
    unittest.main()
