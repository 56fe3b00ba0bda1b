"""
Tests for the nursery.camera module.
"""

import os
import sys
import unittest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from nursery.camera import TopDownCamera


class TestTopDownCamera(unittest.TestCase):

    def setUp(self):
        self.camera = TopDownCamera(center=(10.0, -5.0), units_per_pixel=0.5)
        self.camera.set_viewport_size(800, 600)

    def test_centre_maps_to_middle_of_view(self):
        self.assertEqual(self.camera.world_to_screen((10.0, 99.0, -5.0)), (400, 300))

    def test_screen_round_trip_drops_height(self):
        world = self.camera.screen_to_world((500, 200))
        self.assertEqual(world, (60.0, 0.0, -55.0))
        self.assertEqual(self.camera.world_to_screen(world), (500, 200))

    def test_zoom_keeps_pivot_fixed(self):
        pivot = (620, 150)
        before = self.camera.screen_to_world(pivot)
        self.camera.zoom(2.0, pivot_screen=pivot)
        after = self.camera.screen_to_world(pivot)
        self.assertAlmostEqual(self.camera.upp, 0.25)
        self.assertAlmostEqual(before[0], after[0])
        self.assertAlmostEqual(before[2], after[2])

    def test_follow_eases_towards_target(self):
        self.camera.follow((20.0, 0.0, 5.0), 0.5)
        self.assertEqual(self.camera.center, [15.0, 0.0])
        self.camera.follow((20.0, 0.0, 5.0), 3.0)
        self.assertEqual(self.camera.center, [20.0, 5.0])


if __name__ == "__main__":
    unittest.main()
