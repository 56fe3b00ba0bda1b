#!/usr/bin/env python3
"""
Camera utilities for the top-down world-to-screen transform.

The galactic plane is x/z; the viewer looks down the y axis, so world z maps to
screen y.
"""
from typing import Optional, Tuple

from .constants import (
    DEFAULT_UNITS_PER_PIXEL,
    MIN_UNITS_PER_PIXEL,
    MAX_UNITS_PER_PIXEL,
    VIEW_WIDTH,
    VIEW_HEIGHT,
)
from .vector_utils import Vec3, clamp


class TopDownCamera:
    """
    Simple camera mapping world (x, z) to screen pixels, with a follow target.
    """

    def __init__(self, center=(0.0, 0.0), units_per_pixel=DEFAULT_UNITS_PER_PIXEL):
        self.center = [center[0], center[1]]
        self.upp = units_per_pixel
        self.viewport_size = (VIEW_WIDTH, VIEW_HEIGHT)

    def set_viewport_size(self, w: int, h: int) -> None:
        self.viewport_size = (w, h)

    def world_to_screen(self, pos: Vec3) -> Tuple[int, int]:
        cx, cz = self.center
        px = (pos[0] - cx) / self.upp + self.viewport_size[0] / 2
        py = (pos[2] - cz) / self.upp + self.viewport_size[1] / 2
        return (int(px), int(py))

    def screen_to_world(self, screen: Tuple[int, int]) -> Vec3:
        cx, cz = self.center
        wx = (screen[0] - self.viewport_size[0] / 2) * self.upp + cx
        wz = (screen[1] - self.viewport_size[1] / 2) * self.upp + cz
        return (wx, 0.0, wz)

    def to_pixels(self, length: float) -> float:
        return length / self.upp

    def zoom(self, factor, pivot_screen: Optional[Tuple[int, int]] = None):
        factor = clamp(factor, 0.05, 20.0)
        before = None
        if pivot_screen is not None:
            before = self.screen_to_world(pivot_screen)
        self.upp = clamp(self.upp * (1.0 / factor), MIN_UNITS_PER_PIXEL, MAX_UNITS_PER_PIXEL)
        if pivot_screen is not None and before is not None:
            after = self.screen_to_world(pivot_screen)
            self.center[0] += (before[0] - after[0])
            self.center[1] += (before[2] - after[2])

    def pan_pixels(self, dx_pixels, dy_pixels):
        self.center[0] -= dx_pixels * self.upp
        self.center[1] -= dy_pixels * self.upp

    def follow(self, target: Vec3, rate: float) -> None:
        """Ease the centre toward `target`; rate is the fraction covered this frame."""
        t = clamp(rate, 0.0, 1.0)
        self.center[0] += (target[0] - self.center[0]) * t
        self.center[1] += (target[2] - self.center[1]) * t
