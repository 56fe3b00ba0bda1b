#!/usr/bin/env python3
"""
Stellar Nursery application entry point and UI/renderer coordination.

What this module does
- Starts two event loops: a Pygame rendering thread (viewport) and the Dear PyGui UI
  (running on the main thread).
- Both share one nursery.simulation.Universe; its re-entrant lock guards every call,
  and the viewport only ever draws from immutable snapshots.
- The Dear PyGui window is the control surface: time scale, universe reset, focus
  selection and the cosmic log.

Threading model
- PygameRenderer runs in a background thread and performs: input handling (for the viewport),
  advancing the universe with fixed ticks, and drawing a snapshot.
- The UI class runs in the main thread via Dear PyGui. It refreshes on a periodic frame
  callback and calls Universe methods directly; these are lock-protected.
- Birth descriptions are produced on the Universe's narrative worker thread.

Viewport controls
- Left click a cloud: trigger its collapse. Left click a star: focus (camera follows).
- Right/middle drag or arrows: pan. Wheel: zoom. Space: pause/play. R: reset.

Running
1) Install dependencies: `pip install -e .`
2) Run this module: `python stellar_nursery.py [--preset crowded.json] [--seed 7]`
"""

import argparse
import logging
import math
import threading
import time
from typing import Optional

# GUI and Rendering libs
import pygame
from pygame import gfxdraw
import dearpygui.dearpygui as dpg

from nursery.camera import TopDownCamera
from nursery.config import list_presets, load_preset
from nursery.constants import (
    BACKGROUND_COLOR,
    CLOUD_COLOR,
    DEFAULT_UNITS_PER_PIXEL,
    DISK_COLOR,
    FOCUS_COLOR,
    PURPLE,
    SAFE_COORD_LIMIT,
    STREAM_COLOR,
    TIME_SCALES,
    VIEW_HEIGHT,
    VIEW_WIDTH,
)
from nursery.data_models import UniverseSnapshot
from nursery.simulation import Universe

logger = logging.getLogger("stellar_nursery")

PLANETS_VISIBLE_AGE = 20.0  # retinues stay latent while the star's dust settles
CAMERA_FOLLOW_RATE = 2.0  # fraction of the remaining distance per second

# ============================================================
# Pygame Renderer Thread
# ============================================================

class PygameRenderer(threading.Thread):
    """
    Pygame loop: advances the universe and draws clouds, stars, disks, planets and
    matter streams. Handles picking, camera panning and zoom.
    """
    def __init__(self, universe: Universe):
        super().__init__(daemon=True)
        self.universe = universe
        self.camera = TopDownCamera(center=(0.0, 0.0))
        self.surface = None
        self.clock = None
        self.dragging_background = False
        self.drag_start_screen = (0, 0)
        self.pan_speed_keys = 600  # pixels per second
        self.running = True

    def run(self):
        pygame.init()
        pygame.display.set_caption("Stellar Nursery - Viewport")
        self.surface = pygame.display.set_mode((VIEW_WIDTH, VIEW_HEIGHT), pygame.RESIZABLE)
        self.camera.set_viewport_size(VIEW_WIDTH, VIEW_HEIGHT)
        self.clock = pygame.time.Clock()

        last_time = time.perf_counter()
        while self.running:
            now = time.perf_counter()
            real_dt = now - last_time
            last_time = now

            self.handle_events(real_dt)
            self.universe.advance(real_dt)

            snap = self.universe.snapshot()
            self.follow_focus(snap, real_dt)
            self.draw(snap)

            self.clock.tick(60)

        pygame.quit()

    def follow_focus(self, snap: UniverseSnapshot, real_dt: float):
        if snap.focused_id is None:
            return
        target = snap.find(snap.focused_id)
        if target is not None:
            self.camera.follow(target.position, CAMERA_FOLLOW_RATE * real_dt)

    def toggle_pause(self):
        self.universe.toggle_pause()

    def reset_universe(self):
        """Restart the universe and bring the view back to the origin."""
        self.universe.reset()
        self.camera.center = [0.0, 0.0]
        self.camera.upp = DEFAULT_UNITS_PER_PIXEL

    def pick(self, screen_pos):
        """Collapse the cloud or focus the star under the cursor."""
        snap = self.universe.snapshot()
        world = self.camera.screen_to_world(screen_pos)
        best_id, best_d, best_is_cloud = None, float("inf"), False
        for c in snap.clouds:
            d = math.hypot(c.position[0] - world[0], c.position[2] - world[2])
            if d < c.size and d < best_d:
                best_id, best_d, best_is_cloud = c.id, d, True
        pick_radius = self.camera.upp * 10
        for s in snap.stars:
            d = math.hypot(s.position[0] - world[0], s.position[2] - world[2])
            if d < max(s.radius * 2, pick_radius) and d < best_d:
                best_id, best_d, best_is_cloud = s.id, d, False
        if best_id is None:
            return False
        if best_is_cloud:
            self.universe.trigger_collapse(best_id)
            return True
        try:
            self.universe.focus(best_id)
        except KeyError:
            # merged away since the snapshot
            return False
        return True

    def handle_events(self, real_dt):
        keys = pygame.key.get_pressed()
        if keys[pygame.K_LEFT]:
            self.camera.pan_pixels(self.pan_speed_keys * real_dt, 0)
        if keys[pygame.K_RIGHT]:
            self.camera.pan_pixels(-self.pan_speed_keys * real_dt, 0)
        if keys[pygame.K_UP]:
            self.camera.pan_pixels(0, self.pan_speed_keys * real_dt)
        if keys[pygame.K_DOWN]:
            self.camera.pan_pixels(0, -self.pan_speed_keys * real_dt)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False

            elif event.type == pygame.VIDEORESIZE:
                self.surface = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
                self.camera.set_viewport_size(event.w, event.h)

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_SPACE:
                    self.toggle_pause()
                elif event.key == pygame.K_r:
                    self.reset_universe()

            elif event.type == pygame.MOUSEWHEEL:
                factor = 1.1 if event.y > 0 else 1.0/1.1
                self.camera.zoom(factor, pygame.mouse.get_pos())

            elif event.type == pygame.MOUSEBUTTONDOWN:
                if event.button == 1:
                    if not self.pick(pygame.mouse.get_pos()):
                        self.universe.focus(None)
                elif event.button in (2, 3):
                    self.dragging_background = True
                    self.drag_start_screen = pygame.mouse.get_pos()

            elif event.type == pygame.MOUSEBUTTONUP:
                if event.button in (2, 3):
                    self.dragging_background = False

            elif event.type == pygame.MOUSEMOTION:
                if self.dragging_background:
                    mouse = pygame.mouse.get_pos()
                    dx = mouse[0] - self.drag_start_screen[0]
                    dy = mouse[1] - self.drag_start_screen[1]
                    self.camera.pan_pixels(dx, dy)
                    self.drag_start_screen = mouse

    def draw(self, snap: UniverseSnapshot):
        surf = self.surface
        surf.fill(BACKGROUND_COLOR)
        cam = self.camera

        # Clouds shrink and brighten while collapsing
        for c in snap.clouds:
            p = _safe_point(cam.world_to_screen(c.position))
            if not p:
                continue
            scale = 1.0 - 0.8 * c.collapse_progress
            r = max(2, min(400, int(cam.to_pixels(c.size * scale))))
            alpha = 60 + int(140 * c.collapse_progress)
            try:
                gfxdraw.filled_circle(surf, p[0], p[1], r, (*CLOUD_COLOR, alpha))
                gfxdraw.aacircle(surf, p[0], p[1], r, (*CLOUD_COLOR, min(255, alpha + 40)))
            except (OverflowError, ValueError):
                pass

        # Matter streams from shredding prey to their predator
        for s in snap.stars:
            if s.is_shredding and s.predator_position is not None:
                a = _safe_point(cam.world_to_screen(s.position))
                b = _safe_point(cam.world_to_screen(s.predator_position))
                if a and b:
                    pygame.draw.aaline(surf, STREAM_COLOR, a, b)

        for s in snap.stars:
            p = _safe_point(cam.world_to_screen(s.position))
            if not p:
                continue
            r = max(2, min(60, int(cam.to_pixels(s.radius))))

            if s.accretion_disk:
                try:
                    gfxdraw.aacircle(surf, p[0], p[1], int(r * 2.2), DISK_COLOR)
                except (OverflowError, ValueError):
                    pass

            if s.secondary_color is not None:
                ang = s.age * 0.05
                offset = int(r * 1.6)
                q = (p[0] + int(math.cos(ang) * offset), p[1] + int(math.sin(ang) * offset))
                gfxdraw.filled_circle(surf, q[0], q[1], max(2, r // 2), s.secondary_color)

            gfxdraw.filled_circle(surf, p[0], p[1], r, s.color)
            # Dark bodies get an event-horizon glow so they stay visible
            outline = PURPLE if s.luminosity == 0 and s.archetype.is_compact else (0, 0, 0)
            gfxdraw.aacircle(surf, p[0], p[1], r, outline)

            if s.age > PLANETS_VISIBLE_AGE:
                for planet in s.planets:
                    dist_px = cam.to_pixels(planet.distance)
                    pp = (p[0] + int(math.cos(planet.angle) * dist_px), p[1] + int(math.sin(planet.angle) * dist_px))
                    pp = _safe_point(pp)
                    if pp:
                        gfxdraw.filled_circle(surf, pp[0], pp[1], max(1, int(cam.to_pixels(planet.size))), planet.color)

            if s.id == snap.focused_id:
                gfxdraw.aacircle(surf, p[0], p[1], r + 6, FOCUS_COLOR)

        draw_text(surf, "Click cloud: collapse | Click star: focus | Right-drag: pan | Wheel: zoom | Space: pause | R: reset", 10, 10, (200, 200, 200))
        state = "Paused" if snap.time_scale == 0 else f"{snap.time_scale:+.0f}x"
        draw_text(surf, f"Time: {state}   Stars: {len(snap.stars)}   Clouds: {len(snap.clouds)}", 10, 30, (200, 200, 200))

        pygame.display.flip()

_cached_font = None

def draw_text(surface, text, x, y, color):
    global _cached_font
    if not pygame.font.get_init():
        pygame.font.init()
    if _cached_font is None:
        _cached_font = pygame.font.SysFont("consolas", 16)
    img = _cached_font.render(text, True, color)
    surface.blit(img, (x, y))

def _safe_point(pt):
    try:
        x, y = int(pt[0]), int(pt[1])
    except (TypeError, ValueError, OverflowError):
        return None
    if -SAFE_COORD_LIMIT <= x <= SAFE_COORD_LIMIT and -SAFE_COORD_LIMIT <= y <= SAFE_COORD_LIMIT:
        return (x, y)
    return None

# ============================================================
# Dear PyGui UI
# ============================================================

class UI:
    """
    Dear PyGui interface: time scale, reset, focus list and the cosmic log.
    """
    def __init__(self, universe: Universe, renderer: PygameRenderer):
        self.universe = universe
        self.renderer = renderer
        self.focus_list_id = None
        self.focus_label_id = None
        self.log_text_id = None
        self.status_msg_id = None
        self._focus_items = {}
        self._last_log_id = None

        self._build_ui()
        self._schedule_sync()

    def _schedule_sync(self):
        """Reschedule the periodic sync callback using frame callbacks (approx ~10Hz)."""
        current = dpg.get_frame_count()
        dpg.set_frame_callback(current + 6, self._sync_ui_with_sim)

    # -----------------------
    # UI Construction
    # -----------------------

    def _build_ui(self):
        dpg.create_context()
        dpg.create_viewport(title='Stellar Nursery - Controls', width=520, height=800)

        with dpg.window(label="Controls", width=500, height=780, pos=(10, 10), tag="main_window"):
            dpg.add_text("Time Scale")
            with dpg.group(horizontal=True):
                for scale in TIME_SCALES:
                    label = "Pause" if scale == 0 else f"{scale:+d}x"
                    dpg.add_button(label=label, user_data=scale,
                                   callback=lambda s, a, u: self._set_time_scale(u))
            with dpg.group(horizontal=True):
                dpg.add_button(label="Reset Universe", callback=self._reset)
                self.status_msg_id = dpg.add_text("")

            dpg.add_separator()

            dpg.add_text("Bodies")
            self.focus_list_id = dpg.add_listbox(items=[], width=480, num_items=8, callback=self._on_select_body)
            self.focus_label_id = dpg.add_text("Focus: none")
            dpg.add_button(label="Collapse Selected Cloud", callback=self._collapse_selected)

            dpg.add_separator()

            dpg.add_text("Cosmic Log")
            self.log_text_id = dpg.add_input_text(multiline=True, readonly=True, width=480, height=420, default_value="")

        dpg.setup_dearpygui()
        dpg.show_viewport()
        dpg.set_primary_window("main_window", True)

    # -----------------------
    # UI Callbacks
    # -----------------------

    def _set_status(self, msg: str, color=(180, 220, 180)):
        dpg.set_value(self.status_msg_id, msg)
        dpg.configure_item(self.status_msg_id, color=color)

    def _set_time_scale(self, scale):
        self.universe.set_time_scale(scale)
        self._set_status("Paused" if scale == 0 else f"Time scale {scale:+d}x")

    def _reset(self):
        self.renderer.reset_universe()
        self._set_status("Universe reset.")

    def _selected_id(self) -> Optional[int]:
        return self._focus_items.get(dpg.get_value(self.focus_list_id))

    def _on_select_body(self, sender, app_data, user_data):
        body_id = self._focus_items.get(app_data)
        if body_id is None:
            return
        try:
            self.universe.focus(body_id)
        except KeyError:
            self._set_status("That body no longer exists.", color=(255, 120, 120))

    def _collapse_selected(self):
        body_id = self._selected_id()
        if body_id is not None and self.universe.trigger_collapse(body_id):
            self._set_status(f"Cloud #{body_id} is collapsing...")
        else:
            self._set_status("Select a dormant cloud first.", color=(255, 120, 120))

    def _sync_ui_with_sim(self):
        """
        Periodic UI update: body list, focus label and new log entries.
        """
        if not self.renderer.is_alive():
            dpg.stop_dearpygui()
            return
        snap = self.universe.snapshot()

        items = {}
        for s in snap.stars:
            items[f"#{s.id} {s.archetype.label} (m={s.mass:.1f})"] = s.id
        for c in snap.clouds:
            tag = " collapsing" if c.is_collapsing else ""
            items[f"#{c.id} Hydrogen Cloud (m={c.mass:.1f}){tag}"] = c.id
        if items != self._focus_items:
            self._focus_items = items
            dpg.configure_item(self.focus_list_id, items=list(items.keys()))

        focused = snap.find(snap.focused_id) if snap.focused_id is not None else None
        if focused is None:
            label = "Focus: none"
        elif hasattr(focused, "archetype"):
            label = f"Focus: {focused.archetype.label} #{focused.id}"
        else:
            label = f"Focus: Hydrogen Cloud #{focused.id}"
        dpg.set_value(self.focus_label_id, label)

        entries = self.universe.log_entries()
        newest = entries[0].id if entries else None
        if newest != self._last_log_id:
            self._last_log_id = newest
            text = "\n\n".join(
                f"[{e.timestamp.strftime('%H:%M:%S')}] {e.title}\n{e.content}" for e in entries
            )
            dpg.set_value(self.log_text_id, text)

        self._schedule_sync()

# ============================================================
# Application Entry
# ============================================================

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Stellar Nursery: watch clouds collapse into stars.")
    presets = [fn for fn, _ in list_presets()]
    parser.add_argument("--preset", default="default.json",
                        help=f"Preset file in nursery/presets/ (available: {', '.join(presets) or 'none'})")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (overrides the preset's)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    return parser.parse_args(argv)

def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config, preset_seed, display_name = load_preset(args.preset)
    seed = args.seed if args.seed is not None else preset_seed
    logger.info("Loading preset %s (seed=%s)", display_name, seed)

    universe = Universe(config, seed=seed)
    universe.reset()
    universe.start()

    renderer = PygameRenderer(universe)
    renderer.start()

    UI(universe, renderer)

    with dpg.handler_registry():
        def key_down(sender, app_data):
            if app_data == dpg.mvKey_Spacebar:
                renderer.toggle_pause()
        dpg.add_key_press_handler(callback=key_down)

    try:
        dpg.start_dearpygui()
    finally:
        renderer.running = False
        renderer.join(timeout=2.0)
        universe.close()
        dpg.destroy_context()

if __name__ == "__main__":
    main()
