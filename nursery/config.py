#!/usr/bin/env python3
"""
Universe configuration and JSON preset loading.

UniverseConfig groups every tunable of the simulation; its defaults come from
`constants.py`. Presets are JSON files in `nursery/presets/` (shipped as package
data) that override any subset
of those fields.

Schema
======
Preset JSON (nursery/presets/*.json):
{
  "name": "Human-friendly preset name",
  "description": "Optional description",
  "seed": 7,                         # optional, default None (random)
  "config": {
    "initial_clouds": 15,
    "initial_rogue_planets": 3,
    "max_clouds": 30,
    "gravity": 0.5
  }
}

Unknown keys and values of the wrong type are ignored, so a partially broken
preset still yields a usable configuration. Users can drop their own JSON files
into the folder and they'll be picked up by the loader.
"""
import json
import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, List, Optional, Tuple

from . import constants as C

logger = logging.getLogger(__name__)

PRESETS_DIR = os.path.join(os.path.dirname(__file__), "presets")


@dataclass(frozen=True)
class UniverseConfig:
  """All knobs of a universe. Immutable; use `with_overrides` to derive variants."""
  gravity: float = C.G
  softening: float = C.SOFTENING
  min_separation: float = C.MIN_SEPARATION
  merge_factor: float = C.MERGE_FACTOR
  capture_factor: float = C.CAPTURE_FACTOR
  feeding_factor: float = C.FEEDING_FACTOR
  separating_damping: float = C.SEPARATING_DAMPING
  approaching_damping: float = C.APPROACHING_DAMPING
  feed_rate: float = C.FEED_RATE
  spiral_drag: float = C.SPIRAL_DRAG
  min_prey_mass: float = C.MIN_PREY_MASS
  mass_epsilon: float = C.MASS_EPSILON
  age_rate: float = C.AGE_RATE
  collapse_duration: float = C.COLLAPSE_DURATION
  spawn_warmup: float = C.SPAWN_WARMUP
  spawn_period: int = C.SPAWN_PERIOD
  spawn_chance: float = C.SPAWN_CHANCE
  max_clouds: int = C.MAX_CLOUDS
  initial_clouds: int = C.INITIAL_CLOUDS
  initial_rogue_planets: int = C.INITIAL_ROGUE_PLANETS
  init_cloud_range: float = C.INIT_CLOUD_RANGE
  spawn_cloud_range: float = C.SPAWN_CLOUD_RANGE
  rogue_planet_range: float = C.ROGUE_PLANET_RANGE
  fixed_dt: float = C.FIXED_DT
  max_frame_delta: float = C.MAX_FRAME_DELTA
  max_substeps: int = C.MAX_SUBSTEPS
  log_capacity: int = C.LOG_CAPACITY
  narrative_fallback: str = C.NARRATIVE_FALLBACK
  strict: bool = __debug__  # raise on broken invariants instead of clamping

  def with_overrides(self, overrides: Dict[str, Any]) -> "UniverseConfig":
    """Return a copy with matching keys replaced; bad keys/values are skipped."""
    known = {f.name: f for f in fields(self)}
    changes: Dict[str, Any] = {}
    for key, value in overrides.items():
      f = known.get(key)
      if f is None:
        logger.warning("Ignoring unknown config key %r", key)
        continue
      current = getattr(self, key)
      coerced = _coerce(value, type(current))
      if coerced is None:
        logger.warning("Ignoring config key %r: bad value %r", key, value)
        continue
      changes[key] = coerced
    return replace(self, **changes)


def _coerce(value: Any, kind: type) -> Any:
  try:
    if kind is bool:
      return value if isinstance(value, bool) else None
    if kind is int:
      return int(value)
    if kind is float:
      return float(value)
    if kind is str:
      return str(value)
  except (TypeError, ValueError):
    return None
  return None


def _read_json(path: str) -> Optional[dict]:
  try:
    with open(path, "r", encoding="utf-8") as f:
      data = json.load(f)
  except (OSError, ValueError) as exc:
    logger.warning("Could not read %s: %s", path, exc)
    return None
  return data if isinstance(data, dict) else None


def _from_data(data: dict) -> Tuple[UniverseConfig, Optional[int]]:
  overrides = data.get("config") or {}
  config = UniverseConfig()
  if isinstance(overrides, dict):
    config = config.with_overrides(overrides)
  seed = data.get("seed")
  try:
    seed = int(seed) if seed is not None else None
  except (TypeError, ValueError):
    seed = None
  return config, seed


def list_presets() -> List[Tuple[str, str]]:
  """Return list of (file_name, display_name) for available presets."""
  items: List[Tuple[str, str]] = []
  if not os.path.isdir(PRESETS_DIR):
    return items
  for fn in sorted(os.listdir(PRESETS_DIR)):
    if not fn.lower().endswith(".json"):
      continue
    data = _read_json(os.path.join(PRESETS_DIR, fn)) or {}
    display = data.get("name") or os.path.splitext(fn)[0]
    items.append((fn, display))
  return items


def load_preset(file_name: str) -> Tuple[UniverseConfig, Optional[int], str]:
  """
  Load a preset JSON by file name.
  Returns (config, seed, display_name). Missing files give the defaults.
  """
  data = _read_json(os.path.join(PRESETS_DIR, file_name)) or {}
  config, seed = _from_data(data)
  display_name = data.get("name") or os.path.splitext(file_name)[0]
  return config, seed, display_name


def load_config_file(path: str) -> Tuple[UniverseConfig, Optional[int]]:
  """Load a preset from an explicit path. Returns (config, seed)."""
  return _from_data(_read_json(path) or {})
