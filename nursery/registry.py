#!/usr/bin/env python3
"""
Body registry: the arena that owns every cloud and star.

Stars live in a list (the physics pass iterates it by index) with an id -> index
map kept in step with it. Clouds are kept in insertion order. Ids come from one
monotonic counter shared by clouds and stars; a star born from a cloud keeps
the cloud's id.
"""
import itertools
import logging
from typing import Dict, List, Optional

from .data_models import Cloud, Star
from .errors import InvariantError

logger = logging.getLogger(__name__)


class BodyRegistry:
    def __init__(self, strict: bool = True):
        self.strict = strict
        self.stars: List[Star] = []
        self.clouds: Dict[int, Cloud] = {}
        self._index: Dict[int, int] = {}
        self._ids = itertools.count(1)

    def next_id(self) -> int:
        return next(self._ids)

    def __contains__(self, body_id: int) -> bool:
        return body_id in self._index or body_id in self.clouds

    # -----------------------
    # Clouds
    # -----------------------

    def add_cloud(self, cloud: Cloud) -> Cloud:
        if cloud.id in self:
            raise ValueError(f"Duplicate body id {cloud.id}")
        self.clouds[cloud.id] = cloud
        return cloud

    def get_cloud(self, cloud_id: int) -> Optional[Cloud]:
        return self.clouds.get(cloud_id)

    @property
    def cloud_count(self) -> int:
        return len(self.clouds)

    # -----------------------
    # Stars
    # -----------------------

    def add_star(self, star: Star) -> Star:
        if star.id in self:
            raise ValueError(f"Duplicate body id {star.id}")
        self._index[star.id] = len(self.stars)
        self.stars.append(star)
        return star

    def get_star(self, star_id: int) -> Optional[Star]:
        idx = self._index.get(star_id)
        return self.stars[idx] if idx is not None else None

    def replace_cloud_with_star(self, cloud_id: int, star: Star) -> Star:
        """Swap a finished cloud for its star in one step; no tick ever sees both."""
        if cloud_id not in self.clouds:
            raise KeyError(cloud_id)
        if star.id != cloud_id and star.id in self:
            raise ValueError(f"Duplicate body id {star.id}")
        del self.clouds[cloud_id]
        self._index[star.id] = len(self.stars)
        self.stars.append(star)
        return star

    def remove_star(self, loser_id: int, successor_id: Optional[int] = None) -> Optional[Star]:
        """
        Remove a star and repoint anything it was feeding.

        Bodies that were being consumed by the removed star now belong to
        `successor_id` (the merge winner). The successor itself cannot be its
        own predator, so its flags are cleared if they pointed at the loser.
        """
        idx = self._index.pop(loser_id, None)
        if idx is None:
            return None
        removed = self.stars.pop(idx)
        for i in range(idx, len(self.stars)):
            self._index[self.stars[i].id] = i

        for star in self.stars:
            if star.consumed_by != loser_id:
                continue
            if successor_id is None or star.id == successor_id:
                star.consumed_by = None
                star.is_shredding = False
            else:
                star.consumed_by = successor_id
        return removed

    def credit_mass(self, target_id: int, amount: float) -> bool:
        star = self.get_star(target_id)
        if star is None:
            return False
        star.mass += amount
        self.check_mass(star)
        return True

    def check_mass(self, star: Star) -> None:
        """Negative mass is a contract violation: raise when strict, else clamp."""
        if star.mass >= 0:
            return
        if self.strict:
            raise InvariantError(f"Star {star.id} has negative mass {star.mass!r}")
        logger.warning("Clamping negative mass %.6f of star %s", star.mass, star.id)
        star.mass = 0.0

    def clear(self) -> None:
        """Drop every body. Ids keep counting so old ids are never reused."""
        self.stars.clear()
        self.clouds.clear()
        self._index.clear()
