#!/usr/bin/env python3
"""
Cosmic log: the append-only, human-readable record of what happened.

Entries are kept most-recent-first and bounded; the oldest ones fall off the
end. Continuous mass transfer produces one entry when a feeding relation
starts, not one per tick.
"""
import itertools
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, List, Optional, Set, Tuple

from . import constants as C
from .data_models import Archetype, BirthEvent, MassTransferEvent, MergerEvent, Star


@dataclass(frozen=True)
class LogEntry:
    id: int
    title: str
    content: str
    timestamp: datetime = field(default_factory=datetime.now)


class CosmicLog:
    def __init__(self, capacity: int = C.LOG_CAPACITY):
        self._entries: Deque[LogEntry] = deque(maxlen=max(1, int(capacity)))
        self._ids = itertools.count(1)
        self._feeding: Set[Tuple[int, int]] = set()

    @property
    def entries(self) -> List[LogEntry]:
        """Newest first."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def latest(self) -> Optional[LogEntry]:
        return self._entries[0] if self._entries else None

    def add(self, title: str, content: str, timestamp: Optional[datetime] = None) -> LogEntry:
        entry = LogEntry(next(self._ids), title, content, timestamp or datetime.now())
        self._entries.appendleft(entry)
        return entry

    def clear(self) -> None:
        self._entries.clear()
        self._feeding.clear()

    def record_merger(self, event: MergerEvent, winner: Star, loser: Star) -> LogEntry:
        self._feeding = {pair for pair in self._feeding if event.loser_id not in pair}
        if winner.is_compact:
            title = "Singularity Fed"
            action = "consumed the matter of"
        else:
            title = "Stellar Merger"
            action = "merged with"
        content = (f"The {winner.archetype.label} #{winner.id} stabilized its orbit and "
                   f"{action} the {loser.archetype.label} #{loser.id}.")
        return self.add(title, content, event.timestamp)

    def record_transfer(self, event: MassTransferEvent, source: Star, target: Star) -> Optional[LogEntry]:
        pair = (event.source_id, target.id)
        if pair in self._feeding:
            return None
        self._feeding.add(pair)
        content = (f"The {target.archetype.label} #{target.id} is tearing the "
                   f"{source.archetype.label} #{source.id} apart; a stream of matter spirals inward.")
        return self.add("Tidal Disruption", content, event.timestamp)

    def retain_feeding(self, active: Set[Tuple[int, int]]) -> None:
        """Forget feeding pairs that saw no transfer this tick."""
        self._feeding &= active

    def record_birth(self, event: BirthEvent, mass: float) -> LogEntry:
        content = f"Cloud #{event.star_id} finished collapsing into a {event.archetype.label} of mass {mass:.1f}."
        return self.add(f"Birth: {event.archetype.label}", content, event.timestamp)

    def record_description(self, archetype: Archetype, star_id: int, text: str) -> LogEntry:
        return self.add(f"Analysis: {archetype.label} #{star_id}", text)
