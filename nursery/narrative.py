#!/usr/bin/env python3
"""
Narrative descriptions for newborn stars.

The simulation never waits on a narrator. Requests go into a task queue, a
background worker thread runs the narrator, and finished results wait in a
completion queue until the Universe drains them during a tick. A narrator that
raises (network, parsing, anything) yields the fixed fallback text instead.

Any callable `(archetype, mass) -> str` can act as a narrator. The built-in
TemplateNarrator composes text offline.
"""
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from . import constants as C
from .data_models import Archetype
from .errors import NarrativeError

logger = logging.getLogger(__name__)

Narrator = Callable[[Archetype, float], str]


@dataclass(frozen=True)
class NarrativeRequest:
    star_id: int
    archetype: Archetype
    mass: float
    epoch: int = 0


@dataclass(frozen=True)
class NarrativeResult:
    star_id: int
    archetype: Archetype
    text: str
    error: Optional[NarrativeError] = None
    epoch: int = 0

    @property
    def failed(self) -> bool:
        return self.error is not None


_ORIGINS = {
    Archetype.BROWN_DWARF: "never gathered enough mass to ignite hydrogen and now glows faintly with the heat of its contraction",
    Archetype.RED_DWARF: "settled into a slow, frugal burn that will outlast every brighter neighbour",
    Archetype.YELLOW_DWARF: "ignited into a stable, Sun-like star",
    Archetype.BINARY_STAR: "fragmented as it spun and two stars now circle a common centre of mass",
    Archetype.BLUE_GIANT: "ignited violently into a hot, short-lived blue giant",
    Archetype.NEUTRON_STAR: "overshot stability and crushed its core into a rapidly spinning pulsar",
    Archetype.BLACK_HOLE: "collapsed past every barrier into a black hole",
    Archetype.SUPERMASSIVE_BLACK_HOLE: "grew into a supermassive black hole anchoring the region",
    Archetype.QUASAR: "became a quasar, its accretion disk outshining everything around it",
    Archetype.ROGUE_PLANET: "drifts alone, bound to no star",
}


class TemplateNarrator:
    """Offline narrator: a short two-sentence description built from templates."""

    def __call__(self, archetype: Archetype, mass: float) -> str:
        origin = _ORIGINS.get(archetype)
        if origin is None:
            raise NarrativeError(f"No template for {archetype!r}")
        first = f"A cloud of roughly {mass:.1f} relative solar masses {origin}."
        if archetype.is_compact:
            second = "Matter that strays too close will be shredded into a glowing stream and swallowed."
        elif archetype is Archetype.ROGUE_PLANET:
            second = "Its only warmth is what it kept from its birth."
        else:
            second = ("The rotation of the original cloud flattened the leftover gas into a disk, "
                      "where the first planets are already taking shape.")
        return f"{first} {second}"


def describe(narrator: Narrator, request: NarrativeRequest, fallback: str) -> NarrativeResult:
    """Run `narrator` for one request, converting any failure into the fallback text."""
    try:
        text = narrator(request.archetype, request.mass)
        if not isinstance(text, str) or not text.strip():
            raise NarrativeError("Narrator returned no text")
    except Exception as exc:  # narrators are external code; nothing may reach the tick
        error = exc if isinstance(exc, NarrativeError) else NarrativeError(str(exc))
        logger.warning("Narrative for star %s failed: %s", request.star_id, exc)
        return NarrativeResult(request.star_id, request.archetype, fallback, error, request.epoch)
    return NarrativeResult(request.star_id, request.archetype, text.strip(), epoch=request.epoch)


class NarrativeQueue:
    """
    Task queue between the simulation and a narrator.

    `submit` never blocks. Call `start()` to run requests on a daemon worker
    thread, or `process_pending()` to run them on the calling thread.
    """

    def __init__(self, narrator: Optional[Narrator] = None, fallback: str = C.NARRATIVE_FALLBACK):
        self.narrator: Narrator = narrator or TemplateNarrator()
        self.fallback = fallback
        self._pending: "queue.Queue[NarrativeRequest]" = queue.Queue()
        self._completed: "queue.Queue[NarrativeResult]" = queue.Queue()
        self._worker: Optional[NarrativeWorker] = None

    def submit(self, request: NarrativeRequest) -> None:
        self._pending.put(request)

    def process_one(self, timeout: Optional[float] = None) -> bool:
        """Handle one pending request. Returns False when none arrived in time."""
        try:
            if timeout is None:
                request = self._pending.get_nowait()
            else:
                request = self._pending.get(timeout=timeout)
        except queue.Empty:
            return False
        self._completed.put(describe(self.narrator, request, self.fallback))
        return True

    def process_pending(self) -> int:
        count = 0
        while self.process_one():
            count += 1
        return count

    def drain(self) -> List[NarrativeResult]:
        """Collect every finished result without blocking."""
        results: List[NarrativeResult] = []
        while True:
            try:
                results.append(self._completed.get_nowait())
            except queue.Empty:
                return results

    @property
    def pending_count(self) -> int:
        return self._pending.qsize()

    def start(self) -> None:
        if self._worker is not None and self._worker.is_alive():
            return
        self._worker = NarrativeWorker(self)
        self._worker.start()

    def stop(self, timeout: float = 2.0) -> None:
        if self._worker is None:
            return
        self._worker.running = False
        self._worker.join(timeout=timeout)
        self._worker = None


class NarrativeWorker(threading.Thread):
    """Background loop that feeds pending requests to the narrator."""

    def __init__(self, owner: NarrativeQueue, poll_interval: float = 0.2):
        super().__init__(daemon=True, name="narrative-worker")
        self.owner = owner
        self.poll_interval = poll_interval
        self.running = True

    def run(self):
        while self.running:
            self.owner.process_one(timeout=self.poll_interval)
