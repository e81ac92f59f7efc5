"""Wall-clock driver for :class:`motorworks.simulation.CompanySim`.

The scheduler owns no game state.  It converts elapsed real time into
weekly ticks, honours the pause flag and speed setting stored on the
snapshot, and never lets two ticks overlap.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from config import FAST_MS_PER_TICK, MS_PER_TICK, PLAYING
from motorworks.simulation import CompanySim

logger = logging.getLogger(__name__)

TickCallback = Callable[[CompanySim], None]


class TickScheduler:
    def __init__(self, sim: CompanySim, on_tick: Optional[TickCallback] = None):
        self.sim = sim
        self.on_tick = on_tick
        self.accumulated_ms = 0.0
        self._lock = threading.Lock()

    @property
    def interval_ms(self) -> int:
        return FAST_MS_PER_TICK if self.sim.state.game_speed == 2 else MS_PER_TICK

    @property
    def is_running(self) -> bool:
        state = self.sim.state
        return not state.is_paused and state.end_game_state == PLAYING

    def advance(self, elapsed_ms: float) -> int:
        """Feed elapsed wall time; returns how many weeks were simulated."""
        if not self.is_running:
            self.accumulated_ms = 0.0
            return 0
        self.accumulated_ms += elapsed_ms
        ticks = 0
        while self.accumulated_ms >= self.interval_ms and self.is_running:
            self.accumulated_ms -= self.interval_ms
            if self.step():
                ticks += 1
        return ticks

    def step(self) -> bool:
        """Run exactly one tick unless another one is still in flight."""
        if not self._lock.acquire(blocking=False):
            logger.debug("Tick skipped: previous tick still running")
            return False
        try:
            advanced = self.sim.tick()
            if advanced and self.on_tick is not None:
                self.on_tick(self.sim)
            return advanced
        finally:
            self._lock.release()
