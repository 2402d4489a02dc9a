"""Fixed-period scheduler driving the encounter loop."""
from __future__ import annotations

import logging
import time
from typing import Callable, List

from treesim.core.config import DEFAULT_CONFIG, SimulationConfig
from treesim.services.events import SimEvent

logger = logging.getLogger(__name__)

TickCallback = Callable[[float], List[SimEvent]]


class GameLoop:
    """Runs ``on_tick`` at a fixed period with at most one tick in flight.

    The callback receives an already clamped delta. ``clock`` and ``sleep``
    are injectable so headless runs and tests never touch wall time.
    """

    def __init__(
        self,
        on_tick: TickCallback,
        config: SimulationConfig = DEFAULT_CONFIG,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._on_tick = on_tick
        self._config = config
        self._clock = clock
        self._sleep = sleep
        self._in_tick = False
        self._last_time: float | None = None
        self._tick_count = 0

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def in_tick(self) -> bool:
        return self._in_tick

    def clamp_delta(self, delta: float) -> float:
        return min(max(delta, 0.0), self._config.max_delta)

    def step(self, delta: float) -> List[SimEvent] | None:
        """Run one tick; returns None when a tick is already in flight."""
        if self._in_tick:
            logger.warning("Tick %d still running; re-entrant step refused", self._tick_count)
            return None
        self._in_tick = True
        try:
            events = self._on_tick(self.clamp_delta(delta))
        finally:
            self._in_tick = False
        self._tick_count += 1
        return events

    def run_simulated(self, duration: float, should_continue: Callable[[], bool] | None = None) -> List[SimEvent]:
        """Advance ``duration`` seconds of game time in fixed steps without sleeping."""
        interval = self._config.tick_interval
        events: List[SimEvent] = []
        elapsed = 0.0
        while elapsed < duration:
            if should_continue is not None and not should_continue():
                break
            step = min(interval, duration - elapsed)
            events.extend(self.step(step) or [])
            elapsed += step
        logger.debug("Simulated %.2fs in %d ticks", elapsed, self._tick_count)
        return events

    def run_realtime(
        self,
        should_continue: Callable[[], bool],
        on_events: Callable[[List[SimEvent]], None] | None = None,
    ) -> None:
        """Tick against the wall clock until ``should_continue`` returns False."""
        interval = self._config.tick_interval
        self._last_time = self._clock()
        while should_continue():
            now = self._clock()
            delta = now - self._last_time
            self._last_time = now
            events = self.step(delta)
            if events and on_events is not None:
                on_events(events)
            spent = self._clock() - now
            if spent < interval:
                self._sleep(interval - spent)
