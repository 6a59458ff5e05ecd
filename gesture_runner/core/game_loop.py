"""
Tick Loop
=========
Fixed-rate game loop with an explicit elapsed-time input and a cancellation
handle.

    loop = TickLoop(lambda dt, now: game.tick(dt, now), max_fps=60)
    loop.run()          # returns once loop.cancel() is called
"""

import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TickLoop:
    """
    Drives ``callback(dt, now)`` once per tick.

    ``dt`` is the time since the previous tick, clamped to ``max_dt`` so a
    stall (window drag, debugger pause) never produces one huge step.
    The callback may return ``False`` to stop the loop.
    """

    def __init__(self, callback: Callable[[float, float], Optional[bool]],
                 max_fps: int = 60, max_dt: float = 0.034,
                 clock: Callable[[], float] = time.perf_counter,
                 sleep: Callable[[float], None] = time.sleep):
        if max_fps <= 0:
            raise ValueError(f"max_fps must be positive, got {max_fps}")
        self.callback = callback
        self.max_fps = max_fps
        self.max_dt = max_dt
        self._clock = clock
        self._sleep = sleep

        self._last_time: Optional[float] = None
        self._cancelled = False
        self.tick_count = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self):
        """Stop the loop after the current tick."""
        self._cancelled = True

    def step(self, now: float = None) -> float:
        """Run a single tick. Returns the dt passed to the callback."""
        if now is None:
            now = self._clock()

        if self._last_time is None:
            dt = 0.0
        else:
            dt = min(self.max_dt, max(0.0, now - self._last_time))
        self._last_time = now
        self.tick_count += 1

        if self.callback(dt, now) is False:
            self.cancel()
        return dt

    def run(self):
        """Tick until cancelled, sleeping off the rest of each frame budget."""
        frame_time = 1.0 / self.max_fps
        logger.debug("Tick loop started at %d fps", self.max_fps)

        while not self._cancelled:
            started = self._clock()
            self.step(started)

            remaining = frame_time - (self._clock() - started)
            if remaining > 0 and not self._cancelled:
                self._sleep(remaining)

        logger.debug("Tick loop stopped after %d ticks", self.tick_count)
