"""Fixed timestep host loop with wall-clock interval timers."""
from __future__ import annotations

import time
from typing import Callable, List

from mapgen.engine.schedule import FixedIntervalTimer


class FixedTimestepLoop:
    """Runs a deterministic fixed update loop with variable rendering.

    Attached :class:`FixedIntervalTimer` instances are fed the clamped frame
    time before the fixed updates run, so their cadence follows the wall
    clock rather than the simulation rate or the frame rate.
    """

    def __init__(
        self,
        update: Callable[[float], None],
        render: Callable[[float], None],
        process_events: Callable[[], None],
        fixed_hz: float = 60.0,
        max_frame_time: float = 0.25,
    ) -> None:
        self.update = update
        self.render = render
        self.process_events = process_events
        self.fixed_dt = 1.0 / fixed_hz
        self.max_frame_time = max_frame_time
        self.timers: List[FixedIntervalTimer] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def add_timer(self, timer: FixedIntervalTimer) -> FixedIntervalTimer:
        self.timers.append(timer)
        return timer

    def stop(self) -> None:
        self._running = False

    def step(self, frame_time: float, accumulator: float) -> float:
        """Process one frame and return the leftover simulation time."""

        if frame_time > self.max_frame_time:
            frame_time = self.max_frame_time
        accumulator += frame_time
        self.process_events()
        for timer in self.timers:
            timer.advance(frame_time)
        while accumulator >= self.fixed_dt:
            self.update(self.fixed_dt)
            accumulator -= self.fixed_dt
        alpha = accumulator / self.fixed_dt if self.fixed_dt > 0 else 0.0
        self.render(alpha)
        return accumulator

    def run(self) -> None:
        self._running = True
        accumulator = 0.0
        last_time = time.perf_counter()
        while self._running:
            now = time.perf_counter()
            frame_time = now - last_time
            last_time = now
            accumulator = self.step(frame_time, accumulator)


__all__ = ["FixedTimestepLoop"]
