"""Fixed-interval tick sources for periodic regeneration."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from mapgen.engine.logger import ChannelLogger, MapLogger, channel_or_default

LOGGER = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.1


class FixedIntervalTimer:
    """Fires ``callback`` once whenever ``interval`` seconds have accumulated.

    Time is fed in by the host loop via :meth:`advance`. When a long frame
    covers several intervals the callback still runs only once; the backlog
    is dropped rather than replayed.
    """

    def __init__(self, callback: Callable[[float], object], interval: float = DEFAULT_INTERVAL) -> None:
        if interval <= 0.0:
            raise ValueError("interval must be positive")
        self.callback = callback
        self.interval = interval
        self._accumulator = 0.0
        self._running = False

    @classmethod
    def from_hz(cls, callback: Callable[[float], object], hz: float) -> "FixedIntervalTimer":
        if hz <= 0.0:
            raise ValueError("hz must be positive")
        return cls(callback, 1.0 / hz)

    def reset(self) -> None:
        self._accumulator = 0.0

    def advance(self, dt: float) -> bool:
        """Add ``dt`` seconds; returns ``True`` when the callback fired."""

        if self._running or dt < 0.0:
            return False
        self._accumulator += dt
        if self._accumulator < self.interval:
            return False
        self._accumulator %= self.interval
        self._running = True
        try:
            self.callback(self.interval)
        finally:
            self._running = False
        return True


class BackgroundTicker:
    """Runs ``callback`` on a daemon thread every ``interval`` seconds."""

    def __init__(
        self,
        callback: Callable[[float], object],
        interval: float = DEFAULT_INTERVAL,
        logger: Optional[MapLogger] = None,
    ) -> None:
        if interval <= 0.0:
            raise ValueError("interval must be positive")
        self.callback = callback
        self.interval = interval
        self._log: ChannelLogger = channel_or_default(logger, "regeneration", LOGGER)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="map-regeneration", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.callback(self.interval)
            except Exception:  # keep ticking; the next interval retries
                self._log.error("Background regeneration tick failed", exc_info=True)


__all__ = ["BackgroundTicker", "DEFAULT_INTERVAL", "FixedIntervalTimer"]
