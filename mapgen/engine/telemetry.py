"""Lightweight runtime telemetry for map regeneration."""
from __future__ import annotations

from dataclasses import dataclass

from mapgen.engine.logger import ChannelLogger

LOG_INTERVAL = 5.0


@dataclass
class RegenerationTelemetrySnapshot:
    ticks: int
    checks: int
    generations: int
    skipped: int
    failures: int
    publish_failures: int
    duration_ms: float

    @property
    def average_generation_ms(self) -> float:
        if self.generations <= 0:
            return 0.0
        return self.duration_ms / self.generations


@dataclass
class RegenerationTelemetry:
    """Aggregates how much regeneration work the scheduled ticks performed."""

    ticks: int = 0
    checks: int = 0
    generations: int = 0
    skipped: int = 0
    failures: int = 0
    publish_failures: int = 0
    duration_ms: float = 0.0
    _log_accumulator: float = 0.0

    def record_tick(self, checks: int) -> None:
        self.ticks += 1
        self.checks += checks

    def record_generation(self, duration_ms: float) -> None:
        self.generations += 1
        self.duration_ms += duration_ms

    def record_skip(self) -> None:
        self.skipped += 1

    def record_failure(self) -> None:
        self.failures += 1

    def record_publish_failure(self) -> None:
        self.publish_failures += 1

    def advance_time(self, dt: float, logger: ChannelLogger | None = None) -> None:
        self._log_accumulator += dt
        if self._log_accumulator >= LOG_INTERVAL:
            self._log_accumulator = 0.0
            if logger and logger.enabled:
                logger.info(
                    "Regeneration: ticks=%d checks=%d generated=%d skipped=%d failed=%d publish_failed=%d time=%.2fms",
                    self.ticks,
                    self.checks,
                    self.generations,
                    self.skipped,
                    self.failures,
                    self.publish_failures,
                    self.duration_ms,
                )

    def snapshot(self) -> RegenerationTelemetrySnapshot:
        return RegenerationTelemetrySnapshot(
            ticks=self.ticks,
            checks=self.checks,
            generations=self.generations,
            skipped=self.skipped,
            failures=self.failures,
            publish_failures=self.publish_failures,
            duration_ms=self.duration_ms,
        )


__all__ = ["RegenerationTelemetry", "RegenerationTelemetrySnapshot"]
