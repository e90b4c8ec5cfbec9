"""Global generation counter used to tag published map content."""
from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock


@dataclass
class _GenerationClock:
    """Hands out monotonically increasing generation ids in a threadsafe way."""

    _generation: int = 0
    _lock: Lock = field(default_factory=Lock)

    def advance(self) -> int:
        """Advance the generation counter and return the new value."""

        with self._lock:
            self._generation += 1
            return self._generation

    def current(self) -> int:
        """Return the most recently issued generation id."""

        with self._lock:
            return self._generation


_generation_clock = _GenerationClock()


def next_generation_id() -> int:
    """Reserve the id for a new generator invocation."""

    return _generation_clock.advance()


def current_generation_id() -> int:
    return _generation_clock.current()


__all__ = ["current_generation_id", "next_generation_id"]
