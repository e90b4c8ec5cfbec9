"""Parametric map description and its change tracking."""
from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass, fields, replace as dataclass_replace
from threading import Lock
from typing import Any, Dict, Mapping, Optional, Tuple

from mapgen.errors import InvalidParameters

MIN_GRID_POINTS = 2
MAX_GRID_POINTS = 1024
MAX_OCTAVES = 8
# Upper bounds keep every vertex coordinate and slope inside float32.
MAX_SCALE = 1e6
MAX_AMPLITUDE = 1e6
# Smaller values push noise sample coordinates out of range.
MIN_NOISE_SCALE = 1e-3


# name -> (minimum, maximum, minimum exclusive)
_INT_RANGES: Dict[str, Tuple[int, int]] = {
    "width": (MIN_GRID_POINTS, MAX_GRID_POINTS),
    "height": (MIN_GRID_POINTS, MAX_GRID_POINTS),
    "octaves": (1, MAX_OCTAVES),
}

_FLOAT_RANGES: Dict[str, Tuple[float, float, bool]] = {
    "scale": (0.0, MAX_SCALE, True),
    "amplitude": (0.0, MAX_AMPLITUDE, False),
    "noise_scale": (MIN_NOISE_SCALE, math.inf, False),
    "persistence": (0.0, 1.0, True),
    "lacunarity": (1.0, 4.0, False),
    "redistribution": (0.1, 8.0, False),
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class MapParameters:
    """Immutable generation inputs for one map."""

    seed: int = 1
    width: int = 64
    height: int = 64
    scale: float = 1.0
    amplitude: float = 10.0
    noise_scale: float = 24.0
    octaves: int = 4
    persistence: float = 0.5
    lacunarity: float = 2.0
    redistribution: float = 1.0

    @classmethod
    def names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def validate(self) -> None:
        """Raise :class:`InvalidParameters` for the first illegal value."""

        if not _is_int(self.seed):
            raise InvalidParameters(f"seed must be an integer, got {self.seed!r}", "seed")
        for name, (low, high) in _INT_RANGES.items():
            value = getattr(self, name)
            if not _is_int(value):
                raise InvalidParameters(f"{name} must be an integer, got {value!r}", name)
            if not low <= value <= high:
                raise InvalidParameters(f"{name} must be within [{low}, {high}], got {value}", name)
        for name, (low, high, exclusive) in _FLOAT_RANGES.items():
            value = getattr(self, name)
            if not _is_number(value) or not math.isfinite(value):
                raise InvalidParameters(f"{name} must be a finite number, got {value!r}", name)
            below = value <= low if exclusive else value < low
            if below or value > high:
                bracket = "(" if exclusive else "["
                raise InvalidParameters(f"{name} must be within {bracket}{low}, {high}], got {value}", name)

    def normalized(self) -> "MapParameters":
        """Return a validated copy with float parameters stored as floats."""

        self.validate()
        # Adding 0.0 folds -0.0 into 0.0 so equal values hash alike.
        changes = {name: float(getattr(self, name)) + 0.0 for name in _FLOAT_RANGES}
        return dataclass_replace(self, **changes)

    def replace(self, **changes: Any) -> "MapParameters":
        unknown = set(changes) - set(self.names())
        if unknown:
            name = sorted(unknown)[0]
            raise InvalidParameters(f"Unknown map parameter '{name}'", name)
        return dataclass_replace(self, **changes).normalized()

    def as_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.names()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MapParameters":
        return cls().replace(**dict(data))

    def fingerprint(self) -> str:
        """Content hash of the parameters; equal content gives equal fingerprints."""

        payload = "|".join(f"{name}={getattr(self, name)!r}" for name in self.names())
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    @property
    def cell_count(self) -> int:
        return (self.width - 1) * (self.height - 1)


class MapData:
    """Authoritative, editable parameters of a map plus a change marker.

    ``revision`` starts at 1 and advances once for every accepted write that
    alters the parameter content. Rejected writes leave both the parameters
    and the revision untouched.
    """

    def __init__(self, parameters: Optional[MapParameters] = None) -> None:
        self._parameters = (parameters or MapParameters()).normalized()
        self._revision = 1
        self._observed_revision = 0
        self._lock = Lock()

    def __repr__(self) -> str:
        return f"MapData(revision={self._revision}, parameters={self._parameters!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MapData):
            return NotImplemented
        return self.parameters == other.parameters

    __hash__ = None  # type: ignore[assignment]

    @property
    def parameters(self) -> MapParameters:
        with self._lock:
            return self._parameters

    @property
    def revision(self) -> int:
        with self._lock:
            return self._revision

    @property
    def fingerprint(self) -> str:
        return self.parameters.fingerprint()

    def snapshot(self) -> Tuple[MapParameters, int]:
        """Return the parameters together with the revision they belong to."""

        with self._lock:
            return self._parameters, self._revision

    def get(self, name: str) -> Any:
        if name not in MapParameters.names():
            raise InvalidParameters(f"Unknown map parameter '{name}'", name)
        return getattr(self.parameters, name)

    def set(self, name: str, value: Any) -> bool:
        """Set a single parameter. Returns ``True`` when the content changed."""

        return self.update(**{name: value})

    def update(self, **changes: Any) -> bool:
        """Apply several parameter writes atomically."""

        with self._lock:
            candidate = self._parameters.replace(**changes)
            if candidate == self._parameters:
                return False
            self._parameters = candidate
            self._revision += 1
            return True

    def has_changed(self) -> bool:
        """Report whether the content changed since the previous call."""

        with self._lock:
            if self._observed_revision == self._revision:
                return False
            self._observed_revision = self._revision
            return True


__all__ = [
    "MAX_AMPLITUDE",
    "MAX_GRID_POINTS",
    "MAX_OCTAVES",
    "MAX_SCALE",
    "MIN_GRID_POINTS",
    "MIN_NOISE_SCALE",
    "MapData",
    "MapParameters",
]
