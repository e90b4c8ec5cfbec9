"""Shading parameters paired with a generated map mesh."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

Color = Tuple[float, float, float]

# Height ramp from lowland to peak, sampled by normalized height.
HEIGHT_RAMP: Tuple[Tuple[float, Color], ...] = (
    (0.0, (0.18, 0.32, 0.16)),
    (0.35, (0.36, 0.52, 0.22)),
    (0.65, (0.52, 0.44, 0.32)),
    (0.85, (0.60, 0.58, 0.56)),
    (1.0, (0.95, 0.95, 0.97)),
)

MIN_ROUGHNESS = 0.35
ROUGHNESS_SPAN = 0.6


def _lerp_color(a: Color, b: Color, t: float) -> Color:
    t = max(0.0, min(1.0, t))
    return tuple(av + (bv - av) * t for av, bv in zip(a, b))  # type: ignore[return-value]


def sample_ramp(t: float, ramp: Sequence[Tuple[float, Color]] = HEIGHT_RAMP) -> Color:
    t = max(0.0, min(1.0, float(t)))
    previous_stop, previous_color = ramp[0]
    if t <= previous_stop:
        return previous_color
    for stop, color in ramp[1:]:
        if t <= stop:
            span = stop - previous_stop
            blend = (t - previous_stop) / span if span > 0.0 else 1.0
            return _lerp_color(previous_color, color, blend)
        previous_stop, previous_color = stop, color
    return previous_color


@dataclass(frozen=True)
class MaterialParameters:
    """Colour and surface inputs derived from the same generation as the mesh."""

    min_height: float
    max_height: float
    low_color: Color
    high_color: Color
    roughness: float

    @property
    def height_range(self) -> float:
        return self.max_height - self.min_height

    def color_at(self, shading: float) -> Color:
        """Colour for a vertex given its normalized height (0..1 over the range)."""

        return _lerp_color(self.low_color, self.high_color, shading)

    def to_bytes(self) -> bytes:
        values = (
            self.min_height,
            self.max_height,
            *self.low_color,
            *self.high_color,
            self.roughness,
        )
        return np.array(values, dtype="f4").tobytes()


def derive_material(
    heights: np.ndarray, normals: np.ndarray, amplitude: float
) -> MaterialParameters:
    """Build material parameters from a height field and its normals.

    The colour ramp is sampled at the extremes of the field relative to the
    map amplitude, so a flat map shades with a single lowland colour.
    """

    min_height = float(heights.min())
    max_height = float(heights.max())
    if amplitude > 0.0:
        low_t = min_height / amplitude
        high_t = max_height / amplitude
    else:
        low_t = high_t = 0.0
    steepness = float(np.mean(1.0 - normals[:, 1]))
    roughness = MIN_ROUGHNESS + ROUGHNESS_SPAN * min(1.0, 4.0 * steepness)
    return MaterialParameters(
        min_height=min_height,
        max_height=max_height,
        low_color=sample_ramp(low_t),
        high_color=sample_ramp(high_t),
        roughness=roughness,
    )


__all__ = ["HEIGHT_RAMP", "MaterialParameters", "derive_material", "sample_ramp"]
