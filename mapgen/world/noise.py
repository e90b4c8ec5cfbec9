"""Seeded fractal noise used to shape map height fields."""
from __future__ import annotations

import hashlib
from typing import Tuple

import numpy as np
from opensimplex import OpenSimplex

# Spread of the seed-derived sampling origin, in noise units.
_OFFSET_RANGE = 1024.0
# Shift between octaves so they do not share lattice features.
_OCTAVE_SHIFT = (31.7, 47.3)


def _hash_seed(*parts: object) -> int:
    payload = "|".join(str(part) for part in parts)
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return int(digest[:16], 16)


def seed_offsets(seed: int) -> Tuple[float, float]:
    """Deterministic sampling origin for ``seed``."""

    value = _hash_seed("height-origin", seed)
    fx = (value & 0xFFFFFFFF) / float(0xFFFFFFFF)
    fz = ((value >> 32) & 0xFFFFFFFF) / float(0xFFFFFFFF)
    return fx * _OFFSET_RANGE, fz * _OFFSET_RANGE


def fractal_height_field(
    width: int,
    height: int,
    *,
    seed: int,
    noise_scale: float,
    octaves: int,
    persistence: float,
    lacunarity: float,
) -> np.ndarray:
    """Sample fractal Brownian motion on a ``height`` x ``width`` grid.

    Rows run along z and columns along x. Values are normalized by the sum of
    octave amplitudes and mapped into ``[0, 1]``.
    """

    generator = OpenSimplex(seed=seed)
    origin_x, origin_z = seed_offsets(seed)
    xs = np.arange(width, dtype=np.float64) / noise_scale
    zs = np.arange(height, dtype=np.float64) / noise_scale

    total = np.zeros((height, width), dtype=np.float64)
    amplitude = 1.0
    frequency = 1.0
    norm = 0.0
    for octave in range(octaves):
        shift_x = origin_x + octave * _OCTAVE_SHIFT[0]
        shift_z = origin_z + octave * _OCTAVE_SHIFT[1]
        layer = generator.noise2array(xs * frequency + shift_x, zs * frequency + shift_z)
        total += amplitude * layer
        norm += amplitude
        amplitude *= persistence
        frequency *= lacunarity

    field = total / norm
    return np.clip(0.5 * (field + 1.0), 0.0, 1.0)


__all__ = ["fractal_height_field", "seed_offsets"]
