"""Deterministic map surface generation."""
from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from mapgen.errors import GenerationFailure
from mapgen.render.material import MaterialParameters, derive_material
from mapgen.render.mesh import GeometryBuffer
from mapgen.world.map_data import MapData, MapParameters
from mapgen.world.noise import fractal_height_field

LOGGER = logging.getLogger(__name__)


def shape_heights(parameters: MapParameters) -> np.ndarray:
    """Vertical offset for every grid point, shaped ``(height, width)``."""

    if parameters.amplitude == 0.0:
        return np.zeros((parameters.height, parameters.width), dtype=np.float64)
    field = fractal_height_field(
        parameters.width,
        parameters.height,
        seed=parameters.seed,
        noise_scale=parameters.noise_scale,
        octaves=parameters.octaves,
        persistence=parameters.persistence,
        lacunarity=parameters.lacunarity,
    )
    if parameters.redistribution != 1.0:
        field = np.power(field, parameters.redistribution)
    return field * parameters.amplitude


def grid_normals(heights: np.ndarray, spacing: float) -> np.ndarray:
    """Per-vertex normals from central differences of the height field."""

    rows, cols = heights.shape
    # Height change per grid step; the true slope divides it by ``spacing``,
    # so (-dx, spacing, -dz) points along the unnormalized normal.
    dh_dz, dh_dx = np.gradient(heights, edge_order=1)
    normals = np.empty((rows, cols, 3), dtype=np.float64)
    normals[..., 0] = -dh_dx
    normals[..., 1] = spacing
    normals[..., 2] = -dh_dz
    normals /= np.max(np.abs(normals), axis=-1, keepdims=True)
    length = np.sqrt(np.sum(normals * normals, axis=-1, keepdims=True))
    return (normals / length).reshape(-1, 3)


def grid_indices(width: int, height: int) -> np.ndarray:
    """Two counter-clockwise (seen from +Y) triangles per grid cell."""

    cols = np.arange(width - 1, dtype=np.uint32)
    rows = np.arange(height - 1, dtype=np.uint32)
    a = (rows[:, None] * width + cols[None, :]).reshape(-1)
    b = a + 1
    c = a + width
    d = c + 1
    quads = np.stack((a, c, b, b, c, d), axis=1)
    return quads.reshape(-1).astype(np.uint32)


def build_geometry(parameters: MapParameters, heights: np.ndarray) -> GeometryBuffer:
    width, height = parameters.width, parameters.height
    spacing = parameters.scale
    xs = (np.arange(width, dtype=np.float64) - (width - 1) * 0.5) * spacing
    zs = (np.arange(height, dtype=np.float64) - (height - 1) * 0.5) * spacing
    grid_x, grid_z = np.meshgrid(xs, zs)
    positions = np.stack((grid_x, heights, grid_z), axis=-1).reshape(-1, 3)

    u, v = np.meshgrid(
        np.linspace(0.0, 1.0, width, dtype=np.float64),
        np.linspace(0.0, 1.0, height, dtype=np.float64),
    )
    uvs = np.stack((u, v), axis=-1).reshape(-1, 2)

    flat_heights = heights.reshape(-1)
    low = float(flat_heights.min())
    span = float(flat_heights.max()) - low
    if span > 0.0:
        shading = (flat_heights - low) / span
    else:
        shading = np.zeros_like(flat_heights)

    return GeometryBuffer(
        positions=positions,
        normals=grid_normals(heights, spacing),
        uvs=uvs,
        shading=shading,
        indices=grid_indices(width, height),
        width=width,
        height=height,
    )


def generate(parameters: MapParameters | MapData) -> Tuple[GeometryBuffer, MaterialParameters]:
    """Turn map parameters into a mesh and its matching material.

    Raises :class:`~mapgen.errors.InvalidParameters` before doing any work
    when the parameters are illegal. Any other failure is reported as
    :class:`~mapgen.errors.GenerationFailure`.
    """

    if isinstance(parameters, MapData):
        parameters = parameters.parameters
    parameters = parameters.normalized()

    try:
        with np.errstate(divide="raise", over="raise", invalid="raise", under="ignore"):
            heights = shape_heights(parameters)
            geometry = build_geometry(parameters, heights)
            material = derive_material(
                geometry.heights(), geometry.normals, parameters.amplitude
            )
    except (ArithmeticError, ValueError, FloatingPointError) as exc:
        raise GenerationFailure(f"Map generation failed: {exc}") from exc

    if not (np.all(np.isfinite(geometry.positions)) and np.all(np.isfinite(geometry.normals))):
        raise GenerationFailure("Map generation produced non-finite vertices")
    if not geometry.indices_in_bounds():
        raise GenerationFailure("Map generation produced out-of-range indices")

    LOGGER.debug(
        "Generated %dx%d map: vertices=%d triangles=%d range=%.3f",
        parameters.width,
        parameters.height,
        geometry.vertex_count,
        geometry.triangle_count,
        material.height_range,
    )
    return geometry, material


__all__ = [
    "build_geometry",
    "generate",
    "grid_indices",
    "grid_normals",
    "shape_heights",
]
