"""Tests for deterministic map surface generation."""
from __future__ import annotations

import numpy as np
import pytest

from mapgen.errors import InvalidParameters
from mapgen.render.material import MIN_ROUGHNESS
from mapgen.world.generation import generate, grid_indices
from mapgen.world.map_data import (
    MAX_AMPLITUDE,
    MAX_GRID_POINTS,
    MAX_SCALE,
    MIN_NOISE_SCALE,
    MapData,
    MapParameters,
)


def _flat_params() -> MapParameters:
    return MapParameters(width=4, height=4, seed=1, scale=1.0, amplitude=0.0)


def test_flat_grid_creation_scenario() -> None:
    geometry, material = generate(_flat_params())

    assert geometry.vertex_count == 16
    assert geometry.triangle_count == 18
    heights = geometry.heights()
    assert np.all(heights == heights[0])
    assert material.height_range == 0.0
    assert material.low_color == material.high_color
    assert material.roughness == pytest.approx(MIN_ROUGHNESS)
    assert np.allclose(geometry.normals, [0.0, 1.0, 0.0])
    assert np.all(geometry.shading == 0.0)


def test_amplitude_produces_relief() -> None:
    geometry, material = generate(_flat_params().replace(amplitude=2.0))

    heights = geometry.heights()
    assert float(heights.max() - heights.min()) > 0.0
    assert material.height_range > 0.0
    assert 0.0 <= material.min_height <= material.max_height <= 2.0


def test_generation_is_deterministic() -> None:
    parameters = MapParameters(width=24, height=17, seed=42, amplitude=12.0, octaves=5)
    geometry_a, material_a = generate(parameters)
    geometry_b, material_b = generate(parameters)

    assert geometry_a.to_bytes() == geometry_b.to_bytes()
    assert material_a.to_bytes() == material_b.to_bytes()
    assert material_a == material_b


def test_different_seeds_give_different_surfaces() -> None:
    a, _ = generate(MapParameters(width=16, height=16, seed=1))
    b, _ = generate(MapParameters(width=16, height=16, seed=2))
    assert not a.same_content(b)


@pytest.mark.parametrize("width, height", [(2, 2), (4, 4), (5, 3), (3, 9), (33, 20)])
def test_index_bounds_and_triangle_count(width: int, height: int) -> None:
    geometry, _ = generate(MapParameters(width=width, height=height, amplitude=5.0))

    assert geometry.vertex_count == width * height
    assert geometry.triangle_count == 2 * (width - 1) * (height - 1)
    assert geometry.indices_in_bounds()
    assert int(geometry.indices.max()) < geometry.vertex_count


def test_winding_is_consistent_and_faces_up() -> None:
    geometry, _ = generate(MapParameters(width=20, height=14, amplitude=30.0, noise_scale=4.0))
    face_normals = geometry.face_normals()
    assert np.all(face_normals[:, 1] > 0.0)


def test_normals_are_unit_length_and_shading_normalized() -> None:
    geometry, _ = generate(MapParameters(width=12, height=12, amplitude=8.0))
    lengths = np.linalg.norm(geometry.normals, axis=1)
    assert np.allclose(lengths, 1.0, atol=1e-5)
    assert geometry.shading.min() == pytest.approx(0.0)
    assert geometry.shading.max() == pytest.approx(1.0)


def test_grid_is_centred_and_spaced_by_scale() -> None:
    geometry, _ = generate(MapParameters(width=3, height=3, scale=2.5, amplitude=0.0))
    xs = sorted(set(np.round(geometry.positions[:, 0], 4)))
    zs = sorted(set(np.round(geometry.positions[:, 2], 4)))
    assert xs == [-2.5, 0.0, 2.5]
    assert zs == [-2.5, 0.0, 2.5]


def test_cell_triangles_use_expected_corners() -> None:
    indices = grid_indices(3, 2).reshape(-1, 3).tolist()
    assert indices == [[0, 3, 1], [1, 3, 4], [1, 4, 2], [2, 4, 5]]


@pytest.mark.parametrize(
    "changes",
    [
        {"width": 2, "height": 2, "amplitude": 100.0},
        {"octaves": 8, "persistence": 1.0, "lacunarity": 4.0},
        {"redistribution": 8.0, "amplitude": 1e-3},
        {"redistribution": 0.1, "noise_scale": 0.01},
        {"scale": 1e-3, "amplitude": 1e3},
        {"scale": 1e-12, "amplitude": MAX_AMPLITUDE},
        {"scale": MAX_SCALE, "amplitude": MAX_AMPLITUDE},
        {"noise_scale": MIN_NOISE_SCALE, "octaves": 8, "lacunarity": 4.0},
        {"seed": -7},
    ],
)
def test_generation_is_total_over_legal_extremes(changes: dict) -> None:
    parameters = MapParameters(width=9, height=9).replace(**changes)
    geometry, material = generate(parameters)
    assert np.all(np.isfinite(geometry.positions))
    assert np.all(np.isfinite(geometry.normals))
    assert material.max_height >= material.min_height


def test_invalid_parameters_are_rejected_before_generation() -> None:
    with pytest.raises(InvalidParameters):
        generate(MapParameters(width=0))


def test_generate_accepts_map_data() -> None:
    map_data = MapData(_flat_params())
    geometry, _ = generate(map_data)
    assert geometry.vertex_count == 16


def test_generated_buffers_are_read_only() -> None:
    geometry, _ = generate(_flat_params())
    with pytest.raises(ValueError):
        geometry.positions[0, 1] = 5.0


def test_interleaved_layout_matches_vertex_format() -> None:
    geometry, _ = generate(_flat_params())
    rows = geometry.interleaved()
    assert rows.shape == (16, 9)
    assert rows.dtype == np.float32
    assert np.array_equal(rows[:, 0:3], geometry.positions)


def test_largest_legal_map_fits_float32_buffers() -> None:
    parameters = MapParameters(width=MAX_GRID_POINTS, height=2, scale=MAX_SCALE, amplitude=MAX_AMPLITUDE)
    geometry, material = generate(parameters)

    half_span = MAX_SCALE * (MAX_GRID_POINTS - 1) / 2.0
    assert float(np.abs(geometry.positions[:, 0]).max()) == pytest.approx(half_span, rel=1e-6)
    assert np.all(np.isfinite(geometry.interleaved()))
    assert material.max_height <= MAX_AMPLITUDE
