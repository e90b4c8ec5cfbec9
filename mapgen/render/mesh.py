"""Triangle mesh buffers produced by the map generator."""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

# position(3) | normal(3) | uv(2) | shading(1)
VERTEX_FORMAT = "3f 3f 2f 1f"
VERTEX_ATTRIBUTES = ("in_position", "in_normal", "in_uv", "in_shading")
FLOATS_PER_VERTEX = 9


def _frozen(array: np.ndarray, dtype: str) -> np.ndarray:
    result = np.ascontiguousarray(array, dtype=dtype)
    result.setflags(write=False)
    return result


@dataclass(eq=False)
class GeometryBuffer:
    """Vertex and index data for one generated map surface.

    Arrays are made read-only on construction so published content cannot be
    edited behind the asset store's back.
    """

    positions: np.ndarray
    normals: np.ndarray
    uvs: np.ndarray
    shading: np.ndarray
    indices: np.ndarray
    width: int
    height: int

    def __post_init__(self) -> None:
        self.positions = _frozen(self.positions, "f4").reshape(-1, 3)
        self.normals = _frozen(self.normals, "f4").reshape(-1, 3)
        self.uvs = _frozen(self.uvs, "f4").reshape(-1, 2)
        self.shading = _frozen(self.shading, "f4").reshape(-1)
        self.indices = _frozen(self.indices, "u4").reshape(-1)
        count = len(self.positions)
        if not (len(self.normals) == len(self.uvs) == len(self.shading) == count):
            raise ValueError("Vertex attribute arrays must have matching lengths")
        if len(self.indices) % 3:
            raise ValueError("Index count must be a multiple of three")

    @property
    def vertex_count(self) -> int:
        return int(len(self.positions))

    @property
    def triangle_count(self) -> int:
        return int(len(self.indices) // 3)

    def triangles(self) -> np.ndarray:
        return self.indices.reshape(-1, 3)

    def heights(self) -> np.ndarray:
        return self.positions[:, 1]

    def indices_in_bounds(self) -> bool:
        if not len(self.indices):
            return True
        return int(self.indices.max()) < self.vertex_count

    def face_normals(self) -> np.ndarray:
        """Unnormalized face normals following the index winding."""

        tris = self.triangles()
        a = self.positions[tris[:, 0]].astype(np.float64)
        b = self.positions[tris[:, 1]].astype(np.float64)
        c = self.positions[tris[:, 2]].astype(np.float64)
        return np.cross(b - a, c - a)

    def interleaved(self) -> np.ndarray:
        """Vertex rows laid out as :data:`VERTEX_FORMAT` for GPU upload."""

        return np.hstack(
            (self.positions, self.normals, self.uvs, self.shading.reshape(-1, 1))
        ).astype("f4")

    def to_bytes(self) -> bytes:
        header = np.array([self.width, self.height], dtype="u4").tobytes()
        return header + self.interleaved().tobytes() + self.indices.tobytes()

    def same_content(self, other: "GeometryBuffer") -> bool:
        return self.to_bytes() == other.to_bytes()


__all__ = [
    "FLOATS_PER_VERTEX",
    "GeometryBuffer",
    "VERTEX_ATTRIBUTES",
    "VERTEX_FORMAT",
]
