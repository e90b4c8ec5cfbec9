"""CPU preview of a published map for the demo host window."""
from __future__ import annotations

from dataclasses import dataclass, field
from math import radians, tan
from typing import List, Optional, Tuple

import numpy as np
import pygame
from pygame.math import Vector3

from mapgen.render.assets import PublishedMap

LIGHT_DIRECTION = Vector3(0.4, 1.0, 0.3).normalize()
AMBIENT = 0.35


@dataclass
class CameraFrameData:
    """Cached orientation and projection values for a rendered frame."""

    screen_size: tuple[int, int]
    position: Vector3
    forward: Vector3
    right: Vector3
    up: Vector3
    aspect: float
    fov_factor: float
    near: float

    def project_points(self, points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Project world-space rows into screen space.

        Returns ``(screen_xy, depth)``; points at or behind the near plane get
        a depth below ``near`` and should be culled by the caller.
        """

        rel = points.astype(np.float64) - np.array(tuple(self.position), dtype=np.float64)
        depth = rel @ np.array(tuple(self.forward), dtype=np.float64)
        x = rel @ np.array(tuple(self.right), dtype=np.float64)
        y = rel @ np.array(tuple(self.up), dtype=np.float64)
        safe_depth = np.where(depth > self.near, depth, self.near)
        ndc_x = (x * self.fov_factor / self.aspect) / safe_depth
        ndc_y = (y * self.fov_factor) / safe_depth
        screen = np.empty((len(points), 2), dtype=np.float64)
        screen[:, 0] = (ndc_x * 0.5 + 0.5) * self.screen_size[0]
        screen[:, 1] = (-ndc_y * 0.5 + 0.5) * self.screen_size[1]
        return screen, depth


@dataclass
class PreviewCamera:
    """Fixed camera looking at a point of interest."""

    position: Vector3 = field(default_factory=lambda: Vector3(0.0, 60.0, -10.0))
    target: Vector3 = field(default_factory=lambda: Vector3(-15.0, -20.0, -120.0))
    fov_deg: float = 60.0
    near: float = 0.5

    def frame(self, screen_size: tuple[int, int]) -> CameraFrameData:
        forward = (self.target - self.position).normalize()
        right = forward.cross(Vector3(0.0, 1.0, 0.0))
        if right.length_squared() <= 1e-9:
            right = Vector3(1.0, 0.0, 0.0)
        right = right.normalize()
        up = right.cross(forward).normalize()
        width, height = screen_size
        return CameraFrameData(
            screen_size=screen_size,
            position=Vector3(self.position),
            forward=forward,
            right=right,
            up=up,
            aspect=width / height if height else 1.0,
            fov_factor=1.0 / tan(radians(self.fov_deg) * 0.5),
            near=self.near,
        )


@dataclass
class _PolygonCache:
    generation: int = -1
    screen_size: tuple[int, int] = (0, 0)
    polygons: List[Tuple[Tuple[int, int, int], List[Tuple[float, float]]]] = field(default_factory=list)


class MapPreview:
    """Draws shaded, depth-sorted triangles of a published map."""

    def __init__(self, camera: Optional[PreviewCamera] = None) -> None:
        self.camera = camera or PreviewCamera()
        self._cache = _PolygonCache()

    def _build(self, published: PublishedMap, translation: Vector3, screen_size: tuple[int, int]) -> None:
        geometry = published.geometry
        frame = self.camera.frame(screen_size)
        world = geometry.positions + np.array(tuple(translation), dtype=np.float32)
        screen, depth = frame.project_points(world)

        tris = geometry.triangles()
        tri_depth = depth[tris]
        visible = np.all(tri_depth > frame.near, axis=1)
        tris = tris[visible]
        order = np.argsort(-tri_depth[visible].mean(axis=1), kind="stable")
        tris = tris[order]

        normals = geometry.face_normals()[visible][order]
        lengths = np.linalg.norm(normals, axis=1)
        lengths[lengths == 0.0] = 1.0
        light = np.array(tuple(LIGHT_DIRECTION), dtype=np.float64)
        lambert = np.clip((normals / lengths[:, None]) @ light, 0.0, 1.0)
        gloss = 1.0 - 0.25 * published.material.roughness
        intensity = np.clip(AMBIENT + (1.0 - AMBIENT) * lambert * gloss, 0.0, 1.0)

        material = published.material
        low = np.array(material.low_color, dtype=np.float64)
        high = np.array(material.high_color, dtype=np.float64)
        shade = geometry.shading[tris].mean(axis=1)
        colors = (low + (high - low) * shade[:, None]) * intensity[:, None] * 255.0
        colors = np.clip(colors, 0.0, 255.0).astype(np.int32)

        polygons = []
        for tri, color in zip(tris, colors):
            points = [(float(screen[i, 0]), float(screen[i, 1])) for i in tri]
            polygons.append(((int(color[0]), int(color[1]), int(color[2])), points))
        self._cache = _PolygonCache(
            generation=published.geometry_generation,
            screen_size=screen_size,
            polygons=polygons,
        )

    def draw(self, surface: pygame.Surface, published: PublishedMap, translation: Vector3) -> int:
        screen_size = surface.get_size()
        if (
            self._cache.generation != published.geometry_generation
            or self._cache.screen_size != screen_size
        ):
            self._build(published, translation, screen_size)
        for color, points in self._cache.polygons:
            pygame.draw.polygon(surface, color, points)
        return len(self._cache.polygons)


__all__ = ["CameraFrameData", "MapPreview", "PreviewCamera"]
