"""Entity record that hosts attach to a provisioned map."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Hashable

from pygame.math import Vector3

from mapgen.render.assets import Handle
from mapgen.world.map_data import MapData

DEFAULT_TRANSLATION = (-15.0, -20.0, -120.0)


@dataclass
class MapBundle:
    """Everything a host needs to spawn a map entity."""

    key: Hashable
    map_data: MapData
    mesh: Handle
    material: Handle
    translation: Vector3 = field(default_factory=lambda: Vector3(DEFAULT_TRANSLATION))
    visible: bool = True

    def world_position(self, local: Vector3) -> Vector3:
        return Vector3(local) + self.translation


__all__ = ["DEFAULT_TRANSLATION", "MapBundle"]
