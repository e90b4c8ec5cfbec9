"""In-memory asset storage with stable handles and paired publishing."""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from threading import RLock
from typing import Dict, Generic, Iterator, Optional, Tuple, TypeVar

from mapgen.engine.logger import ChannelLogger, MapLogger, channel_or_default
from mapgen.errors import PublishFailure
from mapgen.render.material import MaterialParameters
from mapgen.render.mesh import GeometryBuffer

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_handle_ids = itertools.count(1)


class AssetNotFound(KeyError):
    """Raised when a handle does not resolve to stored content."""


@dataclass(frozen=True)
class Handle:
    """Opaque reference to store-owned content. Ids are never reused."""

    kind: str
    id: int

    def __str__(self) -> str:
        return f"{self.kind}#{self.id}"


@dataclass
class AssetSlot(Generic[T]):
    """Mutable storage cell behind a handle."""

    content: T
    generation: int = 0
    revision: int = 0

    def assign(self, content: T, generation: int) -> None:
        self.content = content
        self.generation = generation
        self.revision += 1


class AssetStore(Generic[T]):
    """Handle-addressed storage for one kind of asset."""

    def __init__(self, kind: str, lock: Optional[RLock] = None) -> None:
        self.kind = kind
        self._lock = lock or RLock()
        self._slots: Dict[Handle, AssetSlot[T]] = {}

    def __contains__(self, handle: object) -> bool:
        with self._lock:
            return handle in self._slots

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)

    def __iter__(self) -> Iterator[Handle]:
        with self._lock:
            return iter(list(self._slots))

    def allocate(self, content: T, generation: int = 0) -> Handle:
        handle = Handle(self.kind, next(_handle_ids))
        with self._lock:
            self._slots[handle] = AssetSlot(content=content, generation=generation)
        return handle

    def get(self, handle: Handle) -> T:
        return self.get_mut(handle).content

    def get_mut(self, handle: Handle) -> AssetSlot[T]:
        with self._lock:
            slot = self._slots.get(handle)
        if slot is None:
            raise AssetNotFound(f"{self.kind} asset {handle} is not stored")
        return slot

    def remove(self, handle: Handle) -> T:
        with self._lock:
            slot = self._slots.pop(handle, None)
        if slot is None:
            raise AssetNotFound(f"{self.kind} asset {handle} is not stored")
        return slot.content


@dataclass(frozen=True)
class PublishedMap:
    """Geometry and material read together at one point in time."""

    geometry: GeometryBuffer
    material: MaterialParameters
    geometry_generation: int
    material_generation: int

    @property
    def consistent(self) -> bool:
        return self.geometry_generation == self.material_generation


class MapAssets:
    """Mesh and material stores that are always updated as a pair.

    Both stores share one lock. Readers that go through :meth:`read` can
    never observe geometry and material from different generations.
    """

    def __init__(self, logger: Optional[MapLogger] = None) -> None:
        self._lock = RLock()
        self.meshes: AssetStore[GeometryBuffer] = AssetStore("mesh", self._lock)
        self.materials: AssetStore[MaterialParameters] = AssetStore("material", self._lock)
        self._log: ChannelLogger = channel_or_default(logger, "assets", LOGGER)

    def register(
        self,
        geometry: GeometryBuffer,
        material: MaterialParameters,
        generation: int,
    ) -> Tuple[Handle, Handle]:
        with self._lock:
            mesh_handle = self.meshes.allocate(geometry, generation)
            material_handle = self.materials.allocate(material, generation)
        self._log.debug("Registered %s and %s (generation %d)", mesh_handle, material_handle, generation)
        return mesh_handle, material_handle

    def publish(
        self,
        mesh: Handle,
        material: Handle,
        geometry: GeometryBuffer,
        material_params: MaterialParameters,
        generation: int,
    ) -> None:
        """Replace the content behind both handles as one update.

        Both handles are resolved before anything is written, so a stale
        handle leaves the previous pair untouched.
        """

        with self._lock:
            try:
                mesh_slot = self.meshes.get_mut(mesh)
                material_slot = self.materials.get_mut(material)
            except AssetNotFound as exc:
                raise PublishFailure(f"Cannot publish generation {generation}: {exc}") from exc
            mesh_slot.assign(geometry, generation)
            material_slot.assign(material_params, generation)
        self._log.debug("Published generation %d to %s/%s", generation, mesh, material)

    def read(self, mesh: Handle, material: Handle) -> PublishedMap:
        with self._lock:
            mesh_slot = self.meshes.get_mut(mesh)
            material_slot = self.materials.get_mut(material)
            return PublishedMap(
                geometry=mesh_slot.content,
                material=material_slot.content,
                geometry_generation=mesh_slot.generation,
                material_generation=material_slot.generation,
            )


__all__ = [
    "AssetNotFound",
    "AssetSlot",
    "AssetStore",
    "Handle",
    "MapAssets",
    "PublishedMap",
]
