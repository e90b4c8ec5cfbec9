"""First-time creation of map entities and their published assets."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Hashable, Optional, Tuple

from pygame.math import Vector3

from mapgen.engine.generation_clock import next_generation_id
from mapgen.engine.logger import ChannelLogger, MapLogger, channel_or_default
from mapgen.errors import GenerationFailure, InvalidParameters, ProvisioningError
from mapgen.render.assets import Handle, MapAssets
from mapgen.world.bundle import DEFAULT_TRANSLATION, MapBundle
from mapgen.world.generation import generate
from mapgen.world.map_data import MapData, MapParameters
from mapgen.world.regeneration import Generator, RegenerationCoordinator

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisionedMap:
    map_data: MapData
    mesh: Handle
    material: Handle
    revision: int
    fingerprint: str
    generation: int

    @property
    def handles(self) -> Tuple[Handle, Handle]:
        return self.mesh, self.material


def provision_map(
    assets: MapAssets,
    parameters: Optional[MapParameters] = None,
    *,
    generator: Generator = generate,
) -> ProvisionedMap:
    """Create map data, generate it once and register the results.

    Any failure here means the compiled-in or configured defaults are broken,
    so it is reported as :class:`ProvisioningError`.
    """

    try:
        map_data = MapData(parameters)
        snapshot, revision = map_data.snapshot()
        geometry, material = generator(snapshot)
    except (InvalidParameters, GenerationFailure) as exc:
        raise ProvisioningError(f"Unable to provision map: {exc}") from exc
    generation = next_generation_id()
    mesh_handle, material_handle = assets.register(geometry, material, generation)
    return ProvisionedMap(
        map_data=map_data,
        mesh=mesh_handle,
        material=material_handle,
        revision=revision,
        fingerprint=snapshot.fingerprint(),
        generation=generation,
    )


class InitialProvisioner:
    """Spawns map bundles and hands them to the regeneration coordinator."""

    def __init__(
        self,
        assets: MapAssets,
        coordinator: RegenerationCoordinator,
        logger: Optional[MapLogger] = None,
        *,
        defaults: Optional[MapParameters] = None,
    ) -> None:
        self.assets = assets
        self.coordinator = coordinator
        self.defaults = defaults or MapParameters()
        self._log: ChannelLogger = channel_or_default(logger, "provision", LOGGER)

    def provision(
        self,
        key: Hashable,
        parameters: Optional[MapParameters] = None,
        *,
        translation: Optional[Vector3] = None,
    ) -> MapBundle:
        provisioned = provision_map(
            self.assets,
            parameters or self.defaults,
            generator=self.coordinator.generator,
        )
        self.coordinator.track(
            key,
            provisioned.map_data,
            provisioned.mesh,
            provisioned.material,
            observed_revision=provisioned.revision,
            fingerprint=provisioned.fingerprint,
            generation=provisioned.generation,
        )
        params = provisioned.map_data.parameters
        self._log.info(
            "Provisioned map %s: %dx%d seed=%d mesh=%s material=%s",
            key,
            params.width,
            params.height,
            params.seed,
            provisioned.mesh,
            provisioned.material,
        )
        return MapBundle(
            key=key,
            map_data=provisioned.map_data,
            mesh=provisioned.mesh,
            material=provisioned.material,
            translation=Vector3(translation) if translation is not None else Vector3(DEFAULT_TRANSLATION),
        )


__all__ = ["InitialProvisioner", "ProvisionedMap", "provision_map"]
