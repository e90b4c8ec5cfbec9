"""Tests for initial map provisioning."""
from __future__ import annotations

import logging

import pytest
from pygame.math import Vector3

from mapgen.engine.logger import DEFAULT_CHANNELS, LoggerConfig, MapLogger
from mapgen.errors import GenerationFailure, ProvisioningError
from mapgen.render.assets import MapAssets
from mapgen.world.bundle import DEFAULT_TRANSLATION
from mapgen.world.map_data import MapParameters
from mapgen.world.provisioning import InitialProvisioner, provision_map
from mapgen.world.regeneration import MapState, RegenerationCoordinator


def _quiet_logger() -> MapLogger:
    channels = {name: False for name in DEFAULT_CHANNELS}
    return MapLogger(LoggerConfig(level=logging.CRITICAL, channels=channels))


def _failing_generator(parameters: MapParameters):
    raise GenerationFailure("broken generator")


def test_provision_registers_consistent_pair() -> None:
    assets = MapAssets()
    coordinator = RegenerationCoordinator(assets, _quiet_logger())
    provisioner = InitialProvisioner(
        assets, coordinator, _quiet_logger(), defaults=MapParameters(width=6, height=5)
    )

    bundle = provisioner.provision("map")

    assert bundle.mesh in assets.meshes
    assert bundle.material in assets.materials
    published = assets.read(bundle.mesh, bundle.material)
    assert published.consistent
    assert published.geometry.vertex_count == 30
    assert coordinator.state("map") is MapState.PUBLISHED
    entry = coordinator.entry("map")
    assert entry.seen_revision == bundle.map_data.revision
    assert entry.generation == published.geometry_generation


def test_bundle_placement_defaults_and_overrides() -> None:
    assets = MapAssets()
    coordinator = RegenerationCoordinator(assets, _quiet_logger())
    provisioner = InitialProvisioner(assets, coordinator, _quiet_logger())

    default_bundle = provisioner.provision("a", MapParameters(width=4, height=4))
    placed = provisioner.provision("b", MapParameters(width=4, height=4), translation=Vector3(1.0, 2.0, 3.0))

    assert default_bundle.translation == Vector3(DEFAULT_TRANSLATION)
    assert placed.translation == Vector3(1.0, 2.0, 3.0)
    assert placed.world_position(Vector3(1.0, 0.0, 0.0)) == Vector3(2.0, 2.0, 3.0)
    assert default_bundle.visible


def test_invalid_defaults_are_fatal() -> None:
    assets = MapAssets()
    coordinator = RegenerationCoordinator(assets, _quiet_logger())
    provisioner = InitialProvisioner(assets, coordinator, _quiet_logger())

    with pytest.raises(ProvisioningError):
        provisioner.provision("map", MapParameters(width=0))
    assert len(assets.meshes) == 0
    assert coordinator.tracked() == []


def test_generation_failure_during_provisioning_is_fatal() -> None:
    assets = MapAssets()
    with pytest.raises(ProvisioningError):
        provision_map(assets, MapParameters(width=4, height=4), generator=_failing_generator)
    assert len(assets.materials) == 0


def test_provision_map_without_coordinator() -> None:
    assets = MapAssets()
    provisioned = provision_map(assets)

    assert provisioned.revision == 1
    assert provisioned.fingerprint == MapParameters().fingerprint()
    assert assets.read(*provisioned.handles).geometry_generation == provisioned.generation
