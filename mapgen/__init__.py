"""Procedural map surface generation with periodic regeneration."""
from __future__ import annotations

from mapgen.errors import (
    GenerationFailure,
    InvalidParameters,
    MapGenError,
    ProvisioningError,
    PublishFailure,
)
from mapgen.render.assets import AssetNotFound, AssetStore, Handle, MapAssets, PublishedMap
from mapgen.render.material import MaterialParameters
from mapgen.render.mesh import GeometryBuffer
from mapgen.world.bundle import MapBundle
from mapgen.world.generation import generate
from mapgen.world.map_data import MapData, MapParameters
from mapgen.world.provisioning import InitialProvisioner, provision_map
from mapgen.world.regeneration import MapState, RegenerationCoordinator, TickReport

__all__ = [
    "AssetNotFound",
    "AssetStore",
    "GenerationFailure",
    "GeometryBuffer",
    "Handle",
    "InitialProvisioner",
    "InvalidParameters",
    "MapAssets",
    "MapBundle",
    "MapData",
    "MapGenError",
    "MapParameters",
    "MapState",
    "MaterialParameters",
    "ProvisioningError",
    "PublishFailure",
    "PublishedMap",
    "RegenerationCoordinator",
    "TickReport",
    "generate",
    "provision_map",
]
