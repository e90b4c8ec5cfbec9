"""Tests for the mesh and material stores and paired publishing."""
from __future__ import annotations

import threading

import pytest

from mapgen.errors import PublishFailure
from mapgen.render.assets import AssetNotFound, AssetStore, Handle, MapAssets
from mapgen.world.generation import generate
from mapgen.world.map_data import MapParameters


def _pair(amplitude: float):
    return generate(MapParameters(width=4, height=4, amplitude=amplitude))


def test_store_allocates_unique_handles() -> None:
    store: AssetStore[str] = AssetStore("text")
    first = store.allocate("a")
    second = store.allocate("b")

    assert first != second
    assert store.get(first) == "a"
    assert store.get(second) == "b"
    assert len(store) == 2
    assert first in store


def test_get_mut_updates_content_in_place() -> None:
    store: AssetStore[str] = AssetStore("text")
    handle = store.allocate("a", generation=1)

    slot = store.get_mut(handle)
    slot.assign("b", generation=2)

    assert store.get(handle) == "b"
    assert store.get_mut(handle).generation == 2
    assert store.get_mut(handle).revision == 1


def test_missing_handle_raises_asset_not_found() -> None:
    store: AssetStore[str] = AssetStore("text")
    handle = store.allocate("a")
    store.remove(handle)

    with pytest.raises(AssetNotFound):
        store.get(handle)
    with pytest.raises(KeyError):
        store.get_mut(Handle("text", -1))


def test_publish_replaces_both_contents_under_same_handles() -> None:
    assets = MapAssets()
    geometry, material = _pair(0.0)
    mesh, mat = assets.register(geometry, material, generation=1)

    new_geometry, new_material = _pair(2.0)
    assets.publish(mesh, mat, new_geometry, new_material, generation=2)

    published = assets.read(mesh, mat)
    assert published.geometry is new_geometry
    assert published.material is new_material
    assert published.geometry_generation == published.material_generation == 2
    assert published.consistent


def test_publish_with_stale_handle_writes_nothing() -> None:
    assets = MapAssets()
    geometry, material = _pair(0.0)
    mesh, mat = assets.register(geometry, material, generation=1)
    assets.meshes.remove(mesh)

    new_geometry, new_material = _pair(2.0)
    with pytest.raises(PublishFailure):
        assets.publish(mesh, mat, new_geometry, new_material, generation=2)

    slot = assets.materials.get_mut(mat)
    assert slot.content is material
    assert slot.generation == 1
    assert slot.revision == 0


def test_readers_never_observe_mixed_generations() -> None:
    assets = MapAssets()
    pairs = [_pair(0.0), _pair(3.0)]
    mesh, mat = assets.register(*pairs[0], generation=0)
    stop = threading.Event()

    def writer() -> None:
        generation = 0
        while not stop.is_set():
            generation += 1
            geometry, material = pairs[generation % 2]
            assets.publish(mesh, mat, geometry, material, generation)

    thread = threading.Thread(target=writer, daemon=True)
    thread.start()
    try:
        for _ in range(2000):
            assert assets.read(mesh, mat).consistent
    finally:
        stop.set()
        thread.join(timeout=5.0)
