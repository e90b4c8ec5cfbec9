"""Periodic regeneration of map surfaces whose parameters changed."""
from __future__ import annotations

import logging
import time
from concurrent.futures import Executor
from dataclasses import dataclass, field
from enum import Enum
from threading import Lock
from typing import Callable, Dict, Hashable, List, Optional, Tuple

from mapgen.engine.generation_clock import next_generation_id
from mapgen.engine.logger import ChannelLogger, MapLogger, channel_or_default
from mapgen.engine.telemetry import RegenerationTelemetry
from mapgen.errors import MapGenError, PublishFailure
from mapgen.render.assets import Handle, MapAssets
from mapgen.render.material import MaterialParameters
from mapgen.render.mesh import GeometryBuffer
from mapgen.world.generation import generate
from mapgen.world.map_data import MapData, MapParameters

LOGGER = logging.getLogger(__name__)

Generator = Callable[[MapParameters], Tuple[GeometryBuffer, MaterialParameters]]
GenerationResult = Tuple[GeometryBuffer, MaterialParameters, float]


class MapState(Enum):
    UNPUBLISHED = "unpublished"
    PUBLISHED = "published"
    STALE = "stale"


@dataclass
class TrackedMap:
    """Coordinator bookkeeping for one map entity."""

    key: Hashable
    map_data: MapData
    mesh: Handle
    material: Handle
    state: MapState = MapState.UNPUBLISHED
    seen_revision: int = 0
    published_fingerprint: Optional[str] = None
    generation: int = 0
    failures: int = 0


@dataclass
class TickReport:
    checked: int = 0
    regenerated: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def idle(self) -> bool:
        return self.regenerated == 0 and self.failed == 0


@dataclass
class _Job:
    entry: TrackedMap
    parameters: MapParameters
    revision: int
    fingerprint: str
    result: Optional[GenerationResult] = field(default=None, repr=False)
    error: Optional[MapGenError] = field(default=None, repr=False)


class RegenerationCoordinator:
    """Regenerates and republishes maps whose parameters changed since the last tick.

    Each tracked entity compares its :class:`MapData` revision with the last
    revision this coordinator observed. A changed entity is regenerated and
    its geometry and material are written through :meth:`MapAssets.publish`
    into the handles it already owns. Failures keep the entity stale so the
    next tick retries it.
    """

    def __init__(
        self,
        assets: MapAssets,
        logger: Optional[MapLogger] = None,
        *,
        generator: Generator = generate,
        executor: Optional[Executor] = None,
        telemetry: Optional[RegenerationTelemetry] = None,
    ) -> None:
        self.assets = assets
        self.generator = generator
        self.executor = executor
        self.telemetry = telemetry or RegenerationTelemetry()
        self._log: ChannelLogger = channel_or_default(logger, "regeneration", LOGGER)
        self._entries: Dict[Hashable, TrackedMap] = {}
        self._entries_lock = Lock()
        self._tick_lock = Lock()

    def track(
        self,
        key: Hashable,
        map_data: MapData,
        mesh: Handle,
        material: Handle,
        *,
        observed_revision: int = 0,
        fingerprint: Optional[str] = None,
        generation: int = 0,
    ) -> TrackedMap:
        """Start watching a map entity.

        Passing the revision and fingerprint that were already published
        registers the entity as published; otherwise the next tick fills
        the handles.
        """

        state = MapState.PUBLISHED if observed_revision > 0 else MapState.UNPUBLISHED
        entry = TrackedMap(
            key=key,
            map_data=map_data,
            mesh=mesh,
            material=material,
            state=state,
            seen_revision=observed_revision,
            published_fingerprint=fingerprint,
            generation=generation,
        )
        with self._entries_lock:
            if key in self._entries:
                raise KeyError(f"Map '{key}' is already tracked")
            self._entries[key] = entry
        self._log.debug("Tracking map %s (%s)", key, state.value)
        return entry

    def untrack(self, key: Hashable) -> TrackedMap:
        with self._entries_lock:
            return self._entries.pop(key)

    def entry(self, key: Hashable) -> TrackedMap:
        with self._entries_lock:
            return self._entries[key]

    def state(self, key: Hashable) -> MapState:
        return self.entry(key).state

    def tracked(self) -> List[Hashable]:
        with self._entries_lock:
            return list(self._entries)

    def tick(self, dt: float = 0.0) -> TickReport:
        """Check every tracked map once and regenerate the changed ones.

        A tick that starts while another one is still running returns an
        empty report; its changes are picked up by the following tick.
        """

        if not self._tick_lock.acquire(blocking=False):
            self._log.debug("Regeneration tick still running; coalescing")
            return TickReport()
        try:
            report = self._run_tick()
        finally:
            self._tick_lock.release()
        self.telemetry.advance_time(dt, self._log)
        return report

    def _run_tick(self) -> TickReport:
        report = TickReport()
        with self._entries_lock:
            entries = list(self._entries.values())

        jobs: List[_Job] = []
        for entry in entries:
            report.checked += 1
            parameters, revision = entry.map_data.snapshot()
            if revision == entry.seen_revision:
                continue
            if entry.state is MapState.PUBLISHED:
                entry.state = MapState.STALE
            fingerprint = parameters.fingerprint()
            if fingerprint == entry.published_fingerprint:
                # Edits cancelled out; the published pair already matches.
                entry.seen_revision = revision
                entry.state = MapState.PUBLISHED
                report.skipped += 1
                self.telemetry.record_skip()
                continue
            jobs.append(_Job(entry, parameters, revision, fingerprint))
        self.telemetry.record_tick(report.checked)

        if not jobs:
            return report
        self._generate_all(jobs)
        for job in jobs:
            if self._publish(job):
                report.regenerated += 1
            else:
                report.failed += 1
        return report

    def _generate_timed(self, parameters: MapParameters) -> GenerationResult:
        start = time.perf_counter()
        geometry, material = self.generator(parameters)
        return geometry, material, (time.perf_counter() - start) * 1000.0

    def _generate_all(self, jobs: List[_Job]) -> None:
        if self.executor is None or len(jobs) == 1:
            for job in jobs:
                try:
                    job.result = self._generate_timed(job.parameters)
                except MapGenError as exc:
                    job.error = exc
            return
        futures = [self.executor.submit(self._generate_timed, job.parameters) for job in jobs]
        for job, future in zip(jobs, futures):
            try:
                job.result = future.result()
            except MapGenError as exc:
                job.error = exc

    def _publish(self, job: _Job) -> bool:
        entry = job.entry
        if job.error is not None or job.result is None:
            entry.failures += 1
            self.telemetry.record_failure()
            self._log.error(
                "Regenerating map %s failed (attempt %d), keeping previous content: %s",
                entry.key,
                entry.failures,
                job.error,
            )
            return False

        geometry, material, duration_ms = job.result
        self.telemetry.record_generation(duration_ms)
        generation = next_generation_id()
        try:
            self.assets.publish(entry.mesh, entry.material, geometry, material, generation)
        except PublishFailure as exc:
            entry.failures += 1
            self.telemetry.record_publish_failure()
            self._log.error("Publishing map %s failed, retrying next tick: %s", entry.key, exc)
            return False

        entry.seen_revision = job.revision
        entry.published_fingerprint = job.fingerprint
        entry.generation = generation
        entry.state = MapState.PUBLISHED
        entry.failures = 0
        self._log.info(
            "Regenerated map %s: revision=%d generation=%d vertices=%d in %.2fms",
            entry.key,
            job.revision,
            generation,
            geometry.vertex_count,
            duration_ms,
        )
        return True


__all__ = [
    "Generator",
    "MapState",
    "RegenerationCoordinator",
    "TickReport",
    "TrackedMap",
]
