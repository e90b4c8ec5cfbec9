"""Entry point for the procedural map preview."""
from __future__ import annotations

import math
from pathlib import Path

import pygame

from mapgen.engine.loop import FixedTimestepLoop
from mapgen.engine.logger import init_logger
from mapgen.engine.schedule import BackgroundTicker, FixedIntervalTimer
from mapgen.engine.settings import MapSettings
from mapgen.render.assets import MapAssets
from mapgen.render.preview import MapPreview
from mapgen.world.map_data import MapData
from mapgen.world.provisioning import InitialProvisioner
from mapgen.world.regeneration import RegenerationCoordinator


SETTINGS_PATH = Path("settings.json")
BACKGROUND = (12, 14, 20)


class AmplitudeDriver:
    """Procedural driver that slowly breathes the map amplitude."""

    def __init__(self, map_data: MapData, period: float = 12.0, depth: float = 0.6) -> None:
        self.map_data = map_data
        self.base = map_data.get("amplitude")
        self.period = period
        self.depth = depth
        self._time = 0.0

    def update(self, dt: float) -> None:
        self._time += dt
        wave = 0.5 * (1.0 + math.sin(2.0 * math.pi * self._time / self.period))
        amplitude = self.base * (1.0 - self.depth + self.depth * wave)
        # Quantize so most fixed steps are not edits at all.
        self.map_data.set("amplitude", round(amplitude, 1))


def main() -> None:
    settings = MapSettings.from_settings(SETTINGS_PATH)
    logger = init_logger(SETTINGS_PATH)

    assets = MapAssets(logger)
    coordinator = RegenerationCoordinator(assets, logger)
    provisioner = InitialProvisioner(
        assets, coordinator, logger, defaults=settings.map_parameters()
    )
    bundle = provisioner.provision("map")

    driver = AmplitudeDriver(bundle.map_data) if settings.animate else None

    pygame.init()
    screen = pygame.display.set_mode(settings.resolution)
    pygame.display.set_caption("Procedural Map Preview")
    clock = pygame.time.Clock()
    preview = MapPreview()

    def process_events() -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                loop.stop()
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                loop.stop()

    def update(dt: float) -> None:
        if driver is not None:
            driver.update(dt)

    def render(alpha: float) -> None:
        screen.fill(BACKGROUND)
        if bundle.visible:
            published = assets.read(bundle.mesh, bundle.material)
            preview.draw(screen, published, bundle.translation)
        pygame.display.flip()
        clock.tick(settings.max_fps)

    loop = FixedTimestepLoop(
        update,
        render,
        process_events,
        fixed_hz=settings.sim_hz,
    )

    def show_status(dt: float) -> None:
        stats = coordinator.telemetry.snapshot()
        pygame.display.set_caption(
            f"Procedural Map Preview - {coordinator.state('map').value} "
            f"generated={stats.generations} avg={stats.average_generation_ms:.1f}ms"
        )

    loop.add_timer(FixedIntervalTimer(show_status, interval=1.0))

    # Regeneration ticks on its own thread, off the frame path.
    ticker = BackgroundTicker(coordinator.tick, settings.regen_interval, logger)
    ticker.start()
    try:
        loop.run()
    finally:
        ticker.stop(timeout=5.0)
        snapshot = coordinator.telemetry.snapshot()
        pygame.quit()
        print(
            f"\nRegeneration summary: ticks={snapshot.ticks} generated={snapshot.generations} "
            f"failed={snapshot.failures + snapshot.publish_failures} "
            f"avg={snapshot.average_generation_ms:.2f}ms"
        )


if __name__ == "__main__":
    main()
