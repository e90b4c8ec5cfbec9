"""Runtime settings loaded from settings.json."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple

from mapgen.errors import InvalidParameters, ProvisioningError
from mapgen.world.map_data import MapParameters

SETTINGS_PATH = Path("settings.json")


def read_settings_file(settings_path: Path) -> Dict[str, Any]:
    """Parsed settings object, or an empty dict when the file is missing or unusable."""

    if not settings_path.exists():
        return {}
    try:
        data = json.loads(settings_path.read_text())
    except json.JSONDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


DEFAULT_SETTINGS: Dict[str, Any] = {
    "resolution": [1280, 720],
    "simHz": 60,
    "maxFps": 60,
    "regenHz": 10,
    "animate": True,
    "map": {},
}


@dataclass
class MapSettings:
    """Host and map defaults; anything missing falls back to compiled-in values."""

    resolution: Tuple[int, int] = (1280, 720)
    sim_hz: float = 60.0
    max_fps: int = 60
    regen_hz: float = 10.0
    animate: bool = True
    map_overrides: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MapSettings":
        merged = {**DEFAULT_SETTINGS, **data}
        resolution = merged.get("resolution") or DEFAULT_SETTINGS["resolution"]
        return cls(
            resolution=(int(resolution[0]), int(resolution[1])),
            sim_hz=float(merged["simHz"]),
            max_fps=int(merged["maxFps"]),
            regen_hz=float(merged["regenHz"]),
            animate=bool(merged["animate"]),
            map_overrides=dict(merged.get("map") or {}),
        )

    @classmethod
    def from_settings(cls, settings_path: Path = SETTINGS_PATH) -> "MapSettings":
        return cls.from_dict(read_settings_file(settings_path))

    @property
    def regen_interval(self) -> float:
        return 1.0 / self.regen_hz if self.regen_hz > 0.0 else 0.1

    def map_parameters(self) -> MapParameters:
        """Default map parameters with the configured overrides applied."""

        try:
            return MapParameters.from_dict(self.map_overrides)
        except InvalidParameters as exc:
            raise ProvisioningError(f"Invalid map defaults in settings: {exc}") from exc


__all__ = ["DEFAULT_SETTINGS", "MapSettings", "SETTINGS_PATH", "read_settings_file"]
