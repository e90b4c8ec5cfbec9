"""Channelled logging for the map runtime.

Each runtime component writes to its own channel (``mapgen.<channel>``).
Channels can be muted from settings.json without touching the global log
level; errors always get through.
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional

from mapgen.engine.settings import SETTINGS_PATH, read_settings_file

ROOT_LOGGER = "mapgen"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Components that log through a channel, and whether they start enabled.
DEFAULT_CHANNELS = {
    "regeneration": True,
    "assets": False,
    "provision": True,
}


@dataclass
class LoggerConfig:
    """Log level plus the on/off state of every channel."""

    level: int = logging.INFO
    channels: Dict[str, bool] = field(default_factory=lambda: dict(DEFAULT_CHANNELS))

    @classmethod
    def from_settings(cls, settings_path: Path) -> "LoggerConfig":
        data = read_settings_file(settings_path)
        level = getattr(logging, str(data.get("logLevel", "INFO")).upper(), logging.INFO)
        if not isinstance(level, int):
            level = logging.INFO
        channels = dict(DEFAULT_CHANNELS)
        channels.update({str(name): bool(on) for name, on in dict(data.get("logChannels") or {}).items()})
        return cls(level=level, channels=channels)


class ChannelLogger:
    """Forwards records to ``logger`` while the channel is enabled."""

    def __init__(self, name: str, logger: logging.Logger, enabled: bool) -> None:
        self.name = name
        self.enabled = enabled
        self._logger = logger

    def _emit(self, level: int, msg: str, *args, **kwargs) -> None:
        if self.enabled or level >= logging.ERROR:
            self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._emit(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._emit(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._emit(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs) -> None:
        self._emit(logging.ERROR, msg, *args, **kwargs)


class MapLogger:
    """Registry of channels below the ``mapgen`` root logger."""

    def __init__(self, config: Optional[LoggerConfig] = None) -> None:
        config = config or LoggerConfig()
        logging.basicConfig(level=config.level, format=LOG_FORMAT, stream=sys.stdout)
        logging.getLogger(ROOT_LOGGER).setLevel(config.level)
        self._channels: Dict[str, ChannelLogger] = {}
        for name, enabled in config.channels.items():
            self._add(name, enabled)

    def _add(self, name: str, enabled: bool) -> ChannelLogger:
        channel = ChannelLogger(name, logging.getLogger(f"{ROOT_LOGGER}.{name}"), enabled)
        self._channels[name] = channel
        return channel

    def channel(self, name: str) -> ChannelLogger:
        # Channels nobody configured stay quiet until enabled.
        return self._channels.get(name) or self._add(name, False)

    def set_enabled(self, name: str, enabled: bool) -> None:
        self.channel(name).enabled = enabled

    def channels(self) -> Iterable[str]:
        return self._channels.keys()


def channel_or_default(logger: Optional[MapLogger], name: str, fallback: logging.Logger) -> ChannelLogger:
    """Resolve a channel, wrapping ``fallback`` when no runtime logger exists."""

    if logger is not None:
        return logger.channel(name)
    return ChannelLogger(name, fallback, True)


def init_logger(settings_path: Optional[Path] = None) -> MapLogger:
    return MapLogger(LoggerConfig.from_settings(settings_path or SETTINGS_PATH))


__all__ = [
    "ChannelLogger",
    "DEFAULT_CHANNELS",
    "LoggerConfig",
    "MapLogger",
    "channel_or_default",
    "init_logger",
]
