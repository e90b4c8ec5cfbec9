"""Tests for settings.json loading and logger configuration."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from mapgen.engine.logger import DEFAULT_CHANNELS, LoggerConfig, MapLogger, init_logger
from mapgen.engine.settings import MapSettings
from mapgen.errors import ProvisioningError
from mapgen.world.map_data import MapParameters


def test_missing_settings_file_uses_defaults(tmp_path: Path) -> None:
    settings = MapSettings.from_settings(tmp_path / "settings.json")
    assert settings == MapSettings()
    assert settings.regen_interval == pytest.approx(0.1)
    assert settings.map_parameters() == MapParameters()


def test_malformed_settings_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    assert MapSettings.from_settings(path) == MapSettings()


def test_settings_overrides_are_applied(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "regenHz": 4,
                "resolution": [640, 480],
                "animate": False,
                "map": {"width": 32, "seed": 9, "amplitude": 3},
            }
        )
    )
    settings = MapSettings.from_settings(path)

    assert settings.regen_interval == pytest.approx(0.25)
    assert settings.resolution == (640, 480)
    assert not settings.animate
    parameters = settings.map_parameters()
    assert (parameters.width, parameters.seed, parameters.amplitude) == (32, 9, 3.0)


def test_invalid_map_overrides_are_fatal() -> None:
    settings = MapSettings.from_dict({"map": {"width": 0}})
    with pytest.raises(ProvisioningError):
        settings.map_parameters()


def test_logger_config_reads_level_and_channels(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"logLevel": "debug", "logChannels": {"assets": True}}))

    config = LoggerConfig.from_settings(path)

    assert config.level == logging.DEBUG
    assert config.channels["assets"] is True
    assert config.channels["regeneration"] is DEFAULT_CHANNELS["regeneration"]


def test_default_channels_match_the_components_that_log() -> None:
    assert set(DEFAULT_CHANNELS) == {"regeneration", "assets", "provision"}
    assert LoggerConfig().channels == DEFAULT_CHANNELS
    assert LoggerConfig().channels is not DEFAULT_CHANNELS


def test_unknown_channels_start_disabled(tmp_path: Path) -> None:
    logger = init_logger(tmp_path / "missing.json")
    assert not logger.channel("unheard-of").enabled
    logger.set_enabled("unheard-of", True)
    assert logger.channel("unheard-of").enabled
    assert set(DEFAULT_CHANNELS).issubset(set(logger.channels()))


def test_disabled_channel_still_reports_errors(caplog: pytest.LogCaptureFixture) -> None:
    logger = MapLogger(LoggerConfig(level=logging.INFO, channels={"assets": False}))
    channel = logger.channel("assets")
    with caplog.at_level(logging.INFO, logger="mapgen.assets"):
        channel.info("hidden")
        channel.error("visible")
    messages = [record.getMessage() for record in caplog.records]
    assert "visible" in messages
    assert "hidden" not in messages


def test_logger_config_ignores_non_object_settings(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(["logLevel", "DEBUG"]))

    config = LoggerConfig.from_settings(path)

    assert config.level == logging.INFO
    assert config.channels == DEFAULT_CHANNELS
