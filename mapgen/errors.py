"""Error types raised by map generation and publishing."""
from __future__ import annotations

from typing import Optional


class MapGenError(Exception):
    """Base class for all map generation errors."""


class InvalidParameters(MapGenError, ValueError):
    """A parameter combination that cannot produce valid geometry."""

    def __init__(self, message: str, parameter: Optional[str] = None) -> None:
        super().__init__(message)
        self.parameter = parameter


class GenerationFailure(MapGenError, RuntimeError):
    """The generator failed on otherwise valid parameters."""


class PublishFailure(MapGenError, RuntimeError):
    """The asset store rejected a content replacement."""


class ProvisioningError(MapGenError, RuntimeError):
    """The initial map could not be created from its configured defaults."""


__all__ = [
    "GenerationFailure",
    "InvalidParameters",
    "MapGenError",
    "ProvisioningError",
    "PublishFailure",
]
