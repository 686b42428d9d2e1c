"""Simulation of a single Connectedfactory manufacturing station."""

from .config import ServerConfig, StationConfig
from .engine import StationEngine
from .errors import ConfigError, InvalidArgumentError, StationError
from .metrics import StationMetrics, StationStatus
from .random_model import RandomModel

__version__ = "1.0.0"

__all__ = [
    "ConfigError",
    "InvalidArgumentError",
    "RandomModel",
    "ServerConfig",
    "StationConfig",
    "StationEngine",
    "StationError",
    "StationMetrics",
    "StationStatus",
]
