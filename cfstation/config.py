"""Configuration for the Connectedfactory station simulator."""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import ConfigError


# -------------------------
# Simulation constants
# -------------------------
FAILURE_CYCLE_TIME_MS = 5000            # a failing station takes at least this long
PRESSURE_STABLE_TIME_MS = 60 * 1000     # pressure stays stable this long before rising
PRESSURE_HIGH_TIME_MS = 120 * 1000      # high pressure phase is released after this
PRESSURE_DEFAULT = 2500.0               # mbar
PRESSURE_HIGH = 6000.0                  # mbar
POWER_CONSUMPTION_DEFAULT = 150.0       # kW
IDEAL_CYCLE_TIME_DEFAULT_MS = 7 * 1000

# Station stochastic model
CYCLE_JITTER_STDDEV = 0.1
FAILURE_THRESHOLD = 3.0                 # z-score, ~0.135% of cycles
DISCARD_THRESHOLD = 2.0                 # z-score, ~2.28% of cycles
PRESSURE_STDDEV = 50.0

# -------------------------
# Server defaults
# -------------------------
SERVER_PORT_DEFAULT = 51210
SERVER_PATH_DEFAULT = ""


def _env_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class StationConfig:
    """Settings read once at startup; the engine keeps its own copy."""
    ideal_cycle_time_default_ms: int = IDEAL_CYCLE_TIME_DEFAULT_MS
    power_consumption_kw: float = POWER_CONSUMPTION_DEFAULT
    generate_alerts: bool = False
    seed: Optional[int] = None

    def __post_init__(self):
        if int(self.ideal_cycle_time_default_ms) <= 0:
            raise ConfigError(
                f"Ideal cycle time must be larger than 0 ms, got {self.ideal_cycle_time_default_ms}")
        if float(self.power_consumption_kw) < 0:
            raise ConfigError(
                f"Power consumption must be larger or equal 0 kW, got {self.power_consumption_kw}")

    @property
    def ideal_cycle_time_minimum_ms(self) -> int:
        return max(1, int(self.ideal_cycle_time_default_ms) // 2)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "StationConfig":
        seed = config.get("seed")
        return cls(
            ideal_cycle_time_default_ms=int(config.get("ideal_cycle_time_ms", IDEAL_CYCLE_TIME_DEFAULT_MS)),
            power_consumption_kw=float(config.get("power_consumption_kw", POWER_CONSUMPTION_DEFAULT)),
            generate_alerts=bool(config.get("generate_alerts", False)),
            seed=int(seed) if seed is not None else None,
        )

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "StationConfig":
        """Build a config from CFSTATION_* variables; cycle time is given in seconds."""
        env = os.environ if environ is None else environ
        config: Dict[str, Any] = {}
        try:
            if env.get("CFSTATION_CYCLE_TIME"):
                config["ideal_cycle_time_ms"] = int(float(env["CFSTATION_CYCLE_TIME"]) * 1000)
            if env.get("CFSTATION_POWER_CONSUMPTION"):
                config["power_consumption_kw"] = float(env["CFSTATION_POWER_CONSUMPTION"])
            if env.get("CFSTATION_SEED"):
                config["seed"] = int(env["CFSTATION_SEED"])
        except ValueError as exc:
            raise ConfigError(f"Invalid CFSTATION_* environment value: {exc}") from exc
        if env.get("CFSTATION_GENERATE_ALERTS"):
            config["generate_alerts"] = _env_bool(env["CFSTATION_GENERATE_ALERTS"])
        return cls.from_dict(config)


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = SERVER_PORT_DEFAULT
    path: str = SERVER_PATH_DEFAULT
    station_hostname: str = socket.gethostname()

    def __post_init__(self):
        if not 0 < int(self.port) < 65536:
            raise ConfigError(f"Port must be between 1 and 65535, got {self.port}")

    @property
    def prefix(self) -> str:
        path = (self.path or "").strip("/")
        return f"/{path}" if path else ""
