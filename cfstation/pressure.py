"""Vessel pressure simulation, including the optional high pressure alarm phase."""

from __future__ import annotations

import logging
from typing import Callable

from .config import (
    PRESSURE_DEFAULT,
    PRESSURE_HIGH,
    PRESSURE_HIGH_TIME_MS,
    PRESSURE_STABLE_TIME_MS,
    PRESSURE_STDDEV,
)
from .metrics import StationMetrics
from .random_model import RandomModel
from .scheduler import CycleScheduler
from .utils import ms_to_seconds

logger = logging.getLogger(__name__)


class PressureModel:
    """Advances ``metrics.pressure`` once per completed cycle.

    Without alerts the pressure is a random walk. With alerts it stays stable
    for PRESSURE_STABLE_TIME_MS, then climbs to PRESSURE_HIGH and is held
    there until the release valve opens or PRESSURE_HIGH_TIME_MS has passed.
    """

    def __init__(self, metrics: StationMetrics, random_model: RandomModel,
                 scheduler: CycleScheduler, now: Callable[[], float], generate_alerts: bool = False):
        self.metrics = metrics
        self.random = random_model
        self.scheduler = scheduler
        self._now = now
        self.generate_alerts = generate_alerts
        self.stable_since_s = now()

    @property
    def stable_for_s(self) -> float:
        return self._now() - self.stable_since_s

    def advance(self, cycle_time_modifier: float) -> float:
        sample = self.random.normal((cycle_time_modifier - 1.0) * 100.0, PRESSURE_STDDEV)

        if self.generate_alerts and self.stable_for_s > ms_to_seconds(PRESSURE_STABLE_TIME_MS):
            logger.debug(f"Current pressure is {self.metrics.pressure}")
            self.metrics.pressure += abs(sample)
            logger.debug(f"New pressure is {self.metrics.pressure} using {abs(sample)}")
            if self.metrics.pressure <= PRESSURE_DEFAULT:
                self.metrics.pressure = PRESSURE_DEFAULT + sample
                logger.debug(f"Pressure is below default ({PRESSURE_DEFAULT}). "
                             f"Now set to {self.metrics.pressure} using {sample}")
            if self.metrics.pressure >= PRESSURE_HIGH:
                if PRESSURE_HIGH_TIME_MS != 0 and self.scheduler.schedule_pressure_release(
                        PRESSURE_HIGH_TIME_MS, self._stop_high_phase):
                    logger.debug("Starting pressure high timer")
                self.metrics.pressure = PRESSURE_HIGH + sample
                logger.debug(f"Pressure above max ({PRESSURE_HIGH}). "
                             f"Now set to {self.metrics.pressure} using {sample}")
        else:
            self.metrics.pressure += sample
            logger.debug(f"New pressure is {self.metrics.pressure} using {sample}")

        return self.metrics.pressure

    def release(self):
        """Drop to the default pressure and restart the stable window."""
        self.metrics.pressure = PRESSURE_DEFAULT
        self.stable_since_s = self._now()

    def _stop_high_phase(self):
        logger.debug("Stop pressure high phase")
        self.release()
