"""State machine of a simulated Connectedfactory station."""

from __future__ import annotations

import logging
import math
import threading
from typing import Optional, Tuple

import simpy

from .config import (
    CYCLE_JITTER_STDDEV,
    DISCARD_THRESHOLD,
    FAILURE_CYCLE_TIME_MS,
    FAILURE_THRESHOLD,
    StationConfig,
)
from .errors import InvalidArgumentError
from .fault_clock import FaultClock
from .metrics import StationMetrics, StationStatus
from .pressure import PressureModel
from .random_model import RandomModel
from .scheduler import CycleScheduler
from .utils import seconds_to_ms

logger = logging.getLogger(__name__)

UINT64_MAX = 2 ** 64 - 1


def _as_uint64(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
    if not 0 <= value <= UINT64_MAX:
        raise InvalidArgumentError(f"{name} must be between 0 and {UINT64_MAX}, got {value}")
    return value


def cycle_time_modifier(ideal_cycle_time_default_ms: float, ideal_cycle_time_ms: float) -> float:
    """Power multiplier for running faster than the default cycle time.

    Equals (1/e) * 1/exp(-default/ideal); exactly 1.0 at the default.
    """
    return math.exp(float(ideal_cycle_time_default_ms) / float(ideal_cycle_time_ms) - 1.0)


def energy_consumption_kwh(power_kw: float, cycle_time_ms: int) -> float:
    # the station draws power for the whole cycle
    return (power_kw * (cycle_time_ms / 1000.0)) / 3600.0


class StationEngine:
    """Runs production cycles and keeps the station's metrics consistent.

    Every public method takes the same lock. Delayed work (cycle completion,
    high pressure release) runs on ``env`` and fires from ``step()``, which
    holds the lock while the clock advances, so callbacks never interleave
    with callers.
    """

    def __init__(self, config: Optional[StationConfig] = None,
                 random_model: Optional[RandomModel] = None,
                 env: Optional[simpy.Environment] = None):
        self.config = config or StationConfig()
        self.env = env or simpy.Environment()
        self.random = random_model or RandomModel(seed=self.config.seed)
        self._lock = threading.RLock()

        self.metrics = StationMetrics.initial(self.config.ideal_cycle_time_default_ms)
        self.scheduler = CycleScheduler(self.env)
        self.fault_clock = FaultClock(lambda: self.env.now)
        self.pressure_model = PressureModel(
            self.metrics, self.random, self.scheduler,
            lambda: self.env.now, generate_alerts=self.config.generate_alerts)

        self._cycle_start_s = self.env.now
        self.cycle_time_modifier = 1.0
        self.power_consumption_adjusted = self.config.power_consumption_kw

    # -------------------------
    # Methods
    # -------------------------
    def execute(self, serial_number: int) -> int:
        """Start building the part ``serial_number``; returns the scheduled cycle time in ms."""
        serial_number = _as_uint64(serial_number, "ProductSerialNumber")
        with self._lock:
            self.metrics.product_serial_number = serial_number
            self._cycle_start_s = self.env.now
            self._set_state(StationStatus.WORK_IN_PROGRESS)

            ideal_cycle_time = self._clamp_ideal_cycle_time()
            cycle_time_ms, station_failure = self.plan_cycle(ideal_cycle_time)
            if station_failure:
                logger.info(f"Station is in fault for {cycle_time_ms} msec.")

            if self.scheduler.schedule_cycle(cycle_time_ms, self._on_cycle_finished, station_failure):
                logger.warning(f"Execute called while a cycle was pending; "
                               f"previous cycle cancelled, now building product #{serial_number}")
            self._update_faulty_time()
            logger.debug(f"Execute method called. Now building product #{serial_number}")
            return cycle_time_ms

    def reset(self):
        with self._lock:
            if self.scheduler.cancel_cycle():
                logger.info(f"Reset called while building product #{self.metrics.product_serial_number}; "
                            f"pending cycle cancelled")
            self.fault_clock.stop()
            self._set_state(StationStatus.READY)
            self._update_faulty_time()
            logger.debug("Reset method called")

    def open_pressure_release_valve(self):
        with self._lock:
            self.pressure_model.release()
            logger.debug("OpenPressureReleaseValve method called")

    def read_metrics(self) -> StationMetrics:
        with self._lock:
            return self.metrics.snapshot()

    def set_ideal_cycle_time(self, ideal_cycle_time_ms: int):
        """Write the IdealCycleTime point; the floor is applied on the next Execute."""
        ideal_cycle_time_ms = _as_uint64(ideal_cycle_time_ms, "IdealCycleTime")
        if ideal_cycle_time_ms == 0:
            raise InvalidArgumentError("IdealCycleTime must be larger than 0")
        with self._lock:
            self.metrics.ideal_cycle_time = ideal_cycle_time_ms

    def set_overall_running_time(self, overall_running_time_ms: int):
        overall_running_time_ms = _as_uint64(overall_running_time_ms, "OverallRunningTime")
        with self._lock:
            self.metrics.overall_running_time = overall_running_time_ms

    def step(self, dt_s: float):
        """Advance the simulation clock by ``dt_s`` seconds, firing due tasks."""
        with self._lock:
            target = self.env.now + float(dt_s)
            if dt_s > 0 and target > self.env.now:
                self.env.run(until=target)

    # -------------------------
    # Simulation
    # -------------------------
    def plan_cycle(self, ideal_cycle_time: int) -> Tuple[int, bool]:
        """Draw the duration and failure outcome of the next cycle."""
        jitter = self.random.normal(0.0, CYCLE_JITTER_STDDEV)
        cycle_time_ms = int(ideal_cycle_time) + round(abs(ideal_cycle_time * jitter))
        station_failure = self.random.normal(0.0, 1.0) > FAILURE_THRESHOLD
        if station_failure:
            # a failing station takes considerably longer
            failure_jitter = self.random.normal(0.0, 1.0)
            cycle_time_ms = FAILURE_CYCLE_TIME_MS + round(abs(FAILURE_CYCLE_TIME_MS * failure_jitter))
        return cycle_time_ms, station_failure

    def _clamp_ideal_cycle_time(self) -> int:
        minimum = self.config.ideal_cycle_time_minimum_ms
        if self.metrics.ideal_cycle_time < minimum:
            self.metrics.ideal_cycle_time = minimum
        return self.metrics.ideal_cycle_time

    def _on_cycle_finished(self, station_failure: bool):
        with self._lock:
            self._calculate_result(station_failure)
            self._update_faulty_time()

    def _calculate_result(self, station_failure: bool):
        product_discarded = self.random.normal(0.0, 1.0) > DISCARD_THRESHOLD

        self.metrics.actual_cycle_time = seconds_to_ms(self.env.now - self._cycle_start_s)
        logger.debug(f"Actual cycle time is {self.metrics.actual_cycle_time}")

        # power draw rises exponentially below the default ideal cycle time
        ideal_cycle_time = max(self.metrics.ideal_cycle_time, self.config.ideal_cycle_time_minimum_ms)
        self.cycle_time_modifier = cycle_time_modifier(
            self.config.ideal_cycle_time_default_ms, ideal_cycle_time)
        self.power_consumption_adjusted = self.config.power_consumption_kw * self.cycle_time_modifier
        logger.debug(f"Cycle time modifier is {self.cycle_time_modifier}, "
                     f"adjusted power consumption is {self.power_consumption_adjusted} kW")

        self.metrics.energy_consumption = energy_consumption_kwh(
            self.power_consumption_adjusted, self.metrics.actual_cycle_time)
        logger.debug(f"New energy consumption is {self.metrics.energy_consumption}")

        self.pressure_model.advance(self.cycle_time_modifier)

        if station_failure:
            self.metrics.number_of_discarded_products += 1
            self._set_state(StationStatus.FAULT)
            self.fault_clock.start()
        elif product_discarded:
            self.metrics.number_of_discarded_products += 1
            self._set_state(StationStatus.DISCARDED)
        else:
            self.metrics.number_of_manufactured_products += 1
            self._set_state(StationStatus.DONE)
        logger.debug(f"Number of manufactured products is {self.metrics.number_of_manufactured_products}")
        logger.debug(f"Number of discarded products is {self.metrics.number_of_discarded_products}")

    def _update_faulty_time(self):
        # latch the last fault episode once the clock has been stopped
        if not self.fault_clock.is_running:
            elapsed_ms = self.fault_clock.elapsed_ms
            self.metrics.faulty_time = elapsed_ms
            if elapsed_ms != 0:
                self.fault_clock.reset()

    def _set_state(self, state: StationStatus):
        self.metrics.state = state
        logger.debug(f"Station status is '{state.label}'")
