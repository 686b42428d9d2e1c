"""Telemetry record of a single station."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict

from .config import PRESSURE_DEFAULT


class StationStatus(IntEnum):
    READY = 0
    WORK_IN_PROGRESS = 1
    DONE = 2
    DISCARDED = 3
    FAULT = 4

    @property
    def label(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))


@dataclass
class StationMetrics:
    """Current values of the station's telemetry points.

    Durations are in milliseconds, energy in kWh and pressure in mbar.
    """
    ideal_cycle_time: int
    actual_cycle_time: int
    product_serial_number: int = 0
    number_of_manufactured_products: int = 0
    number_of_discarded_products: int = 0
    overall_running_time: int = 0
    faulty_time: int = 0
    state: StationStatus = StationStatus.READY
    energy_consumption: float = 0.0
    pressure: float = PRESSURE_DEFAULT

    @classmethod
    def initial(cls, ideal_cycle_time_default_ms: int) -> "StationMetrics":
        return cls(
            ideal_cycle_time=int(ideal_cycle_time_default_ms),
            actual_cycle_time=int(ideal_cycle_time_default_ms),
        )

    def snapshot(self) -> "StationMetrics":
        return dataclasses.replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ProductSerialNumber": self.product_serial_number,
            "NumberOfManufacturedProducts": self.number_of_manufactured_products,
            "NumberOfDiscardedProducts": self.number_of_discarded_products,
            "OverallRunningTime": self.overall_running_time,
            "FaultyTime": self.faulty_time,
            "Status": int(self.state),
            "StatusName": self.state.label,
            "EnergyConsumption": self.energy_consumption,
            "Pressure": self.pressure,
            "IdealCycleTime": self.ideal_cycle_time,
            "ActualCycleTime": self.actual_cycle_time,
        }
