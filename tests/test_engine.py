import math
import random

import pytest

from cfstation.config import (
    FAILURE_CYCLE_TIME_MS,
    PRESSURE_DEFAULT,
    StationConfig,
)
from cfstation.engine import (
    StationEngine,
    cycle_time_modifier,
    energy_consumption_kwh,
)
from cfstation.errors import InvalidArgumentError
from cfstation.metrics import StationStatus
from cfstation.random_model import RandomModel


def test_initial_metrics(engine):
    metrics = engine.read_metrics()
    assert metrics.state is StationStatus.READY
    assert metrics.pressure == PRESSURE_DEFAULT
    assert metrics.ideal_cycle_time == 7000
    assert metrics.actual_cycle_time == 7000
    assert metrics.number_of_manufactured_products == 0
    assert metrics.number_of_discarded_products == 0
    assert metrics.faulty_time == 0


def test_execute_then_completion_produces_a_part(engine):
    cycle_time_ms = engine.execute(42)

    metrics = engine.read_metrics()
    assert cycle_time_ms == 7000
    assert metrics.state is StationStatus.WORK_IN_PROGRESS
    assert metrics.product_serial_number == 42

    engine.step(6.9)
    assert engine.read_metrics().state is StationStatus.WORK_IN_PROGRESS

    engine.step(0.2)
    metrics = engine.read_metrics()
    assert metrics.state is StationStatus.DONE
    assert metrics.number_of_manufactured_products == 1
    assert metrics.number_of_discarded_products == 0
    assert metrics.actual_cycle_time == 7000
    assert metrics.energy_consumption == pytest.approx(150.0 * 7.0 / 3600.0)


def test_cycle_jitter_lengthens_the_cycle(engine, scripted):
    scripted.push(-1.25)  # jitter = -0.125, only its magnitude counts
    assert engine.execute(1) == 7000 + 875


def test_station_failure_enters_fault(engine, scripted):
    scripted.push(0.0, 3.5, 0.2)
    cycle_time_ms = engine.execute(7)
    assert cycle_time_ms == FAILURE_CYCLE_TIME_MS + 1000

    engine.step(6.5)
    metrics = engine.read_metrics()
    assert metrics.state is StationStatus.FAULT
    assert metrics.number_of_discarded_products == 1
    assert metrics.number_of_manufactured_products == 0
    assert engine.fault_clock.is_running
    assert metrics.faulty_time == 0


def test_reset_from_fault_latches_faulty_time(engine, scripted):
    scripted.push(0.0, 3.5, 0.2)
    engine.execute(7)
    engine.step(6.5)      # fault starts at t=6.0
    engine.step(2.0)

    engine.reset()
    metrics = engine.read_metrics()
    assert metrics.state is StationStatus.READY
    assert metrics.faulty_time == 2500
    assert not engine.fault_clock.is_running
    assert engine.fault_clock.elapsed_ms == 0


def test_discarded_product(engine, scripted):
    scripted.push(0.0, 0.0)  # execute: no jitter, no failure
    engine.execute(3)
    scripted.push(2.5)       # completion: discard
    engine.step(7.5)
    metrics = engine.read_metrics()
    assert metrics.state is StationStatus.DISCARDED
    assert metrics.number_of_discarded_products == 1
    assert metrics.number_of_manufactured_products == 0


def test_discard_draw_is_ignored_on_failure(engine, scripted):
    scripted.push(0.0, 3.5, 0.0)
    engine.execute(3)
    scripted.push(2.5)
    engine.step(6.0)
    metrics = engine.read_metrics()
    assert metrics.state is StationStatus.FAULT
    assert metrics.number_of_discarded_products == 1


def test_reset_keeps_counters_and_pressure(engine, scripted):
    engine.execute(1)
    scripted.push(0.0, 2.0)  # discard draw, then pressure sample +100
    engine.step(7.5)
    engine.reset()
    metrics = engine.read_metrics()
    assert metrics.state is StationStatus.READY
    assert metrics.number_of_manufactured_products == 1
    assert metrics.pressure == PRESSURE_DEFAULT + 100.0


def test_reset_during_cycle_cancels_completion(engine):
    engine.execute(5)
    engine.step(1.0)
    engine.reset()
    assert engine.read_metrics().state is StationStatus.READY
    assert not engine.scheduler.cycle_pending

    engine.step(7.0)    # the cancelled cycle was due at t=7
    metrics = engine.read_metrics()
    assert metrics.state is StationStatus.READY
    assert metrics.number_of_manufactured_products == 0
    assert metrics.number_of_discarded_products == 0
    assert metrics.energy_consumption == 0.0
    assert metrics.pressure == PRESSURE_DEFAULT
    assert metrics.actual_cycle_time == 7000


def test_reset_during_failing_cycle_does_not_start_fault_clock(engine, scripted):
    scripted.push(0.0, 3.5, 0.2)
    engine.execute(7)
    engine.step(2.0)
    engine.reset()
    engine.step(10.0)   # the failing cycle was due at t=6
    metrics = engine.read_metrics()
    assert metrics.state is StationStatus.READY
    assert metrics.number_of_discarded_products == 0
    assert metrics.faulty_time == 0
    assert not engine.fault_clock.is_running


def test_execute_after_reset_completes_normally(engine):
    engine.execute(5)
    engine.step(1.0)
    engine.reset()
    engine.execute(6)
    engine.step(7.5)
    metrics = engine.read_metrics()
    assert metrics.state is StationStatus.DONE
    assert metrics.number_of_manufactured_products == 1
    assert metrics.product_serial_number == 6
    assert metrics.actual_cycle_time == 7000


def test_reset_when_idle_cancels_nothing(engine, caplog):
    with caplog.at_level("INFO", logger="cfstation"):
        engine.reset()
    assert "pending cycle cancelled" not in caplog.text
    assert engine.read_metrics().state is StationStatus.READY


def test_execute_clamps_ideal_cycle_time_to_half_default(engine):
    engine.set_ideal_cycle_time(1000)
    cycle_time_ms = engine.execute(9)
    assert engine.read_metrics().ideal_cycle_time == 3500
    assert cycle_time_ms == 3500


@pytest.mark.parametrize("ideal", [1, 100, 3499])
def test_any_ideal_cycle_time_below_floor_is_clamped(make_engine, ideal):
    engine = make_engine(ideal_cycle_time_default_ms=7000)
    engine.set_ideal_cycle_time(ideal)
    engine.execute(1)
    assert engine.read_metrics().ideal_cycle_time == 3500


def test_faster_cycle_raises_power_draw(engine, scripted):
    engine.set_ideal_cycle_time(3500)
    engine.execute(1)
    engine.step(4.0)
    assert engine.cycle_time_modifier == pytest.approx(math.e)
    assert engine.power_consumption_adjusted == pytest.approx(150.0 * math.e)
    metrics = engine.read_metrics()
    assert metrics.energy_consumption == pytest.approx(150.0 * math.e * 3.5 / 3600.0)
    # pressure drifts by the modifier-driven mean when the sample is exactly the mean
    assert metrics.pressure == pytest.approx(PRESSURE_DEFAULT + (math.e - 1.0) * 100.0)


def test_modifier_is_exactly_one_at_default_cycle_time(engine):
    assert cycle_time_modifier(7000, 7000) == 1.0
    engine.execute(1)
    engine.step(7.5)
    assert engine.cycle_time_modifier == 1.0
    assert engine.power_consumption_adjusted == 150.0


def test_energy_consumption_formula():
    assert energy_consumption_kwh(150.0, 7200) == 150.0 * 7.2 / 3600.0
    assert energy_consumption_kwh(0.0, 7200) == 0.0


def test_overlapping_execute_replaces_pending_cycle(engine, caplog):
    engine.execute(1)
    engine.step(3.0)
    with caplog.at_level("WARNING", logger="cfstation"):
        engine.execute(2)
    assert "previous cycle cancelled" in caplog.text

    engine.step(5.0)   # first cycle would have finished at t=7
    metrics = engine.read_metrics()
    assert metrics.state is StationStatus.WORK_IN_PROGRESS
    assert metrics.number_of_manufactured_products == 0

    engine.step(3.0)
    metrics = engine.read_metrics()
    assert metrics.state is StationStatus.DONE
    assert metrics.number_of_manufactured_products == 1
    assert metrics.product_serial_number == 2
    assert metrics.actual_cycle_time == 7000


def test_back_to_back_execute_before_clock_advances(engine):
    engine.execute(1)
    engine.execute(2)
    engine.execute(3)
    engine.step(7.5)
    metrics = engine.read_metrics()
    assert metrics.state is StationStatus.DONE
    assert metrics.number_of_manufactured_products == 1
    assert metrics.product_serial_number == 3
    assert not engine.scheduler.cycle_pending


def test_execute_from_done_starts_next_cycle(engine):
    engine.execute(1)
    engine.step(7.5)
    engine.execute(2)
    assert engine.read_metrics().state is StationStatus.WORK_IN_PROGRESS
    engine.step(7.5)
    assert engine.read_metrics().number_of_manufactured_products == 2


def test_read_metrics_returns_a_copy(engine):
    snapshot = engine.read_metrics()
    engine.execute(11)
    assert snapshot.state is StationStatus.READY
    assert snapshot.product_serial_number == 0


@pytest.mark.parametrize("serial", [-1, 2 ** 64, 1.5, "42", True, None])
def test_execute_rejects_invalid_serial_numbers(engine, serial):
    with pytest.raises(InvalidArgumentError):
        engine.execute(serial)
    assert engine.read_metrics().state is StationStatus.READY


def test_set_ideal_cycle_time_rejects_zero(engine):
    with pytest.raises(InvalidArgumentError):
        engine.set_ideal_cycle_time(0)


def test_overall_running_time_is_only_set_externally(engine):
    engine.execute(1)
    engine.step(7.5)
    assert engine.read_metrics().overall_running_time == 0
    engine.set_overall_running_time(120000)
    assert engine.read_metrics().overall_running_time == 120000


def test_planned_cycle_times_are_non_negative_integers():
    engine = StationEngine(StationConfig(ideal_cycle_time_default_ms=1), random_model=RandomModel(seed=5))
    for _ in range(2000):
        cycle_time_ms, _failure = engine.plan_cycle(1)
        assert isinstance(cycle_time_ms, int)
        assert cycle_time_ms >= 0


def test_failure_rate_over_many_cycles():
    engine = StationEngine(StationConfig(), random_model=RandomModel(rng=random.Random(99)))
    n = 200000
    failures = sum(1 for _ in range(n) if engine.plan_cycle(7000)[1])
    assert abs(failures / n - 0.00135) < 0.0004


def test_seeded_engines_are_reproducible():
    def run(seed):
        engine = StationEngine(StationConfig(seed=seed))
        for serial in range(30):
            engine.execute(serial)
            engine.step(20.0)
        return engine.read_metrics()

    assert run(3) == run(3)
