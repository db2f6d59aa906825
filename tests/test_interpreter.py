import logging
from typing import Dict, List

import numpy as np
import pytest

from energy_hub_mpc.mpc.interpreter import Interpreter
from energy_hub_mpc.mpc.state import AnchorState
from energy_hub_mpc.units.helper import UnitHelper
from energy_hub_mpc.units.storage_mpc import StorageMPC


class FakeVariable:
    def __init__(self, name: str, values: List[float]) -> None:
        self._name = name
        self.value = np.array(values)

    def name(self) -> str:
        return self._name


class FakeProblem:
    """Solved problem stand-in exposing named variables and an objective value."""

    def __init__(self, first_step: Dict[str, float], objective: float = 12.5) -> None:
        self._variables = [FakeVariable(name, [value, -1.0]) for name, value in first_step.items()]
        self.value = objective

    def variables(self) -> List[FakeVariable]:
        return self._variables


def _first_step(**overrides: float) -> Dict[str, float]:
    values = {
        "chp_power": 0.0,
        "chp_heat": 0.0,
        "gas_boiler_heat": 0.0,
        "heat_pump_electric_input": 40.0,
        "esu_charge": 100.0,
        "esu_discharge": 0.0,
        "tsu_charge": 0.0,
        "tsu_discharge": 10.0,
        "grid_purchase": 220.0,
    }
    for unit in ("chp", "gas_boiler", "heat_pump"):
        values.update({f"{unit}_on": 0.0, f"{unit}_hot_start": 0.0, f"{unit}_warm_start": 0.0, f"{unit}_cold_start": 0.0})
    values.update({"chp_delay_ok": 0.0, "gas_boiler_delay_ok": 0.0})
    values.update({"heat_pump_on": 0.9999999, "heat_pump_hot_start": 1.0})
    values.update(overrides)
    return values


@pytest.fixture
def interpreter(config):
    storage_units = {
        "esu": StorageMPC(UnitHelper.ESU, config["esu"], 6),
        "tsu": StorageMPC(UnitHelper.TSU, config["tsu"], 6, carrier="heat"),
    }
    return Interpreter(config, storage_units)


@pytest.fixture
def anchor():
    return AnchorState.initial(60.0, 80.0, 2)


def test_first_step_is_applied(interpreter, anchor):
    record = interpreter.interpret(FakeProblem(_first_step()), anchor, solve_time=0.5)

    assert record.iteration == 0
    assert record.objective == 12.5
    assert record.solve_time == 0.5
    assert record.applied["grid_purchase"] == 220.0
    assert record.applied["heat_pump_heat"] == pytest.approx(120.0)


def test_storage_levels_advance_numerically(interpreter, anchor):
    record = interpreter.interpret(FakeProblem(_first_step()), anchor)

    assert record.esu_level == pytest.approx(60.0 * 0.99 + 0.95 * 100.0)
    assert record.tsu_level == pytest.approx(80.0 * 0.99 - 10.0 / 0.95)


def test_unit_states_advance_from_anchor(interpreter, anchor):
    record = interpreter.interpret(FakeProblem(_first_step()), anchor)

    heat_pump = record.units["heat_pump"]
    assert (heat_pump.on, heat_pump.start, heat_pump.hot_start, heat_pump.on_time) == (1, 1, 1, 1)
    assert heat_pump.output == pytest.approx(120.0)
    # Without a delay flag the heat pump output is gated by its on/off status
    assert heat_pump.delay_ok == 1

    chp = record.units["chp"]
    assert (chp.on, chp.off_time, chp.delay_ok) == (0, 3, 0)


def test_disagreeing_solver_flag_is_logged(interpreter, anchor, caplog):
    problem = FakeProblem(_first_step(heat_pump_hot_start=0.0, heat_pump_warm_start=1.0))

    with caplog.at_level(logging.WARNING):
        record = interpreter.interpret(problem, anchor)

    assert record.units["heat_pump"].hot_start == 1
    assert "heat_pump" in caplog.text
