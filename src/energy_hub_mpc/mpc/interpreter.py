"""This module defines the Interpreter class, which turns a solved horizon problem into the applied closed-loop step.

Only the first step of the horizon is applied. The interpreter reads the first
step values of the decision variables, rounds the commitment binaries, advances
the commitment state of each dispatchable unit and the levels of both storage
units numerically, and packs everything into a `ClosedLoopRecord`.
"""

from typing import Any, Dict

import numpy as np
from cvxpy import Problem

from energy_hub_mpc.mpc.recorder import ClosedLoopRecord
from energy_hub_mpc.mpc.state import AnchorState
from energy_hub_mpc.units.commitment import UnitState, advance_unit_state
from energy_hub_mpc.units.helper import UnitHelper
from energy_hub_mpc.units.storage_mpc import StorageMPC
from energy_hub_mpc.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)

APPLIED_VARIABLES = (
    UnitHelper.CHP.variable_name("power"),
    UnitHelper.CHP.variable_name("heat"),
    UnitHelper.GAS_BOILER.variable_name("heat"),
    UnitHelper.HEAT_PUMP.variable_name("electric_input"),
    UnitHelper.ESU.variable_name("charge"),
    UnitHelper.ESU.variable_name("discharge"),
    UnitHelper.TSU.variable_name("charge"),
    UnitHelper.TSU.variable_name("discharge"),
    UnitHelper.GRID.variable_name("purchase"),
)


class Interpreter:
    """Interprets the solution of a horizon problem.

    The interpreter is stateless across iterations: everything it needs from
    the past is in the anchor state the problem was built on.
    """

    def __init__(self, config: Dict[str, Dict[str, Any]], storage_units: Dict[str, StorageMPC]) -> None:
        """Initializes the Interpreter.

        Args:
            config: The typed hub configuration.
            storage_units: The storage formulations of the hub, keyed by unit
                           name, used to advance the storage levels.
        """
        self._config = config
        self._storage_units = storage_units

    def interpret(self, mpc_problem: Problem, anchor: AnchorState, solve_time: float = 0.0) -> ClosedLoopRecord:
        """Extracts and applies the first step of a solved horizon problem.

        Args:
            mpc_problem: The solved CVXPY problem.
            anchor: The anchor state the problem was built on.
            solve_time: The wall-clock duration of the solve in seconds.

        Returns:
            The closed-loop record of the iteration.
        """
        values = self._load_first_step_values(mpc_problem)

        applied = {variable: values[variable] for variable in APPLIED_VARIABLES}
        heat_pump = UnitHelper.HEAT_PUMP
        cop = self._config[heat_pump.value]["cop"]
        applied[heat_pump.variable_name("heat")] = cop * applied[heat_pump.variable_name("electric_input")]

        units = {
            unit.value: self._advance_unit(unit, anchor.unit(unit), values, applied)
            for unit in UnitHelper.dispatchable_units()
        }

        esu = self._storage_units[UnitHelper.ESU.value]
        tsu = self._storage_units[UnitHelper.TSU.value]
        esu_level = esu.next_level(
            anchor.esu_level,
            applied[UnitHelper.ESU.variable_name("charge")],
            applied[UnitHelper.ESU.variable_name("discharge")],
        )
        tsu_level = tsu.next_level(
            anchor.tsu_level,
            applied[UnitHelper.TSU.variable_name("charge")],
            applied[UnitHelper.TSU.variable_name("discharge")],
        )

        record = ClosedLoopRecord(
            iteration=anchor.iteration,
            applied=applied,
            units=units,
            esu_level=esu_level,
            tsu_level=tsu_level,
            objective=float(mpc_problem.value),
            solve_time=solve_time,
        )
        logger.debug("Applied step of iteration %s: %s", anchor.iteration, record)

        return record

    def _advance_unit(
        self,
        unit: UnitHelper,
        previous: UnitState,
        values: Dict[str, float],
        applied: Dict[str, float],
    ) -> UnitState:
        """Advances the commitment state of one unit with its applied decision."""
        on = values[unit.variable_name("on")]
        delay_ok = values.get(unit.variable_name("delay_ok"), on)

        state = advance_unit_state(
            previous,
            on,
            self._config["start_up"]["hot_start_time"],
            self._config["start_up"]["warm_start_time"],
            output=applied[self._output_variable(unit)],
            delay_ok=delay_ok,
        )

        for tier in ("hot_start", "warm_start", "cold_start"):
            solver_flag = int(round(values[unit.variable_name(tier)]))
            if solver_flag != getattr(state, tier):
                logger.warning(
                    "Solver flag %s of %s is %s but the applied state gives %s.",
                    tier,
                    unit.value,
                    solver_flag,
                    getattr(state, tier),
                )

        return state

    @staticmethod
    def _output_variable(unit: UnitHelper) -> str:
        """Variable that ramp limits of the unit refer to."""
        if unit is UnitHelper.CHP:
            return unit.variable_name("power")
        return unit.variable_name("heat")

    @staticmethod
    def _load_first_step_values(mpc_problem: Problem) -> Dict[str, float]:
        """Maps every variable name of the problem to its value at the first horizon step."""
        values: Dict[str, float] = {}
        for variable in mpc_problem.variables():
            if variable.value is None:
                continue
            values[variable.name()] = float(np.atleast_1d(variable.value)[0])
        return values
