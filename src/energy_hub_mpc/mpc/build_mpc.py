import os
from time import time
from typing import Any, Dict, List, Tuple

import cvxpy as cvx

from energy_hub_mpc.mpc.errors import InfeasibleHorizonError, SolverFailureError
from energy_hub_mpc.mpc.state import AnchorState
from energy_hub_mpc.retrievers.forecast_retriever import ForecastWindow
from energy_hub_mpc.units.chp_mpc import CombinedHeatPowerMPC
from energy_hub_mpc.units.gas_boiler_mpc import GasBoilerMPC
from energy_hub_mpc.units.heat_pump_mpc import HeatPumpMPC
from energy_hub_mpc.units.helper import UnitHelper
from energy_hub_mpc.units.storage_mpc import StorageMPC
from energy_hub_mpc.units.unit_mpc import UnitMPC
from energy_hub_mpc.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)

SOLVED_STATUSES = (cvx.OPTIMAL, cvx.OPTIMAL_INACCURATE)
# All variables are bounded, so "infeasible or unbounded" from a MIP presolve means infeasible
INFEASIBLE_STATUSES = (cvx.INFEASIBLE, cvx.INFEASIBLE_INACCURATE, "infeasible_or_unbounded")
# Energy carrier whose balance each storage unit takes part in
STORAGE_CARRIERS = {UnitHelper.ESU: "electric", UnitHelper.TSU: "heat"}


class HorizonProblemBuilder:
    """Builds and solves the horizon problem of one MPC iteration.

    The problem is rebuilt from scratch at every call from the anchor state and
    the forecast window; no model object survives between iterations.
    """

    def __init__(self, config: Dict[str, Dict[str, Any]]) -> None:
        """Initialize with the typed hub configuration (see `HubConfigRetriever`)."""
        self._config = config
        self.steps_horizon_k: int = config["mpc"]["horizon"]
        self.time_step: float = config["mpc"]["time_step"]
        self.units = self._instantiate_units(config)

    @property
    def storage_units(self) -> Dict[str, StorageMPC]:
        return {unit.value: self.units[unit.value] for unit in UnitHelper.storage_units()}

    def create_mpc_formulation(
        self,
        anchor: AnchorState,
        window: ForecastWindow,
    ) -> Tuple[cvx.Problem, cvx.Variable]:
        """Create the horizon problem aggregating all units of the hub.

        Args:
            anchor: The applied closed-loop state preceding the horizon.
            window: The forecast for the horizon steps.

        Returns:
            The cvxpy problem and the electricity purchase variable.
        """
        if len(window) != self.steps_horizon_k:
            logger.error(
                "Forecast window has %s steps but the horizon has %s.",
                len(window),
                self.steps_horizon_k,
            )
            raise ValueError("forecast window length must equal the horizon length.")

        objectives_units: List[Any] = []
        constraints_units: List[Any] = []
        electric_injections: List[cvx.Expression] = []
        heat_injections: List[cvx.Expression] = []
        for unit_name, unit_mpc in self.units.items():
            start_time = time()
            obj, cons, injection = unit_mpc.create_mpc_formulation(window, anchor)
            execution_time = time() - start_time
            logger.debug("The creation of the MPC for unit %s took %.3f seconds", unit_name, execution_time)
            objectives_units.extend(obj)
            constraints_units.extend(cons)
            if "electric" in injection:
                electric_injections.append(injection["electric"])
            if "heat" in injection:
                heat_injections.append(injection["heat"])

        # Electricity purchased from the grid
        grid = self._config["grid"]
        purchase = cvx.Variable(self.steps_horizon_k, nonneg=True, name=UnitHelper.GRID.variable_name("purchase"))

        # Define constraints
        mpc_constraints: List[Any] = []
        mpc_constraints.extend(constraints_units)
        mpc_constraints.append(purchase >= grid["purchase_min"])
        mpc_constraints.append(purchase <= grid["purchase_max"])

        # Electrical and thermal power balance
        mpc_constraints.append(sum(electric_injections) + purchase + window.solar - window.electric_demand == 0)
        mpc_constraints.append(sum(heat_injections) - window.heat_demand == 0)

        # Define MPC objective
        purchase_cost = self.time_step * cvx.sum(cvx.multiply(window.electricity_price, purchase))
        mpc_objective = purchase_cost + sum(objectives_units)

        mpc_problem = cvx.Problem(cvx.Minimize(mpc_objective), mpc_constraints)
        logger.debug("Horizon problem of iteration %s is DCP: %s", anchor.iteration, mpc_problem.is_dcp())

        return mpc_problem, purchase

    def solve_mpc(self, mpc_problem: cvx.Problem, anchor: AnchorState) -> cvx.Problem:
        """Solve the horizon problem with the configured mixed-integer solver.

        Raises:
            InfeasibleHorizonError: If the solver proves the problem infeasible.
            SolverFailureError: If the solver raises or ends without an optimal point.
        """
        solver = self._config["solver"]
        verbose = solver["verbose"] or os.getenv("VERBOSE_SOLVER_LOGS", "false").lower() == "true"

        start_time = time()
        try:
            mpc_problem.solve(solver=solver["name"], verbose=verbose, **solver["options"])
        except cvx.SolverError as e:
            logger.error("Solver %s failed at iteration %s: %s", solver["name"], anchor.iteration, e)
            raise SolverFailureError("solver failed", anchor.iteration, anchor) from e
        execution_time = time() - start_time
        logger.info("The solver took %.2f seconds to solve the problem", execution_time)
        logger.info("The status of the problem is: %s", mpc_problem.status)

        if mpc_problem.status in INFEASIBLE_STATUSES:
            logger.error("Horizon problem of iteration %s is infeasible. Anchor: %s", anchor.iteration, anchor)
            raise InfeasibleHorizonError("horizon problem is infeasible", anchor.iteration, anchor, mpc_problem.status)
        if mpc_problem.status not in SOLVED_STATUSES or mpc_problem.value is None:
            logger.error(
                "Horizon problem of iteration %s ended with status %s. Anchor: %s",
                anchor.iteration,
                mpc_problem.status,
                anchor,
            )
            raise SolverFailureError("no usable solution", anchor.iteration, anchor, mpc_problem.status)

        return mpc_problem

    def _instantiate_units(self, config: Dict[str, Dict[str, Any]]) -> Dict[str, UnitMPC]:
        """Creates the formulation objects of all hub components."""
        steps = self.steps_horizon_k
        time_step = self.time_step
        hot_start_time = config["start_up"]["hot_start_time"]
        warm_start_time = config["start_up"]["warm_start_time"]

        units_mpc: Dict[str, UnitMPC] = {}
        units_mpc[UnitHelper.CHP.value] = CombinedHeatPowerMPC(
            config[UnitHelper.CHP.value], steps, time_step, hot_start_time, warm_start_time
        )
        units_mpc[UnitHelper.HEAT_PUMP.value] = HeatPumpMPC(
            config[UnitHelper.HEAT_PUMP.value], steps, time_step, hot_start_time, warm_start_time
        )
        units_mpc[UnitHelper.GAS_BOILER.value] = GasBoilerMPC(
            config[UnitHelper.GAS_BOILER.value], steps, time_step, hot_start_time, warm_start_time
        )
        for unit in UnitHelper.storage_units():
            units_mpc[unit.value] = StorageMPC(unit, config[unit.value], steps, time_step, carrier=STORAGE_CARRIERS[unit])

        return units_mpc
