"""This module defines the ExecutorMPC class, which runs one iteration of the receding horizon controller.

The executor owns the `HorizonProblemBuilder` and the `Interpreter`. For an
anchor state and a forecast window it builds the horizon problem, solves it,
measures the solve time and returns the applied first step.
"""

from time import time
from typing import Any, Dict, Tuple

import cvxpy as cvx

from energy_hub_mpc.mpc.build_mpc import HorizonProblemBuilder
from energy_hub_mpc.mpc.interpreter import Interpreter
from energy_hub_mpc.mpc.recorder import ClosedLoopRecord
from energy_hub_mpc.mpc.state import AnchorState
from energy_hub_mpc.retrievers.forecast_retriever import ForecastWindow
from energy_hub_mpc.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)


class ExecutorMPC:
    """Orchestrates a single MPC iteration: build, solve and interpret."""

    def __init__(self, config: Dict[str, Dict[str, Any]]) -> None:
        """Initializes the ExecutorMPC.

        Args:
            config: The typed hub configuration (see `HubConfigRetriever`).
        """
        self._build_mpc = HorizonProblemBuilder(config)
        self._interpreter = Interpreter(config, self._build_mpc.storage_units)

    @property
    def steps_horizon_k(self) -> int:
        return self._build_mpc.steps_horizon_k

    def run_mpc(self, anchor: AnchorState, window: ForecastWindow) -> Tuple[cvx.Problem, float]:
        """Builds and solves the horizon problem of one iteration.

        Args:
            anchor: The applied state preceding the horizon.
            window: The forecast for the horizon steps.

        Returns:
            A tuple containing:
            - The solved CVXPY Problem object.
            - The wall-clock solve time in seconds.

        Raises:
            InfeasibleHorizonError: If the horizon problem is infeasible.
            SolverFailureError: If the solver gives no usable solution.
        """
        # Build the MPC
        mpc_problem, purchase = self._build_mpc.create_mpc_formulation(anchor, window)

        # Solve the MPC
        start_time = time()
        mpc_problem = self._build_mpc.solve_mpc(mpc_problem, anchor)
        solve_time = time() - start_time

        logger.debug("Planned grid purchase of iteration %s: %s", anchor.iteration, purchase.value)

        return mpc_problem, solve_time

    def run_iteration(self, anchor: AnchorState, window: ForecastWindow) -> ClosedLoopRecord:
        """Runs one iteration and returns its applied first step."""
        mpc_problem, solve_time = self.run_mpc(anchor, window)
        return self._interpreter.interpret(mpc_problem, anchor, solve_time)
