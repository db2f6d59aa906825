"""Receding horizon control loop of the energy hub.

At every iteration `k` the driver takes the forecast rows `[k, k + N)`, builds
and solves the horizon problem anchored on the applied state of iteration
`k - 1` (or on the initial anchor at `k = 0`), applies the first step only,
records it and moves on. The loop is strictly sequential: an iteration that
does not produce a solution stops the simulation.
"""

from enum import Enum
from time import time
from typing import Any, Dict

from energy_hub_mpc.mpc.errors import HorizonSolveError
from energy_hub_mpc.mpc.executor import ExecutorMPC
from energy_hub_mpc.mpc.recorder import ClosedLoopRecord, ClosedLoopRecorder
from energy_hub_mpc.mpc.state import AnchorState
from energy_hub_mpc.retrievers.forecast_retriever import ForecastRetriever
from energy_hub_mpc.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)


class DriverState(Enum):
    RUNNING = "running"
    DONE = "done"


class RecedingHorizonDriver:
    """Runs the closed-loop simulation over the configured number of steps.

    The simulation spans `total_steps = simulation_steps + N + 1` time points,
    and iterations run while `k <= total_steps - N - 2`, that is exactly
    `simulation_steps` iterations. The forecast must hold at least
    `total_steps` rows; this is checked before the first iteration.
    """

    def __init__(self, config: Dict[str, Dict[str, Any]], forecast_retriever: ForecastRetriever) -> None:
        """Initializes the driver.

        Args:
            config: The typed hub configuration (see `HubConfigRetriever`).
            forecast_retriever: The validated forecast table.

        Raises:
            MalformedForecastError: If the forecast is too short for the simulation.
        """
        self._config = config
        self._forecast_retriever = forecast_retriever
        self._executor = ExecutorMPC(config)

        self.steps_horizon_k: int = config["mpc"]["horizon"]
        self.total_steps: int = config["mpc"]["simulation_steps"] + self.steps_horizon_k + 1
        self._forecast_retriever.validate_length(self.total_steps)

        initial_anchor = AnchorState.initial(
            esu_level=config["esu"]["initial_level"],
            tsu_level=config["tsu"]["initial_level"],
            off_steps=config["mpc"]["initial_off_steps"],
        )
        self.recorder = ClosedLoopRecorder(initial_anchor)
        self.iteration = 0
        self.state = DriverState.RUNNING if self._last_iteration >= 0 else DriverState.DONE

    @property
    def _last_iteration(self) -> int:
        return self.total_steps - self.steps_horizon_k - 2

    def step(self) -> ClosedLoopRecord:
        """Runs iteration `k`, records its applied first step and advances `k`.

        Raises:
            RuntimeError: If the simulation is already done.
            InfeasibleHorizonError: If the horizon problem is infeasible.
            SolverFailureError: If the solver gives no usable solution.
        """
        if self.state is DriverState.DONE:
            raise RuntimeError("the closed-loop simulation is already done.")

        anchor = self.recorder.anchor()
        window = self._forecast_retriever.retrieve_window(self.iteration, self.steps_horizon_k)

        try:
            record = self._executor.run_iteration(anchor, window)
        except HorizonSolveError:
            logger.error("Stopping the closed-loop simulation at iteration %s.", self.iteration)
            self.state = DriverState.DONE
            raise

        self.recorder.append(record)
        logger.info(
            "Iteration %s/%s: objective %.3f, ESU %.2f, TSU %.2f, solve time %.2f s",
            self.iteration,
            self._last_iteration,
            record.objective,
            record.esu_level,
            record.tsu_level,
            record.solve_time,
        )

        self.iteration += 1
        if self.iteration > self._last_iteration:
            self.state = DriverState.DONE

        return record

    def run(self) -> ClosedLoopRecorder:
        """Runs all remaining iterations and returns the closed-loop trajectory."""
        start_time = time()
        while self.state is DriverState.RUNNING:
            self.step()
        logger.info(
            "Closed-loop simulation of %s iterations took %.2f seconds",
            len(self.recorder),
            time() - start_time,
        )

        return self.recorder
