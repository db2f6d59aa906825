from abc import ABC, abstractmethod
from typing import Any, Dict, List, Tuple

import cvxpy as cvx
import numpy as np

from energy_hub_mpc.mpc.state import AnchorState
from energy_hub_mpc.retrievers.forecast_retriever import ForecastWindow
from energy_hub_mpc.units.commitment import UnitCommitmentTracker, UnitState
from energy_hub_mpc.units.helper import UnitHelper


class UnitMPC(ABC):
    """Abstract base class for a component of the energy hub compatible with the MPC.

    Every component contributes its own variables, constraints and cost terms
    to the horizon problem, together with its net injection into the
    electrical and thermal balances of the hub.
    """

    unit: UnitHelper

    def __init__(self, parameters: Dict[str, Any], steps_horizon_k: int, time_step: float = 1.0) -> None:
        """Initializes the component.

        Args:
            parameters: The configuration section of the component.
            steps_horizon_k: The number of time steps in the optimization horizon.
            time_step: The duration of each time step in hours.
        """
        self._parameters = parameters
        self._steps_horizon_k = steps_horizon_k
        self._time_step = time_step

    @abstractmethod
    def create_mpc_formulation(
        self,
        window: ForecastWindow,
        anchor: AnchorState,
    ) -> Tuple[List[Any], List[Any], Dict[str, cvx.Expression]]:
        """Creates the optimization formulation for the component.

        Args:
            window: The forecast covering the horizon.
            anchor: The applied closed-loop state preceding the horizon.

        Returns:
            A tuple containing three elements:
            - A list of cost terms (cvxpy expressions) to be minimized.
            - A list of constraints (cvxpy constraints) modelling the component.
            - A dictionary with the net injection of the component into the
              `electric` and `heat` balances (missing keys contribute nothing).
        """
        return ([], [], {})


class DispatchableUnitMPC(UnitMPC):
    """Base class for units with on/off commitment and tiered start-up costs.

    Subclasses declare their output variables and call the helpers below for
    the commitment constraints, the output gating, the ramp limits and the
    start-up/shut-down cost terms.
    """

    def __init__(
        self,
        parameters: Dict[str, Any],
        steps_horizon_k: int,
        time_step: float = 1.0,
        hot_start_time: float = 2.5,
        warm_start_time: float = 7.5,
    ) -> None:
        super().__init__(parameters, steps_horizon_k, time_step)
        self._commitment = UnitCommitmentTracker(
            self.unit,
            steps_horizon_k,
            hot_start_time,
            warm_start_time,
            min_up_time=parameters.get("min_up_time") or 0.0,
            min_down_time=parameters.get("min_down_time") or 0.0,
            start_up_delay=parameters.get("start_up_delay"),
        )

    def _create_commitment_formulation(self, anchor: AnchorState) -> Tuple[List[Any], Dict[str, cvx.Expression]]:
        """Commitment constraints of this unit anchored on its applied state."""
        return self._commitment.create_mpc_formulation(anchor.unit(self.unit))

    def _create_output_limits(self, output: cvx.Expression, gate: cvx.Expression) -> List[Any]:
        """Output within [output_min, output_max] when the gate is 1, zero otherwise."""
        return [
            output >= self._parameters["output_min"] * gate,
            output <= self._parameters["output_max"] * gate,
        ]

    def _create_ramp_limits(self, output: cvx.Expression, anchor_state: UnitState) -> List[Any]:
        """Step-to-step output change bounded by the ramp limit, if one is configured."""
        ramp_limit = self._parameters.get("ramp_limit")
        if ramp_limit is None:
            return []

        previous_output = cvx.hstack([np.array([anchor_state.output]), output[:-1]])
        return [
            output - previous_output <= ramp_limit,
            output - previous_output >= -ramp_limit,
        ]

    def _create_start_up_costs(self, expressions: Dict[str, cvx.Expression]) -> List[Any]:
        """Per-event start-up costs by tier and the shut-down cost."""
        return [
            cvx.sum(
                self._parameters["hot_start_cost"] * expressions["hot_start"]
                + self._parameters["warm_start_cost"] * expressions["warm_start"]
                + self._parameters["cold_start_cost"] * expressions["cold_start"]
                + self._parameters["shut_down_cost"] * expressions["stop"]
            )
        ]
