from typing import Any, Dict, List, Tuple

import cvxpy as cvx

from energy_hub_mpc.mpc.state import AnchorState
from energy_hub_mpc.retrievers.forecast_retriever import ForecastWindow
from energy_hub_mpc.units.helper import UnitHelper
from energy_hub_mpc.units.unit_mpc import DispatchableUnitMPC


class GasBoilerMPC(DispatchableUnitMPC):
    """Represents the gas boiler for the MPC.

    Heat output is gated by the start-up delay flag, ramp limited, and paid
    for at the gas price divided by the boiler efficiency.
    """

    unit = UnitHelper.GAS_BOILER

    def create_mpc_formulation(
        self,
        window: ForecastWindow,
        anchor: AnchorState,
    ) -> Tuple[List[Any], List[Any], Dict[str, cvx.Expression]]:
        steps = self._steps_horizon_k

        heat = cvx.Variable(steps, nonneg=True, name=self.unit.variable_name("heat"))

        constraints, expressions = self._create_commitment_formulation(anchor)
        constraints.extend(self._create_output_limits(heat, expressions["gate"]))
        constraints.extend(self._create_ramp_limits(heat, anchor.unit(self.unit)))

        gas_cost = self._time_step * cvx.sum(
            cvx.multiply(window.gas_price, heat / self._parameters["efficiency"])
        )
        objective = [gas_cost] + self._create_start_up_costs(expressions)

        return objective, constraints, {"heat": heat}
