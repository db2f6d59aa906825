from typing import Any, Dict, List, Tuple

import cvxpy as cvx

from energy_hub_mpc.mpc.state import AnchorState
from energy_hub_mpc.retrievers.forecast_retriever import ForecastWindow
from energy_hub_mpc.units.helper import UnitHelper
from energy_hub_mpc.units.unit_mpc import DispatchableUnitMPC


class HeatPumpMPC(DispatchableUnitMPC):
    """Represents the heat pump for the MPC.

    The heat pump draws electricity from the hub and delivers `cop` times as
    much heat. Its heat output is bounded by the on/off status directly; a
    start-up delay or ramp limit only applies when configured. Its running cost
    is carried by the electricity purchase in the hub balance.
    """

    unit = UnitHelper.HEAT_PUMP

    def create_mpc_formulation(
        self,
        window: ForecastWindow,
        anchor: AnchorState,
    ) -> Tuple[List[Any], List[Any], Dict[str, cvx.Expression]]:
        steps = self._steps_horizon_k

        electric_input = cvx.Variable(steps, nonneg=True, name=self.unit.variable_name("electric_input"))
        heat = self._parameters["cop"] * electric_input

        constraints, expressions = self._create_commitment_formulation(anchor)
        constraints.extend(self._create_output_limits(heat, expressions["gate"]))
        constraints.extend(self._create_ramp_limits(heat, anchor.unit(self.unit)))

        objective = self._create_start_up_costs(expressions)

        return objective, constraints, {"electric": -electric_input, "heat": heat}
