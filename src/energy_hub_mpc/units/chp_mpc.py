from typing import Any, Dict, List, Tuple

import cvxpy as cvx

from energy_hub_mpc.mpc.state import AnchorState
from energy_hub_mpc.retrievers.forecast_retriever import ForecastWindow
from energy_hub_mpc.units.helper import UnitHelper
from energy_hub_mpc.units.unit_mpc import DispatchableUnitMPC


class CombinedHeatPowerMPC(DispatchableUnitMPC):
    """Represents the combined-heat-and-power unit for the MPC.

    The CHP produces electricity and heat in a fixed ratio. Its electrical
    output is bounded by `[output_min, output_max]` once the start-up delay is
    satisfied and is zero before, it changes by at most `ramp_limit` per step,
    and it burns gas for both products at their nominal efficiencies.
    """

    unit = UnitHelper.CHP

    def create_mpc_formulation(
        self,
        window: ForecastWindow,
        anchor: AnchorState,
    ) -> Tuple[List[Any], List[Any], Dict[str, cvx.Expression]]:
        """Creates the optimization formulation for the CHP.

        Args:
            window: The forecast covering the horizon (gas price is used).
            anchor: The applied state preceding the horizon.

        Returns:
            The gas and start-up cost terms, the constraints, and the electrical
            and thermal output as injections.
        """
        steps = self._steps_horizon_k
        name = self.unit.variable_name
        parameters = self._parameters

        power = cvx.Variable(steps, nonneg=True, name=name("power"))
        heat = cvx.Variable(steps, nonneg=True, name=name("heat"))

        constraints, expressions = self._create_commitment_formulation(anchor)

        # Fixed heat-to-power ratio
        constraints.append(heat == parameters["heat_to_power_ratio"] * power)

        constraints.extend(self._create_output_limits(power, expressions["gate"]))
        constraints.extend(self._create_ramp_limits(power, anchor.unit(self.unit)))

        # Gas consumed for electricity and heat
        gas_cost = self._time_step * cvx.sum(
            cvx.multiply(
                window.gas_price,
                power / parameters["electrical_efficiency"] + heat / parameters["thermal_efficiency"],
            )
        )
        objective = [gas_cost] + self._create_start_up_costs(expressions)

        return objective, constraints, {"electric": power, "heat": heat}
