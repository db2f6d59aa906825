from typing import Any, Dict, List, Tuple

import cvxpy as cvx
import numpy as np

from energy_hub_mpc.mpc.state import AnchorState
from energy_hub_mpc.retrievers.forecast_retriever import ForecastWindow
from energy_hub_mpc.units.helper import UnitHelper
from energy_hub_mpc.units.unit_mpc import UnitMPC
from energy_hub_mpc.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)


def storage_step(
    level: Any,
    charge_efficiency: float,
    discharge_efficiency: float,
    charge_power: Any,
    discharge_power: Any,
    decay: float = 0.01,
) -> Any:
    """Energy level of a storage unit after one step.

    `W' = W (1 - decay) + e_c p_c - p_d / e_d`

    Works on floats as well as on numpy arrays and cvxpy expressions, so the
    same recurrence advances the closed-loop state and constrains the horizon.
    """
    return level * (1 - decay) + (charge_efficiency * charge_power - discharge_power / discharge_efficiency)


class StorageMPC(UnitMPC):
    """Represents a storage unit (electrical or thermal) of the energy hub.

    The formulation covers:
    - The level recurrence, anchored on the true level before the horizon.
    - Level, charging and discharging limits at every step.
    - Exclusive charging or discharging, through a binary mode switch.
    - The terminal condition: the level must reach its maximum at the last
      step, so that every re-solve starts from a state it can sustain.
    """

    def __init__(
        self,
        unit: UnitHelper,
        parameters: Dict[str, Any],
        steps_horizon_k: int,
        time_step: float = 1.0,
        carrier: str = "electric",
    ) -> None:
        """Initializes the storage unit.

        Args:
            unit: `UnitHelper.ESU` or `UnitHelper.TSU`.
            parameters: The configuration section of the storage unit.
            steps_horizon_k: The number of time steps in the horizon.
            time_step: The duration of each time step in hours.
            carrier: The balance the unit injects into, `electric` or `heat`.
        """
        super().__init__(parameters, steps_horizon_k, time_step)
        self.unit = unit
        self._carrier = carrier

    def next_level(self, level: float, charge_power: float, discharge_power: float) -> float:
        """Applies the storage recurrence to an applied charge/discharge decision."""
        return float(
            storage_step(
                level,
                self._parameters["charge_efficiency"],
                self._parameters["discharge_efficiency"],
                charge_power,
                discharge_power,
                self._parameters["decay"],
            )
        )

    def create_mpc_formulation(
        self,
        window: ForecastWindow,
        anchor: AnchorState,
    ) -> Tuple[List[Any], List[Any], Dict[str, cvx.Expression]]:
        """Creates the optimization formulation for the storage unit.

        Args:
            window: The forecast covering the horizon (storage does not use it).
            anchor: The applied state preceding the horizon.

        Returns:
            No cost terms, the storage constraints and the net injection
            (discharge minus charge) into the balance of its carrier.
        """
        steps = self._steps_horizon_k
        name = self.unit.variable_name
        parameters = self._parameters

        initial_level = anchor.storage_level(self.unit)
        if not parameters["level_min"] <= initial_level <= parameters["level_max"]:
            logger.warning(
                "Level of %s %.3f is outside [%s, %s] before the horizon.",
                self.unit.value,
                initial_level,
                parameters["level_min"],
                parameters["level_max"],
            )

        # Define optimization variables
        charge_power = cvx.Variable(steps, nonneg=True, name=name("charge"))
        discharge_power = cvx.Variable(steps, nonneg=True, name=name("discharge"))
        level = cvx.Variable(steps, name=name("level"))
        charging = cvx.Variable(steps, boolean=True, name=name("charging"))

        constraints: List[Any] = []

        # Level recurrence, the first step starts from the true level
        previous_level = cvx.hstack([np.array([initial_level]), level[:-1]])
        constraints.append(
            level
            == storage_step(
                previous_level,
                parameters["charge_efficiency"],
                parameters["discharge_efficiency"],
                charge_power,
                discharge_power,
                parameters["decay"],
            )
        )

        # Minimum and maximum level
        constraints.append(level >= parameters["level_min"])
        constraints.append(level <= parameters["level_max"])

        # Charge and discharge limits
        constraints.append(charge_power >= parameters["charge_min"])
        constraints.append(discharge_power >= parameters["discharge_min"])

        # Charge/discharge exclusivity
        constraints.append(charge_power <= parameters["charge_max"] * charging)
        constraints.append(discharge_power <= parameters["discharge_max"] * (1 - charging))

        # Terminal condition
        constraints.append(level[steps - 1] == parameters["level_max"])

        injection = {self._carrier: discharge_power - charge_power}

        return [], constraints, injection
