"""Anchor state of a horizon problem.

A horizon problem is built on the applied (not predicted) state preceding its
first step: the true storage levels and, per dispatchable unit, the applied
commitment state. At the first iteration there is no closed-loop history, so
the anchor is an explicit initial value in which every unit has been idle for
a fixed number of steps and produced nothing.
"""

from dataclasses import dataclass, field
from typing import Dict

from energy_hub_mpc.units.commitment import UnitState
from energy_hub_mpc.units.helper import UnitHelper


@dataclass(frozen=True)
class AnchorState:
    """State the horizon problem of MPC iteration `iteration` is anchored on."""

    iteration: int
    esu_level: float
    tsu_level: float
    units: Dict[str, UnitState] = field(default_factory=dict)

    @classmethod
    def initial(cls, esu_level: float, tsu_level: float, off_steps: int) -> "AnchorState":
        """Anchor of the first iteration: storage at its initial level, every unit idle."""
        return cls(
            iteration=0,
            esu_level=esu_level,
            tsu_level=tsu_level,
            units={unit.value: UnitState.initial(off_steps) for unit in UnitHelper.dispatchable_units()},
        )

    def unit(self, unit: UnitHelper) -> UnitState:
        return self.units[unit.value]

    def storage_level(self, unit: UnitHelper) -> float:
        if unit is UnitHelper.ESU:
            return self.esu_level
        if unit is UnitHelper.TSU:
            return self.tsu_level
        raise KeyError(f"{unit.value} is not a storage unit")
