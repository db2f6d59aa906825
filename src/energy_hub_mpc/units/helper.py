from enum import Enum
from typing import List


class UnitHelper(Enum):
    """Identifiers of the energy hub components.

    The value of each member is the configuration section of the component and
    the prefix of every optimization variable it declares, so that results can
    be looked up by name in a solved problem (e.g. `chp_power`, `esu_level`).
    """

    CHP = "chp"
    GAS_BOILER = "gas_boiler"
    HEAT_PUMP = "heat_pump"
    ESU = "esu"
    TSU = "tsu"
    GRID = "grid"

    @staticmethod
    def dispatchable_units() -> List["UnitHelper"]:
        """Units with on/off commitment, in the order they are formulated."""
        return [UnitHelper.CHP, UnitHelper.HEAT_PUMP, UnitHelper.GAS_BOILER]

    @staticmethod
    def storage_units() -> List["UnitHelper"]:
        return [UnitHelper.ESU, UnitHelper.TSU]

    def variable_name(self, quantity: str) -> str:
        """Name of the variable holding `quantity` for this unit."""
        return f"{self.value}_{quantity}"
