"""Append-only record of the applied closed-loop trajectory.

One `ClosedLoopRecord` is stored per MPC iteration. The latest record is the
only source of the anchor state of the next horizon problem.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple

import pandas as pd

from energy_hub_mpc.mpc.state import AnchorState
from energy_hub_mpc.units.commitment import UnitState
from energy_hub_mpc.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)


@dataclass(frozen=True)
class ClosedLoopRecord:
    """Applied result of one MPC iteration.

    Attributes:
        iteration: The MPC iteration (absolute step) the record belongs to.
        applied: Raw solver values of the continuous first-step decisions,
                 keyed by variable name (e.g. `chp_power`, `esu_charge`).
        units: The advanced commitment state of every dispatchable unit.
        esu_level: ESU level after applying the step.
        tsu_level: TSU level after applying the step.
        objective: Optimal objective value of the horizon problem.
        solve_time: Wall-clock duration of the solve in seconds.
    """

    iteration: int
    applied: Mapping[str, float]
    units: Mapping[str, UnitState]
    esu_level: float
    tsu_level: float
    objective: float
    solve_time: float = field(default=0.0, compare=False)

    def __post_init__(self) -> None:
        # Read-only views keep applied records append-only
        object.__setattr__(self, "applied", MappingProxyType(dict(self.applied)))
        object.__setattr__(self, "units", MappingProxyType(dict(self.units)))

    def to_anchor(self) -> AnchorState:
        """Anchor of the iteration that follows this record."""
        return AnchorState(
            iteration=self.iteration + 1,
            esu_level=self.esu_level,
            tsu_level=self.tsu_level,
            units=dict(self.units),
        )


class ClosedLoopRecorder:
    """Stores the closed-loop records in iteration order."""

    def __init__(self, initial_anchor: AnchorState) -> None:
        self._initial_anchor = initial_anchor
        self._records: List[ClosedLoopRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    @property
    def initial_anchor(self) -> AnchorState:
        return self._initial_anchor

    @property
    def records(self) -> Tuple[ClosedLoopRecord, ...]:
        return tuple(self._records)

    @property
    def latest(self) -> ClosedLoopRecord | None:
        return self._records[-1] if self._records else None

    def append(self, record: ClosedLoopRecord) -> None:
        """Appends the record of the next iteration.

        Raises:
            ValueError: If the record does not follow the latest one.
        """
        expected = self.anchor().iteration
        if record.iteration != expected:
            logger.error("Record of iteration %s received, expected iteration %s.", record.iteration, expected)
            raise ValueError(f"records must be appended in order; expected iteration {expected}.")
        self._records.append(record)

    def anchor(self) -> AnchorState:
        """Anchor of the next horizon problem: the initial anchor or the latest applied state."""
        if not self._records:
            return self._initial_anchor
        return self._records[-1].to_anchor()

    def to_dataframe(self) -> pd.DataFrame:
        """Flattens the trajectory into one row per iteration, indexed by iteration.

        Unit states are spread over `<unit>_<field>` columns.
        """
        rows: List[Dict[str, Any]] = []
        for record in self._records:
            row: Dict[str, Any] = {"iteration": record.iteration}
            row.update(record.applied)
            for unit_name, state in record.units.items():
                row[f"{unit_name}_on"] = state.on
                row[f"{unit_name}_on_time"] = state.on_time
                row[f"{unit_name}_off_time"] = state.off_time
                row[f"{unit_name}_start"] = state.start
                row[f"{unit_name}_stop"] = state.stop
                row[f"{unit_name}_hot_start"] = state.hot_start
                row[f"{unit_name}_warm_start"] = state.warm_start
                row[f"{unit_name}_cold_start"] = state.cold_start
                row[f"{unit_name}_delay_ok"] = state.delay_ok
            row["esu_level"] = record.esu_level
            row["tsu_level"] = record.tsu_level
            row["objective"] = record.objective
            row["solve_time"] = record.solve_time
            rows.append(row)

        return pd.DataFrame(rows).set_index("iteration") if rows else pd.DataFrame()
