"""Forecast data access for the receding horizon controller.

The forecast is a table with one row per absolute (hourly) step and the columns
listed in `FORECAST_COLUMNS`. `ForecastRetriever` validates the table once,
before the control loop starts, and then hands out immutable `ForecastWindow`
slices addressed by absolute step index.
"""

from pathlib import Path
from typing import Dict, Iterator, Tuple

import numpy as np
import pandas as pd

from energy_hub_mpc.mpc.errors import MalformedForecastError
from energy_hub_mpc.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)

FORECAST_COLUMNS: Tuple[str, ...] = (
    "heat_demand",
    "electric_demand",
    "solar",
    "electricity_price",
    "gas_price",
)


class ForecastWindow:
    """Immutable forecast slice covering absolute steps `[start, start + length)`.

    Each column is exposed as a read-only numpy array indexed by the local
    horizon step (0 is the first step of the window).
    """

    def __init__(self, start: int, columns: Dict[str, np.ndarray]) -> None:
        self._start = start
        self._columns: Dict[str, np.ndarray] = {}
        for name in FORECAST_COLUMNS:
            values = np.array(columns[name], dtype=float)
            values.setflags(write=False)
            self._columns[name] = values

    @property
    def start(self) -> int:
        return self._start

    @property
    def heat_demand(self) -> np.ndarray:
        return self._columns["heat_demand"]

    @property
    def electric_demand(self) -> np.ndarray:
        return self._columns["electric_demand"]

    @property
    def solar(self) -> np.ndarray:
        return self._columns["solar"]

    @property
    def electricity_price(self) -> np.ndarray:
        return self._columns["electricity_price"]

    @property
    def gas_price(self) -> np.ndarray:
        return self._columns["gas_price"]

    def __len__(self) -> int:
        return len(self._columns["heat_demand"])

    def __iter__(self) -> Iterator[Tuple[float, float, float, float, float]]:
        """Yields per-step tuples in `FORECAST_COLUMNS` order."""
        return zip(*(self._columns[name].tolist() for name in FORECAST_COLUMNS))


class ForecastRetriever:
    """Serves forecast windows from a validated table.

    Args:
        forecast: A DataFrame with at least the `FORECAST_COLUMNS` columns, one
                  row per absolute step in chronological order.

    Raises:
        MalformedForecastError: If a column is missing, holds non-numeric or
                                missing values.
    """

    def __init__(self, forecast: pd.DataFrame) -> None:
        missing_columns = [name for name in FORECAST_COLUMNS if name not in forecast.columns]
        if missing_columns:
            logger.error("Forecast is missing the columns %s", missing_columns)
            raise MalformedForecastError(f"forecast is missing columns: {missing_columns}")

        try:
            table = forecast.loc[:, list(FORECAST_COLUMNS)].astype(float)
        except (TypeError, ValueError) as e:
            logger.error("Forecast contains non-numeric values: %s", e)
            raise MalformedForecastError("forecast contains non-numeric values") from e

        if table.isna().to_numpy().any():
            logger.error("Forecast contains missing values.")
            raise MalformedForecastError("forecast contains missing values")

        self._table = table.reset_index(drop=True)

    @classmethod
    def from_csv(cls, path: str | Path) -> "ForecastRetriever":
        """Reads a forecast table from a CSV file with a header row."""
        logger.info("Loading forecast from %s", path)
        return cls(pd.read_csv(path))

    def __len__(self) -> int:
        return len(self._table)

    def validate_length(self, required_rows: int) -> None:
        """Checks that the table covers the whole closed-loop simulation.

        Raises:
            MalformedForecastError: If fewer than `required_rows` rows are available.
        """
        if len(self._table) < required_rows:
            logger.error(
                "Forecast has %s rows but the simulation needs at least %s.",
                len(self._table),
                required_rows,
            )
            raise MalformedForecastError(
                f"forecast has {len(self._table)} rows, at least {required_rows} are required"
            )

    def retrieve_window(self, start: int, length: int) -> ForecastWindow:
        """Returns the forecast for absolute steps `[start, start + length)`."""
        if start < 0 or start + length > len(self._table):
            logger.error("Forecast window [%s, %s) is out of range.", start, start + length)
            raise MalformedForecastError(f"forecast window [{start}, {start + length}) is out of range")

        rows = self._table.iloc[start : start + length]
        return ForecastWindow(start, {name: rows[name].to_numpy() for name in FORECAST_COLUMNS})
