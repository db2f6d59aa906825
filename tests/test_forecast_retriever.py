import numpy as np
import pandas as pd
import pytest
from conftest import make_forecast

from energy_hub_mpc.mpc.errors import EnergyHubMPCError, MalformedForecastError
from energy_hub_mpc.retrievers.forecast_retriever import FORECAST_COLUMNS, ForecastRetriever


def _ramp_forecast(rows: int) -> pd.DataFrame:
    forecast = make_forecast(rows)
    forecast["heat_demand"] = np.arange(rows, dtype=float)
    return forecast


def test_missing_column_is_rejected():
    forecast = make_forecast(5).drop(columns=["gas_price"])

    with pytest.raises(MalformedForecastError, match="gas_price"):
        ForecastRetriever(forecast)


def test_malformed_forecast_error_is_a_value_error():
    assert issubclass(MalformedForecastError, ValueError)
    assert issubclass(MalformedForecastError, EnergyHubMPCError)


def test_non_numeric_values_are_rejected():
    forecast = make_forecast(3)
    forecast["solar"] = forecast["solar"].astype(object)
    forecast.loc[1, "solar"] = "sunny"

    with pytest.raises(MalformedForecastError):
        ForecastRetriever(forecast)


def test_missing_values_are_rejected():
    forecast = make_forecast(3)
    forecast.loc[2, "electricity_price"] = np.nan

    with pytest.raises(MalformedForecastError):
        ForecastRetriever(forecast)


def test_extra_columns_are_ignored():
    forecast = make_forecast(3)
    forecast["wind"] = 1.0

    assert len(ForecastRetriever(forecast)) == 3


def test_window_is_addressed_by_absolute_step():
    retriever = ForecastRetriever(_ramp_forecast(10))

    window = retriever.retrieve_window(3, 4)

    assert window.start == 3
    assert len(window) == 4
    np.testing.assert_array_equal(window.heat_demand, [3.0, 4.0, 5.0, 6.0])
    np.testing.assert_array_equal(window.electric_demand, [80.0] * 4)


def test_window_is_read_only():
    window = ForecastRetriever(make_forecast(4)).retrieve_window(0, 2)

    with pytest.raises(ValueError):
        window.gas_price[0] = 1.0


def test_window_iterates_per_step_tuples():
    window = ForecastRetriever(_ramp_forecast(3)).retrieve_window(1, 2)

    steps = list(window)

    assert len(steps) == 2
    assert len(steps[0]) == len(FORECAST_COLUMNS)
    assert steps[0] == (1.0, 80.0, 0.0, 0.2, 0.3)


def test_window_out_of_range_is_rejected():
    retriever = ForecastRetriever(make_forecast(5))

    with pytest.raises(MalformedForecastError):
        retriever.retrieve_window(2, 4)


def test_validate_length():
    retriever = ForecastRetriever(make_forecast(13))

    retriever.validate_length(13)
    with pytest.raises(MalformedForecastError, match="at least 14"):
        retriever.validate_length(14)


def test_from_csv(tmp_path):
    path = tmp_path / "forecast.csv"
    _ramp_forecast(6).to_csv(path, index=False)

    retriever = ForecastRetriever.from_csv(path)

    assert len(retriever) == 6
    np.testing.assert_array_equal(retriever.retrieve_window(4, 2).heat_demand, [4.0, 5.0])
