from typing import Any, Dict

import pandas as pd
import pytest
import yaml

from energy_hub_mpc.retrievers.config_retriever import DEFAULT_CONFIG_PATH, HubConfigRetriever

HORIZON = 6
SIMULATION_STEPS = 6


def load_raw_config() -> Dict[str, Any]:
    with open(DEFAULT_CONFIG_PATH, "r") as file:
        return yaml.safe_load(file)


def make_config(**mpc_overrides: Any) -> Dict[str, Dict[str, Any]]:
    """Reference plant with a short horizon and simulation, as used by the closed-loop tests."""
    raw_config = load_raw_config()
    raw_config["mpc"].update({"horizon": HORIZON, "simulation_steps": SIMULATION_STEPS})
    raw_config["mpc"].update(mpc_overrides)
    return HubConfigRetriever(raw_config).retrieve_data()


def make_forecast(
    rows: int,
    heat_demand: float = 100.0,
    electric_demand: float = 80.0,
    solar: float = 0.0,
    electricity_price: float = 0.2,
    gas_price: float = 0.3,
) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "heat_demand": [heat_demand] * rows,
            "electric_demand": [electric_demand] * rows,
            "solar": [solar] * rows,
            "electricity_price": [electricity_price] * rows,
            "gas_price": [gas_price] * rows,
        }
    )


@pytest.fixture
def raw_config() -> Dict[str, Any]:
    return load_raw_config()


@pytest.fixture
def config() -> Dict[str, Dict[str, Any]]:
    return make_config()


@pytest.fixture
def required_rows() -> int:
    return SIMULATION_STEPS + HORIZON + 1
