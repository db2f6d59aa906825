"""Main application module for the energy hub receding horizon controller.

This module wires the configuration, the forecast and the receding horizon
driver together and runs a closed-loop simulation from the command line:

- `HUB_CONFIG_PATH`: YAML configuration of the hub (defaults to the packaged
  reference plant).
- `FORECAST_PATH`: CSV forecast with one row per hourly step (required).
- `RESULTS_PATH`: CSV file receiving the closed-loop trajectory (defaults to
  `closed_loop_results.csv`).
"""

import os

from energy_hub_mpc.mpc.receding_horizon import RecedingHorizonDriver
from energy_hub_mpc.mpc.recorder import ClosedLoopRecorder
from energy_hub_mpc.retrievers.config_retriever import HubConfigRetriever
from energy_hub_mpc.retrievers.forecast_retriever import ForecastRetriever
from energy_hub_mpc.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)


def run_simulation(config_path: str | None, forecast_path: str) -> ClosedLoopRecorder:
    """Runs a complete closed-loop simulation.

    Args:
        config_path: Path to the hub YAML configuration, `None` for the defaults.
        forecast_path: Path to the forecast CSV.

    Returns:
        The recorder holding the applied trajectory.
    """
    config = HubConfigRetriever.from_yaml(config_path).retrieve_data()
    forecast_retriever = ForecastRetriever.from_csv(forecast_path)

    driver = RecedingHorizonDriver(config, forecast_retriever)
    return driver.run()


def main() -> None:
    """Main entry point of the `energy-hub-mpc` console script."""
    config_path = os.getenv("HUB_CONFIG_PATH")
    forecast_path = os.getenv("FORECAST_PATH")
    results_path = os.getenv("RESULTS_PATH", "closed_loop_results.csv")

    if not forecast_path:
        logger.error("FORECAST_PATH is not set.")
        raise SystemExit("FORECAST_PATH must point to a forecast CSV file.")

    logger.info("Starting closed-loop simulation")
    recorder = run_simulation(config_path, forecast_path)

    recorder.to_dataframe().to_csv(results_path)
    logger.info("Closed-loop trajectory of %s iterations written to %s", len(recorder), results_path)


if __name__ == "__main__":
    main()
