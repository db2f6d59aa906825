"""Loads and validates the energy hub configuration.

The configuration is a YAML document with one section per plant component
(`chp`, `gas_boiler`, `heat_pump`, `esu`, `tsu`, `grid`) plus the controller
sections `mpc`, `solver` and `start_up`. Each section has a fixed set of typed
properties with defaults; missing or malformed entries fall back to the default
with a warning, so a partial file only needs to list what differs from the
reference plant.
"""

from pathlib import Path
from typing import Any, Dict, Type, TypeVar

import yaml

from energy_hub_mpc.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)
T = TypeVar("T", str, bool, int, float, dict)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "default_hub.yaml"

_TRUE_STRINGS = ("true", "yes", "on", "1")
_FALSE_STRINGS = ("false", "no", "off", "0")


def _to_bool(value: Any) -> bool:
    """Casts a YAML or environment value to bool without treating every non-empty string as True."""
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise ValueError(f"'{value}' is not a boolean.")
    return bool(value)


_COMMITMENT_PROPERTIES: Dict[str, Dict[str, Any]] = {
    "start_up_delay": {"type": float, "default": None},
    "min_up_time": {"type": float, "default": 0.0},
    "min_down_time": {"type": float, "default": 0.0},
    "ramp_limit": {"type": float, "default": None},
}

_STORAGE_PROPERTIES: Dict[str, Dict[str, Any]] = {
    "charge_efficiency": {"type": float, "default": 0.95},
    "discharge_efficiency": {"type": float, "default": 0.95},
    "charge_min": {"type": float, "default": 0.0},
    "charge_max": {"type": float, "default": 200.0},
    "discharge_min": {"type": float, "default": 0.0},
    "discharge_max": {"type": float, "default": 200.0},
    "decay": {"type": float, "default": 0.01},
}


class HubConfigRetriever:
    """Retrieves the typed configuration of the energy hub and its controller.

    The static properties below define, per section, the name, the expected
    Python type and the default value of every recognized option. Defaults
    reproduce the reference plant (CHP 50-150 kW, gas boiler and heat pump
    50-250 kW heat, 400 kWh battery, 600 kWh heat tank, 12 h horizon).
    """

    def __init__(self, raw_config: Dict[str, Any] | None = None) -> None:
        """Initializes the retriever with an already parsed configuration mapping.

        Args:
            raw_config: The parsed YAML document. `None` means an empty document,
                        i.e. every value takes its default.
        """
        self._raw_config = raw_config or {}

    @classmethod
    def from_yaml(cls, path: str | Path | None = None) -> "HubConfigRetriever":
        """Creates a retriever from a YAML file, defaulting to the packaged reference plant."""
        config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
        logger.info("Loading energy hub configuration from %s", config_path)
        with open(config_path, "r") as file:
            raw_config = yaml.safe_load(file)
        return cls(raw_config)

    def retrieve_data(self) -> Dict[str, Dict[str, Any]]:
        """Builds the complete, typed and validated configuration.

        Returns:
            A dictionary keyed by section name, each holding a dictionary of
            property values.

        Raises:
            ValueError: If the resulting configuration is physically inconsistent.
        """
        data: Dict[str, Dict[str, Any]] = {}

        for section_name, section_properties in self._get_static_properties().items():
            raw_section = self._raw_config.get(section_name) or {}
            section: Dict[str, Any] = {}
            for property_name, property_info in section_properties.items():
                section[property_name] = self._get_static_property_value(
                    raw_section,
                    section_name,
                    property_name,
                    property_info["default"],
                    property_info["type"],
                )
            data[section_name] = section

        self._validate(data)

        return data

    def _get_static_properties(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """Defines every recognized configuration section and property."""
        return {
            "mpc": {
                "time_step": {"type": float, "default": 1.0},
                "horizon": {"type": int, "default": 12},
                "simulation_steps": {"type": int, "default": 48},
                "initial_off_steps": {"type": int, "default": 2},
            },
            "solver": {
                "name": {"type": str, "default": "HIGHS"},
                "verbose": {"type": bool, "default": False},
                "options": {"type": dict, "default": {}},
            },
            "start_up": {
                "hot_start_time": {"type": float, "default": 2.5},
                "warm_start_time": {"type": float, "default": 7.5},
            },
            "chp": {
                "electrical_efficiency": {"type": float, "default": 0.9},
                "thermal_efficiency": {"type": float, "default": 0.9},
                "heat_to_power_ratio": {"type": float, "default": 1.7},
                "output_min": {"type": float, "default": 50.0},
                "output_max": {"type": float, "default": 150.0},
                **_COMMITMENT_PROPERTIES,
                "ramp_limit": {"type": float, "default": 50.0},
                "start_up_delay": {"type": float, "default": 1.5},
                "min_up_time": {"type": float, "default": 2.5},
                "min_down_time": {"type": float, "default": 0.5},
                "hot_start_cost": {"type": float, "default": 15.0},
                "warm_start_cost": {"type": float, "default": 30.0},
                "cold_start_cost": {"type": float, "default": 45.0},
                "shut_down_cost": {"type": float, "default": 15.0},
            },
            "gas_boiler": {
                "efficiency": {"type": float, "default": 0.9},
                "output_min": {"type": float, "default": 50.0},
                "output_max": {"type": float, "default": 250.0},
                **_COMMITMENT_PROPERTIES,
                "ramp_limit": {"type": float, "default": 100.0},
                "start_up_delay": {"type": float, "default": 2.5},
                "min_up_time": {"type": float, "default": 3.5},
                "min_down_time": {"type": float, "default": 1.5},
                "hot_start_cost": {"type": float, "default": 10.0},
                "warm_start_cost": {"type": float, "default": 20.0},
                "cold_start_cost": {"type": float, "default": 30.0},
                "shut_down_cost": {"type": float, "default": 10.0},
            },
            "heat_pump": {
                "cop": {"type": float, "default": 3.0},
                "output_min": {"type": float, "default": 50.0},
                "output_max": {"type": float, "default": 250.0},
                **_COMMITMENT_PROPERTIES,
                "hot_start_cost": {"type": float, "default": 5.0},
                "warm_start_cost": {"type": float, "default": 10.0},
                "cold_start_cost": {"type": float, "default": 20.0},
                "shut_down_cost": {"type": float, "default": 5.0},
            },
            "esu": {
                **_STORAGE_PROPERTIES,
                "level_min": {"type": float, "default": 40.0},
                "level_max": {"type": float, "default": 400.0},
                "initial_level": {"type": float, "default": 60.0},
            },
            "tsu": {
                **_STORAGE_PROPERTIES,
                "level_min": {"type": float, "default": 60.0},
                "level_max": {"type": float, "default": 600.0},
                "initial_level": {"type": float, "default": 80.0},
            },
            "grid": {
                "purchase_min": {"type": float, "default": 0.0},
                "purchase_max": {"type": float, "default": 400.0},
            },
        }

    def _get_static_property_value(
        self,
        raw_section: Dict[str, Any],
        section_name: str,
        property_name: str,
        default_value: T,
        property_type: Type[T],
    ) -> T:
        """Safely reads one property, casting it to its declared type.

        Optional properties (default `None`) that are absent are returned as
        `None` silently; any other missing or unconvertible value logs a warning
        and falls back to the default.
        """
        if property_name not in raw_section and default_value is None:
            return default_value
        try:
            if property_type is bool:
                return _to_bool(raw_section[property_name])
            return property_type(raw_section[property_name])
        except (KeyError, TypeError, ValueError):
            logger.warning(
                "%s not found for section '%s'. Using default value %s.",
                property_name,
                section_name,
                default_value,
            )
            return default_value

    def _validate(self, data: Dict[str, Dict[str, Any]]) -> None:
        """Rejects configurations that cannot describe a physical plant."""
        if data["mpc"]["horizon"] < 2:
            logger.error("Invalid horizon %s: at least two steps are required.", data["mpc"]["horizon"])
            raise ValueError("horizon must be at least 2 steps.")
        if data["mpc"]["simulation_steps"] < 1:
            logger.error("Invalid simulation length %s.", data["mpc"]["simulation_steps"])
            raise ValueError("simulation_steps must be positive.")
        if data["mpc"]["initial_off_steps"] < 1:
            logger.error("Invalid initial idle history %s.", data["mpc"]["initial_off_steps"])
            raise ValueError("initial_off_steps must be at least 1.")
        if not data["start_up"]["hot_start_time"] < data["start_up"]["warm_start_time"]:
            logger.error("Hot start threshold must be strictly below the warm start threshold.")
            raise ValueError("hot_start_time must be lower than warm_start_time.")

        for unit_name in ("chp", "gas_boiler", "heat_pump"):
            unit = data[unit_name]
            if not 0 <= unit["output_min"] <= unit["output_max"]:
                logger.error("Invalid output range for %s.", unit_name)
                raise ValueError(f"{unit_name}: output_min must be within [0, output_max].")

        for storage_name in ("esu", "tsu"):
            storage = data[storage_name]
            if not 0 <= storage["level_min"] <= storage["initial_level"] <= storage["level_max"]:
                logger.error("Initial level of %s is outside its capacity bounds.", storage_name)
                raise ValueError(f"{storage_name}: initial_level must be within [level_min, level_max].")
            if storage["charge_efficiency"] <= 0 or storage["discharge_efficiency"] <= 0:
                raise ValueError(f"{storage_name}: efficiencies must be positive.")
            if not 0 <= storage["decay"] < 1:
                raise ValueError(f"{storage_name}: decay must be within [0, 1).")
