"""This package defines the components of the energy hub for the MPC.

- `unit_mpc.py`: The abstract `UnitMPC` interface and the `DispatchableUnitMPC`
  base class for units with on/off commitment.
- `commitment.py`: Start/stop indicators, on/off counters, minimum up/down
  times, start-up delay and hot/warm/cold start classification.
- `chp_mpc.py`, `gas_boiler_mpc.py`, `heat_pump_mpc.py`: The dispatchable units.
- `storage_mpc.py`: The electrical and thermal storage units.
- `helper.py`: The `UnitHelper` enumeration of the hub components.
"""
