"""
The `energy_hub_mpc` package implements a receding horizon (model predictive)
controller for a sector-coupled energy hub.

The hub serves an electrical and a thermal demand with a combined heat and
power unit (CHP), a gas boiler, a heat pump, an electrical storage unit (ESU),
a thermal storage unit (TSU) and electricity purchased from the grid. At every
hourly step the controller solves a mixed-integer program over the next `N`
steps, applies only the first step and rolls the horizon forward, carrying the
applied unit commitment and storage state from one iteration to the next.

Unit commitment covers minimum up and down times, start-up delays before a
unit may produce, and tiered start-up costs: a start is hot, warm or cold
depending on how long the unit was idle.

Sub-packages:
-------------
- `units`:
  The formulations of the hub components behind the `UnitMPC` interface,
  the storage recurrence and the unit commitment tracker.

- `mpc`:
  The horizon problem builder and solver adapter, the interpreter of the
  applied step, the closed-loop recorder and the receding horizon driver.

- `retrievers`:
  Loading and validation of the YAML configuration and of the forecast table.

- `util`:
  General-purpose utilities, most notably the centralized logging utility.
"""
