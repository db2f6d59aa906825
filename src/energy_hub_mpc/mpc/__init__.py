"""This package contains the receding horizon control logic.

The key modules within this package include:
- `build_mpc.py`: Defines the `HorizonProblemBuilder` class, which aggregates
  the formulations of all hub components into one horizon problem with the
  electrical and thermal balances, and solves it.
- `executor.py`: Defines the `ExecutorMPC` class, which builds, solves and
  interprets one iteration.
- `interpreter.py`: Defines the `Interpreter` class, which extracts the first
  step of a solved problem and advances the applied state.
- `recorder.py`: The append-only closed-loop trajectory.
- `receding_horizon.py`: The control loop.
- `state.py` and `errors.py`: The anchor state of a horizon problem and the
  exceptions raised by the controller.
"""
